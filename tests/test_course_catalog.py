import uuid

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.services.course_catalog import (
    ENGLISH_HAZMAT,
    SPANISH_HAZMAT,
    get_all_courses,
    get_alternate_language_route,
    get_course_by_route,
    get_course_language,
    get_route_by_course_id,
    is_valid_course_route,
    normalize_route,
    resolve_course,
)
from conftest import make_hazmat_courses


@pytest.mark.parametrize("route", ["ebook", "/ebook", "/ebook/", " ebook "])
def test_routes_are_normalised(route):
    assert normalize_route(route) == "/ebook"
    assert get_course_by_route(route) is ENGLISH_HAZMAT


def test_catalog_lookups():
    assert get_course_by_route("ebook-spanish") is SPANISH_HAZMAT
    assert get_route_by_course_id(SPANISH_HAZMAT.id) is SPANISH_HAZMAT
    assert get_route_by_course_id(uuid.uuid4()) is None
    assert {course.slug for course in get_all_courses()} == {ENGLISH_HAZMAT.slug, SPANISH_HAZMAT.slug}
    assert is_valid_course_route("/ebook")
    assert not is_valid_course_route("/training")


def test_languages_and_alternates():
    assert get_course_language("/ebook-spanish") == "es"
    # unknown routes fall back to English
    assert get_course_language("/unknown") == "en"
    assert get_alternate_language_route("/ebook") == "/ebook-spanish"
    assert get_alternate_language_route("ebook-spanish") == "/ebook"
    assert get_alternate_language_route("/unknown") is None


def test_resolve_course_uses_the_slug(db):
    english, _ = make_hazmat_courses(db)
    assert resolve_course(db, "ebook").id == english.id


def test_resolve_course_errors(db):
    with pytest.raises(ValidationError):
        resolve_course(db, "training")
    # valid route but the course was never seeded
    with pytest.raises(NotFoundError):
        resolve_course(db, "ebook")
