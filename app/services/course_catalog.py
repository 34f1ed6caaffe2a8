"""
Mapping between the e-book front-end routes and the courses behind them.
"""
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.course import Course


@dataclass(frozen=True)
class CourseRoute:
    id: UUID
    slug: str
    title: str
    language: str
    route: str


ENGLISH_HAZMAT = CourseRoute(
    id=UUID("660e8400-e29b-41d4-a716-446655440001"),
    slug="function-specific-hazmat-training",
    title="Function-Specific HazMat Training",
    language="en",
    route="/ebook",
)

SPANISH_HAZMAT = CourseRoute(
    id=UUID("660e8400-e29b-41d4-a716-446655440002"),
    slug="function-specific-hazmat-training-spanish",
    title="Capacitación Específica de HazMat por Función",
    language="es",
    route="/ebook-spanish",
)

COURSE_ROUTES = {course.route: course for course in (ENGLISH_HAZMAT, SPANISH_HAZMAT)}

ALTERNATE_ROUTES = {
    ENGLISH_HAZMAT.route: SPANISH_HAZMAT.route,
    SPANISH_HAZMAT.route: ENGLISH_HAZMAT.route,
}


def normalize_route(route: str) -> str:
    """``ebook`` and ``/ebook/`` both become ``/ebook``."""
    return "/" + route.strip().strip("/")


def get_course_by_route(route: str) -> Optional[CourseRoute]:
    return COURSE_ROUTES.get(normalize_route(route))


def get_route_by_course_id(course_id: UUID) -> Optional[CourseRoute]:
    for course in COURSE_ROUTES.values():
        if course.id == course_id:
            return course
    return None


def get_all_courses() -> List[CourseRoute]:
    return list(COURSE_ROUTES.values())


def is_valid_course_route(route: str) -> bool:
    return normalize_route(route) in COURSE_ROUTES


def get_course_language(route: str) -> str:
    course = get_course_by_route(route)
    return course.language if course else "en"


def get_alternate_language_route(route: str) -> Optional[str]:
    return ALTERNATE_ROUTES.get(normalize_route(route))


def resolve_course(db: Session, route: str) -> Course:
    """Load the course row behind a route; the slug is the stable link."""
    mapping = get_course_by_route(route)
    if mapping is None:
        raise ValidationError("Invalid course route", field="course")
    course = db.query(Course).filter(Course.slug == mapping.slug).first()
    if not course:
        raise NotFoundError(f"Course not found for route {mapping.route}")
    return course
