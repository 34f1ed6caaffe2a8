"""
Course and plant administration.
"""
import uuid

import pytest

from app.models.course import Course, CourseLanguage
from app.models.enums import AdminRoleType, EnrollmentStatus, Language
from conftest import auth_headers, enroll, make_course, make_profile

pytestmark = pytest.mark.anyio("asyncio")


async def test_learner_cannot_manage_courses(client, learner):
    async with client:
        r = await client.get("/api/admin/courses", headers=auth_headers(learner))
    assert r.status_code == 403


async def test_list_courses_with_statistics(client, db, hr_admin, learner):
    forklift = make_course(db)
    make_course(db, slug="spill-response", title="Spill Response", is_published=False)
    enroll(db, learner, forklift, status=EnrollmentStatus.COMPLETED, percent=100)
    enroll(db, hr_admin, forklift, percent=0)

    async with client:
        r = await client.get("/api/admin/courses", headers=auth_headers(hr_admin))
    assert r.status_code == 200
    data = r.json()["data"]
    assert [c["slug"] for c in data["courses"]] == ["forklift-safety", "spill-response"]
    forklift_out = data["courses"][0]
    assert forklift_out["totalEnrollments"] == 2
    assert forklift_out["completedEnrollments"] == 1
    assert forklift_out["avgProgress"] == 50.0
    assert forklift_out["completionRate"] == 50.0
    assert data["courses"][1]["totalEnrollments"] == 0
    assert data["statistics"] == {
        "totalCourses": 2,
        "activeCourses": 1,
        "totalEnrollments": 2,
        "avgCompletionRate": 50.0,
    }


async def test_list_courses_filters(client, db, hr_admin):
    make_course(db)
    make_course(db, slug="spill-response", title="Spill Response", is_published=False)
    headers = auth_headers(hr_admin)
    async with client:
        published = await client.get("/api/admin/courses?isPublished=true", headers=headers)
        searched = await client.get("/api/admin/courses?search=SPILL", headers=headers)
    assert [c["slug"] for c in published.json()["data"]["courses"]] == ["forklift-safety"]
    assert [c["slug"] for c in searched.json()["data"]["courses"]] == ["spill-response"]


async def test_create_course_adds_language_rows(client, db, hr_admin):
    async with client:
        r = await client.post(
            "/api/admin/courses",
            json={
                "slug": "hazmat-awareness",
                "title": "Hazmat Awareness",
                "isPublished": True,
                "availableLanguages": ["en", "es"],
            },
            headers=auth_headers(hr_admin),
        )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["availableLanguages"] == ["en", "es"]
    assert data["defaultLanguage"] == "en"

    rows = db.query(CourseLanguage).filter(CourseLanguage.course_id == uuid.UUID(data["id"])).all()
    assert {row.language_code for row in rows} == {Language.EN, Language.ES}
    assert [row.language_code for row in rows if row.is_primary] == [Language.EN]


async def test_create_course_validation_and_conflict(client, db, hr_admin):
    make_course(db)
    headers = auth_headers(hr_admin)
    async with client:
        bad_slug = await client.post(
            "/api/admin/courses", json={"slug": "Bad Slug", "title": "Bad"}, headers=headers
        )
        taken = await client.post(
            "/api/admin/courses", json={"slug": "forklift-safety", "title": "Again"}, headers=headers
        )
    assert bad_slug.status_code == 422
    assert bad_slug.json()["field"] == "slug"
    assert taken.status_code == 409


async def test_update_and_delete_course(client, db, hr_admin):
    course_id = make_course(db).id
    make_course(db, slug="spill-response", title="Spill Response")
    headers = auth_headers(hr_admin)
    async with client:
        updated = await client.patch(
            f"/api/admin/courses/{course_id}",
            json={"title": "Forklift Operations", "availableLanguages": ["en", "fr"]},
            headers=headers,
        )
        clash = await client.patch(
            f"/api/admin/courses/{course_id}", json={"slug": "spill-response"}, headers=headers
        )
        deleted = await client.delete(f"/api/admin/courses/{course_id}", headers=headers)
        missing = await client.get(f"/api/admin/courses/{course_id}", headers=headers)

    assert updated.status_code == 200
    assert updated.json()["data"]["title"] == "Forklift Operations"
    assert updated.json()["data"]["availableLanguages"] == ["en", "fr"]
    assert clash.status_code == 409
    assert deleted.status_code == 200
    assert missing.status_code == 404
    db.expire_all()
    assert db.query(Course).filter(Course.id == course_id).first() is None


async def test_plants_admin(client, db, hr_admin, plant, other_plant):
    headers = auth_headers(hr_admin)
    async with client:
        created = await client.post("/api/admin/plants", json={"name": "Houston, TX"}, headers=headers)
        duplicate = await client.post("/api/admin/plants", json={"name": "Atlanta, GA"}, headers=headers)
        deactivated = await client.patch(
            f"/api/admin/plants/{other_plant.id}", json={"isActive": False}, headers=headers
        )
        listed = await client.get("/api/admin/plants", headers=headers)

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert deactivated.json()["data"]["isActive"] is False
    assert [p["name"] for p in listed.json()["data"]] == ["Atlanta, GA", "Columbus, OH - Corporate", "Houston, TX"]


async def test_plant_manager_cannot_manage_plants(client, db, plant):
    manager = make_profile(db, plant, roles=[(AdminRoleType.PLANT_MANAGER, plant)])
    async with client:
        r = await client.post("/api/admin/plants", json={"name": "Reno, NV"}, headers=auth_headers(manager))
    assert r.status_code == 403
