"""
Dashboard analytics and detailed reports, scoped to the caller's plants.
"""
import pytest

from app.models.enums import AdminRoleType, EnrollmentStatus, EventType
from app.models.events import ActivityEvent, QuestionEvent
from conftest import auth_headers, enroll, make_course, make_profile

pytestmark = pytest.mark.anyio("asyncio")


@pytest.fixture
def training_data(db, plant, other_plant, learner):
    """A completed learner at the home plant and a fresh one in Atlanta."""
    course = make_course(db)
    outsider = make_profile(db, other_plant, email="atl@specchem.com")
    enroll(db, learner, course, status=EnrollmentStatus.COMPLETED, percent=100)
    enroll(db, outsider, course, percent=0)
    db.add_all([
        QuestionEvent(user_id=learner.id, course_id=course.id, plant_id=plant.id,
                      section_key="placards", question_key="q1", is_correct=False, attempt_index=1),
        QuestionEvent(user_id=learner.id, course_id=course.id, plant_id=plant.id,
                      section_key="placards", question_key="q1", is_correct=True, attempt_index=2),
        QuestionEvent(user_id=outsider.id, course_id=course.id, plant_id=other_plant.id,
                      section_key="placards", question_key="q1", is_correct=True, attempt_index=1),
        QuestionEvent(user_id=outsider.id, course_id=course.id, plant_id=other_plant.id,
                      section_key="labels", question_key="q2", is_correct=False, attempt_index=1),
        ActivityEvent(user_id=learner.id, course_id=course.id, plant_id=plant.id,
                      event_type=EventType.START_COURSE),
    ])
    db.commit()
    return course


async def test_learner_cannot_read_analytics(client, learner):
    async with client:
        r = await client.get("/api/admin/analytics", headers=auth_headers(learner))
    assert r.status_code == 403


async def test_org_admin_dashboard_covers_all_plants(client, db, hr_admin, training_data, other_plant):
    headers = auth_headers(hr_admin)
    async with client:
        r = await client.get(
            f"/api/admin/analytics?plantId={other_plant.id}&courseId={training_data.id}", headers=headers
        )
        org_wide = await client.get(f"/api/admin/analytics?courseId={training_data.id}", headers=headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["dashboard"] == {
        "totalUsers": 3,
        "totalCourses": 1,
        "totalEnrollments": 2,
        "completedEnrollments": 1,
        "completionRate": 50.0,
        "averageProgress": 50.0,
    }
    assert data["plantStats"] == {
        "totalUsers": 1,
        "activeEnrollments": 0,
        "completionRate": 0.0,
        "averageProgress": 0.0,
    }
    # course figures narrow to the requested plant
    assert data["courseStats"]["totalEnrollments"] == 1
    assert data["courseStats"]["completionRate"] == 0.0
    assert org_wide.json()["data"]["courseStats"]["totalEnrollments"] == 2
    assert org_wide.json()["data"]["courseStats"]["completionRate"] == 50.0


async def test_plant_manager_sees_only_their_plant(client, db, plant, other_plant, training_data):
    manager = make_profile(db, plant, roles=[(AdminRoleType.PLANT_MANAGER, plant)])
    headers = auth_headers(manager)
    async with client:
        own = await client.get("/api/admin/analytics", headers=headers)
        other = await client.get(f"/api/admin/analytics?plantId={other_plant.id}", headers=headers)
    dashboard = own.json()["data"]["dashboard"]
    assert dashboard["totalUsers"] == 2
    assert dashboard["totalEnrollments"] == 1
    assert dashboard["completionRate"] == 100.0
    assert own.json()["data"]["plantStats"] is None
    assert other.status_code == 403
    assert other.json()["code"] == "TENANT_ACCESS_DENIED"


async def test_question_stats(client, db, hr_admin, training_data, plant):
    headers = auth_headers(hr_admin)
    async with client:
        everywhere = await client.get("/api/admin/analytics/questions", headers=headers)
        home = await client.get(f"/api/admin/analytics/questions?plantId={plant.id}", headers=headers)
        single = await client.get("/api/admin/analytics/questions?questionKey=q2", headers=headers)

    assert everywhere.json()["data"] == [
        {"questionKey": "q1", "totalAttempts": 3, "correctAttempts": 2, "uniqueUsers": 2, "successRate": 66.7},
        {"questionKey": "q2", "totalAttempts": 1, "correctAttempts": 0, "uniqueUsers": 1, "successRate": 0.0},
    ]
    assert home.json()["data"][0]["totalAttempts"] == 2
    assert [row["questionKey"] for row in single.json()["data"]] == ["q2"]


async def test_detailed_report(client, db, hr_admin, training_data, plant, other_plant):
    async with client:
        r = await client.get("/api/admin/reports?days=7", headers=auth_headers(hr_admin))
    assert r.status_code == 200
    data = r.json()["data"]

    assert data["overview"] == {
        "totalUsers": 3,
        "activeUsers": 3,
        "totalEnrollments": 2,
        "completedCourses": 1,
        "overallCompletionRate": 50.0,
    }
    course = data["coursePerformance"][0]
    assert course["courseName"] == "Forklift Safety"
    assert course["averageScore"] == 50.0

    plants = {row["plantName"]: row for row in data["plantPerformance"]}
    assert plants["Columbus, OH - Corporate"]["totalUsers"] == 2
    assert plants["Columbus, OH - Corporate"]["completedCourses"] == 1
    assert plants["Atlanta, GA"]["completionRate"] == 0.0

    questions = [(row["sectionKey"], row["questionKey"]) for row in data["questionAnalytics"]]
    assert questions == [("labels", "q2"), ("placards", "q1")]
    placards = data["questionAnalytics"][1]
    assert placards["accuracyRate"] == 66.7
    assert placards["averageAttempts"] == 1.3

    compliance = {row["plantName"]: row for row in data["complianceTracking"]}
    assert compliance["Columbus, OH - Corporate"]["requiredUsers"] == 2
    assert compliance["Columbus, OH - Corporate"]["completedUsers"] == 1
    assert compliance["Columbus, OH - Corporate"]["overdueUsers"] == 1
    assert compliance["Atlanta, GA"]["complianceRate"] == 0.0

    assert data["userEngagement"]["activeUsers"] == 1
    assert data["userEngagement"]["totalEvents"] == 1
    assert len(data["performanceTrends"]) == 1
    assert data["performanceTrends"][0]["enrollments"] == 2


async def test_reports_validate_days(client, hr_admin):
    async with client:
        r = await client.get("/api/admin/reports?days=0", headers=auth_headers(hr_admin))
    assert r.status_code == 422
    assert r.json()["field"] == "days"
