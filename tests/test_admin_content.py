"""
Content export and import.
"""
import uuid

import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError

from app.models.content import ContentTranslation, CourseSection, QuizQuestion
from app.models.course import Course
from app.models.enums import Language, QuestionType
from conftest import auth_headers, make_course, make_section

pytestmark = pytest.mark.anyio("asyncio")


def section_payload(section_key="introduction", title="Introduction", order_index=0, **extra):
    payload = {
        "sectionKey": section_key,
        "title": title,
        "orderIndex": order_index,
        "contentBlocks": [
            {"blockType": "hero", "orderIndex": 0, "content": {"title": title}},
            {"blockType": "text", "orderIndex": 1, "content": {"text": "Body"}, "metadata": {"tone": "calm"}},
        ],
        "quizQuestions": [
            {
                "questionKey": "tf-1",
                "questionType": "true-false",
                "questionText": "Is this safe?",
                "options": ["True", "False"],
                "correctAnswer": "False",
                "orderIndex": 0,
            }
        ],
    }
    payload.update(extra)
    return payload


async def test_content_routes_need_dev_admin(client, db, hr_admin):
    course = make_course(db)
    async with client:
        r = await client.get(f"/api/admin/content/export?courseId={course.id}", headers=auth_headers(hr_admin))
    assert r.status_code == 403


async def test_export_is_a_json_attachment(client, db, dev_admin):
    course = make_course(db)
    make_section(db, course, questions=[{
        "question_key": "tf-1",
        "question_type": QuestionType.TRUE_FALSE,
        "options": ["True", "False"],
        "correct_answer": "True",
    }])
    make_section(db, course, section_key="draft", title="Draft", order_index=1, is_published=False)

    async with client:
        r = await client.get(
            f"/api/admin/content/export?courseId={course.id}&language=en", headers=auth_headers(dev_admin)
        )
    assert r.status_code == 200
    disposition = r.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="course-forklift-safety-en-')
    assert disposition.endswith('.json"')
    assert r.headers["cache-control"] == "no-cache"

    body = r.json()
    assert body["course"]["slug"] == "forklift-safety"
    assert body["availableLanguages"] == ["en"]
    assert [s["sectionKey"] for s in body["content"]] == ["introduction", "draft"]
    assert body["content"][1]["isPublished"] is False
    question = body["content"][0]["quizQuestions"][0]
    # exports keep the answers so they can be imported again
    assert question["correctAnswer"] == "True"
    assert body["content"][0]["contentBlocks"][0]["metadata"] == {"variant": "wide"}


async def test_export_unknown_course(client, dev_admin):
    async with client:
        r = await client.get(f"/api/admin/content/export?courseId={uuid.uuid4()}", headers=auth_headers(dev_admin))
    assert r.status_code == 404


async def test_import_creates_and_updates_sections(client, db, dev_admin):
    course = make_course(db)
    course_id = course.id
    make_section(db, course, section_key="introduction", title="Old Intro")
    headers = auth_headers(dev_admin)
    async with client:
        r = await client.post(
            "/api/admin/content/import",
            json={
                "courseId": str(course_id),
                "language": "en",
                "sections": [
                    section_payload(),
                    section_payload(section_key="placards", title="Placards", order_index=1),
                ],
            },
            headers=headers,
        )
    assert r.status_code == 200
    assert r.json()["message"] == "Import completed"
    assert r.json()["data"] == {
        "sectionsCreated": 1,
        "sectionsUpdated": 1,
        "contentBlocksCreated": 4,
        "quizQuestionsCreated": 2,
        "translationsSaved": 0,
        "errors": [],
    }

    db.expire_all()
    intro = db.query(CourseSection).filter(
        CourseSection.course_id == course_id, CourseSection.section_key == "introduction"
    ).one()
    assert intro.title == "Introduction"
    assert [block.content for block in intro.content_blocks] == [{"title": "Introduction"}, {"text": "Body"}]
    assert intro.content_blocks[1].block_metadata == {"tone": "calm"}
    assert intro.quiz_questions[0].correct_answer == "False"


async def test_failed_section_is_rolled_back_and_not_counted(client, db, dev_admin):
    course = make_course(db)
    course_id = course.id
    broken = section_payload(section_key="broken", title="Broken", order_index=1)
    broken["quizQuestions"][0]["questionKey"] = "rejected"

    def reject_question(mapper, connection, target):
        if target.question_key == "rejected":
            raise IntegrityError("INSERT INTO quiz_questions", {}, Exception("question rejected"))

    event.listen(QuizQuestion, "before_insert", reject_question)
    try:
        async with client:
            r = await client.post(
                "/api/admin/content/import",
                json={
                    "courseId": str(course_id),
                    "language": "en",
                    "sections": [
                        section_payload(),
                        broken,
                        section_payload(section_key="placards", title="Placards", order_index=2),
                    ],
                },
                headers=auth_headers(dev_admin),
            )
    finally:
        event.remove(QuizQuestion, "before_insert", reject_question)

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["sectionsCreated"] == 2
    assert data["contentBlocksCreated"] == 4
    assert data["quizQuestionsCreated"] == 2
    assert len(data["errors"]) == 1
    assert data["errors"][0].startswith("Section broken")

    db.expire_all()
    keys = [row.section_key for row in db.query(CourseSection).filter(CourseSection.course_id == course_id)]
    assert sorted(keys) == ["introduction", "placards"]


async def test_import_in_second_language_stores_translations(client, db, dev_admin):
    course = make_course(db)
    course_id = course.id
    make_section(db, course, questions=[{"question_key": "tf-1", "correct_answer": "True"}])
    translated = section_payload(title="Introducción")
    translated["contentBlocks"].append({"blockType": "text", "orderIndex": 9, "content": {"text": "?"}})
    translated["quizQuestions"][0]["questionText"] = "¿Es seguro?"
    async with client:
        r = await client.post(
            "/api/admin/content/import",
            json={
                "courseId": str(course_id),
                "language": "es",
                "sections": [translated, section_payload(section_key="missing", title="Falta")],
            },
            headers=auth_headers(dev_admin),
        )
    assert r.status_code == 200
    data = r.json()["data"]
    # section title, two blocks and one question
    assert data["translationsSaved"] == 4
    assert data["sectionsCreated"] == 0
    assert len(data["errors"]) == 2
    assert "no content block at position 9" in data["errors"][0]
    assert data["errors"][1].startswith("Section missing")
    assert r.json()["message"] == "Import completed with 2 errors"

    db.expire_all()
    rows = db.query(ContentTranslation).filter(ContentTranslation.language_code == Language.ES).all()
    assert len(rows) == 4
    question_row = [row for row in rows if row.translated_content.get("questionText")][0]
    assert question_row.translated_content["questionText"] == "¿Es seguro?"
    assert db.get(Course, course_id).available_languages == ["en", "es"]


async def test_import_validates_payload(client, db, dev_admin):
    course = make_course(db)
    async with client:
        empty = await client.post(
            "/api/admin/content/import",
            json={"courseId": str(course.id), "sections": []},
            headers=auth_headers(dev_admin),
        )
        unknown = await client.post(
            "/api/admin/content/import",
            json={"courseId": str(uuid.uuid4()), "sections": [section_payload()]},
            headers=auth_headers(dev_admin),
        )
    assert empty.status_code == 422
    assert unknown.status_code == 404
