"""
Learner-facing course content, quizzes and per-section progress.
"""
import uuid

import pytest

from app.models.content import ContentTranslation
from app.models.enrollment import Enrollment
from app.models.enums import ContentType, EnrollmentStatus, Language, QuestionType
from app.models.events import QuestionEvent
from app.models.progress import Progress
from app.services.quiz_service import is_answer_correct
from conftest import auth_headers, enroll, make_course, make_section

pytestmark = pytest.mark.anyio("asyncio")

TRUE_FALSE = {
    "question_key": "tf-1",
    "question_type": QuestionType.TRUE_FALSE,
    "question_text": "Placards must be visible from all four sides.",
    "options": ["True", "False"],
    "correct_answer": "True",
    "explanation": "All four sides must carry a placard.",
}
MULTI_SELECT = {
    "question_key": "ms-1",
    "question_text": "Which classes are flammable?",
    "options": ["Class 2", "Class 3", "Class 8"],
    "correct_answer": ["Class 2", "Class 3"],
    "order_index": 1,
}


def test_answer_checking():
    assert is_answer_correct("True", "True")
    assert not is_answer_correct("True", "False")
    assert is_answer_correct(["A", "C"], ["C", "A"])
    assert not is_answer_correct(["A", "C"], ["A"])
    assert not is_answer_correct(["A", "C"], ["A", "B", "C"])
    assert is_answer_correct(["A"], "A")


async def test_course_content_is_ordered_and_hides_answers(client, db, learner):
    course = make_course(db)
    make_section(db, course, section_key="placards", title="Placards", order_index=1, questions=[TRUE_FALSE])
    make_section(db, course, section_key="introduction", title="Introduction", order_index=0)
    make_section(db, course, section_key="draft", title="Draft", order_index=2, is_published=False)

    async with client:
        r = await client.get(f"/api/courses/{course.id}/content", headers=auth_headers(learner))
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["language"] == "en"
    assert data["course"]["slug"] == "forklift-safety"
    assert [s["sectionKey"] for s in data["sections"]] == ["introduction", "placards"]

    blocks = data["sections"][0]["contentBlocks"]
    assert [b["blockType"] for b in blocks] == ["hero", "text"]
    assert blocks[0]["metadata"] == {"variant": "wide"}

    question = data["sections"][1]["quizQuestions"][0]
    assert question["questionKey"] == "tf-1"
    assert "correctAnswer" not in question
    assert data["translations"] == {}


async def test_course_content_in_unavailable_language(client, db, learner):
    course = make_course(db)
    async with client:
        r = await client.get(f"/api/courses/{course.id}/content?lang=fr", headers=auth_headers(learner))
    assert r.status_code == 404


async def test_invalid_language_code(client, db, learner):
    course = make_course(db)
    async with client:
        r = await client.get(f"/api/courses/{course.id}/content?lang=xx", headers=auth_headers(learner))
    assert r.status_code == 400
    assert r.json()["field"] == "lang"


async def test_translations_are_overlaid(client, db, learner):
    course = make_course(db, languages=(Language.EN, Language.ES))
    section = make_section(db, course, questions=[TRUE_FALSE])
    hero = section.content_blocks[0]
    question = section.quiz_questions[0]
    db.add_all([
        ContentTranslation(content_type=ContentType.SECTION, content_id=section.id,
                           language_code=Language.ES, translated_content={"title": "Introducción"}),
        ContentTranslation(content_type=ContentType.CONTENT_BLOCK, content_id=hero.id,
                           language_code=Language.ES, translated_content={"title": "Bienvenido"}),
        ContentTranslation(content_type=ContentType.QUIZ_QUESTION, content_id=question.id,
                           language_code=Language.ES,
                           translated_content={"questionText": "¿Verdadero?", "options": ["Verdadero", "Falso"]}),
    ])
    db.commit()

    async with client:
        r = await client.get(f"/api/courses/{course.id}/content?lang=es", headers=auth_headers(learner))
    data = r.json()["data"]
    section_out = data["sections"][0]
    assert section_out["title"] == "Introducción"
    assert section_out["contentBlocks"][0]["content"] == {"title": "Bienvenido"}
    # untranslated block keeps the original
    assert section_out["contentBlocks"][1]["content"] == {"text": "Introduction body"}
    quiz = section_out["quizQuestions"][0]
    assert quiz["questionText"] == "¿Verdadero?"
    assert quiz["explanation"] == TRUE_FALSE["explanation"]
    assert f"section_{section.id}" in data["translations"]


async def test_single_section_and_quiz(client, db, learner):
    course = make_course(db)
    make_section(db, course, questions=[TRUE_FALSE, MULTI_SELECT])
    make_section(db, course, section_key="empty", order_index=1)
    headers = auth_headers(learner)

    async with client:
        section = await client.get(f"/api/courses/{course.id}/sections/introduction", headers=headers)
        quiz = await client.get(f"/api/courses/{course.id}/sections/introduction/quiz", headers=headers)
        empty = await client.get(f"/api/courses/{course.id}/sections/empty/quiz", headers=headers)
        missing = await client.get(f"/api/courses/{course.id}/sections/nope", headers=headers)

    assert section.json()["data"]["sectionKey"] == "introduction"
    assert [q["questionKey"] for q in quiz.json()["data"]] == ["tf-1", "ms-1"]
    assert empty.json()["data"] == []
    assert missing.status_code == 404


async def test_submit_quiz_answer_records_event(client, db, learner):
    course = make_course(db)
    make_section(db, course, questions=[MULTI_SELECT])
    async with client:
        r = await client.post(
            f"/api/courses/{course.id}/sections/introduction/quiz",
            json={"questionKey": "ms-1", "answer": ["Class 3", "Class 2"], "attemptIndex": 2},
            headers=auth_headers(learner),
        )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["isCorrect"] is True
    assert data["correctAnswer"] == ["Class 2", "Class 3"]
    assert data["userAnswer"] == ["Class 3", "Class 2"]

    event = db.query(QuestionEvent).one()
    assert str(event.id) == data["eventId"]
    assert event.attempt_index == 2
    assert event.plant_id == learner.plant_id
    assert event.response_meta["question_type"] == "multiple-choice"


async def test_submit_unknown_question(client, db, learner):
    course = make_course(db)
    make_section(db, course, questions=[TRUE_FALSE])
    async with client:
        r = await client.post(
            f"/api/courses/{course.id}/sections/introduction/quiz",
            json={"questionKey": "nope", "answer": "True"},
            headers=auth_headers(learner),
        )
    assert r.status_code == 404


async def test_section_progress_recomputes_course_progress(client, db, learner):
    course = make_course(db)
    make_section(db, course, section_key="introduction", order_index=0)
    make_section(db, course, section_key="labels", order_index=1)
    make_section(db, course, section_key="placards", order_index=2)
    enroll(db, learner, course)
    headers = auth_headers(learner)

    async with client:
        before = await client.get(f"/api/courses/{course.id}/sections/labels/progress", headers=headers)
        r = await client.post(
            f"/api/courses/{course.id}/sections/labels/progress",
            json={"isCompleted": True, "timeSpentSeconds": 95},
            headers=headers,
        )
        after = await client.get(f"/api/courses/{course.id}/sections/labels/progress", headers=headers)

    assert before.json()["data"] is None
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["courseProgressPercent"] == 33
    assert data["sectionProgress"]["isCompleted"] is True
    assert data["sectionProgress"]["completedAt"] is not None
    assert after.json()["data"]["timeSpentSeconds"] == 95

    db.expire_all()
    progress = db.query(Progress).filter(Progress.user_id == learner.id).one()
    assert progress.sections_completed == 1
    assert progress.total_sections == 3
    enrollment = db.query(Enrollment).filter(Enrollment.user_id == learner.id).one()
    assert enrollment.status == EnrollmentStatus.IN_PROGRESS


async def test_completing_every_section_completes_the_course(client, db, learner):
    course = make_course(db)
    make_section(db, course, section_key="only")
    enroll(db, learner, course)
    async with client:
        r = await client.post(
            f"/api/courses/{course.id}/sections/only/progress",
            json={"isCompleted": True},
            headers=auth_headers(learner),
        )
    assert r.json()["data"]["courseProgressPercent"] == 100
    db.expire_all()
    enrollment = db.query(Enrollment).filter(Enrollment.user_id == learner.id).one()
    assert enrollment.status == EnrollmentStatus.COMPLETED
    assert enrollment.completed_at is not None


async def test_course_progress_rounds_half_up(client, db, learner):
    course = make_course(db)
    for index in range(8):
        make_section(db, course, section_key=f"s{index}", order_index=index)
    enroll(db, learner, course)
    headers = auth_headers(learner)
    async with client:
        first = await client.post(
            f"/api/courses/{course.id}/sections/s0/progress", json={"isCompleted": True}, headers=headers
        )
        for key in ("s1", "s2", "s3"):
            await client.post(
                f"/api/courses/{course.id}/sections/{key}/progress", json={"isCompleted": True}, headers=headers
            )
        fifth = await client.post(
            f"/api/courses/{course.id}/sections/s4/progress", json={"isCompleted": True}, headers=headers
        )
    assert first.json()["data"]["courseProgressPercent"] == 13
    assert fifth.json()["data"]["courseProgressPercent"] == 63


async def test_content_for_unknown_course(client, learner):
    async with client:
        r = await client.get(f"/api/courses/{uuid.uuid4()}/sections/introduction", headers=auth_headers(learner))
    assert r.status_code == 404
