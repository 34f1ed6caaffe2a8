from typing import List, Union
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.core.logger import get_logger
from app.models.content import CourseSection, QuizQuestion
from app.schemas.content import QuizResultOut
from app.services.content_service import get_course
from app.services.progress_service import record_question_event
from app.services.tenancy import UserContext

logger = get_logger(__name__)

Answer = Union[str, List[str]]


def is_answer_correct(correct_answer: Answer, answer: Answer) -> bool:
    """
    Multi-answer questions need exactly the correct set (order-insensitive);
    single-answer questions need an exact match.
    """
    if isinstance(correct_answer, list):
        given = answer if isinstance(answer, list) else [answer]
        return len(given) == len(correct_answer) and all(item in given for item in correct_answer)
    return answer == correct_answer


def get_question(db: Session, course_id: UUID, section_key: str, question_key: str) -> QuizQuestion:
    question = (
        db.query(QuizQuestion)
        .join(CourseSection, CourseSection.id == QuizQuestion.section_id)
        .filter(
            CourseSection.course_id == course_id,
            CourseSection.section_key == section_key,
            QuizQuestion.question_key == question_key,
        )
        .first()
    )
    if not question:
        raise NotFoundError("Quiz question not found")
    return question


def submit_quiz_answer(
    db: Session,
    context: UserContext,
    course_id: UUID,
    section_key: str,
    question_key: str,
    answer: Answer,
    attempt_index: int = 1,
) -> QuizResultOut:
    course = get_course(db, course_id)
    question = get_question(db, course.id, section_key, question_key)
    correct = is_answer_correct(question.correct_answer, answer)

    event = record_question_event(
        db,
        context,
        course,
        section_key=section_key,
        question_key=question_key,
        is_correct=correct,
        attempt_index=attempt_index,
        response_meta={
            "user_answer": answer,
            "correct_answer": question.correct_answer,
            "question_type": question.question_type.value,
        },
    )
    logger.info(
        f"Quiz answer from user {context.user_id} on {section_key}/{question_key}: "
        f"{'correct' if correct else 'incorrect'} (attempt {attempt_index})"
    )
    return QuizResultOut(
        is_correct=correct,
        explanation=question.explanation,
        correct_answer=question.correct_answer,
        user_answer=answer,
        event_id=event.id,
    )
