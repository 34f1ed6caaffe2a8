from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.api.deps import get_current_active_user, get_db
from app.core.errors import AppError, DatabaseError
from app.core.logger import get_logger
from app.schemas.common import ApiResponse
from app.schemas.content import (
    CourseContentOut,
    QuizAnswerRequest,
    QuizQuestionOut,
    QuizResultOut,
    SectionContentOut,
    SectionProgressOut,
    SectionProgressRequest,
    SectionProgressResult,
)
from app.services import content_service, quiz_service, section_progress_service
from app.services.tenancy import UserContext

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("/{course_id}/content", response_model=ApiResponse[CourseContentOut])
def read_course_content(
    course_id: UUID,
    lang: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Published sections of a course in the requested language.
    """
    language = content_service.parse_language(lang)
    logger.info(f"User {current_user.email} is requesting content for course {course_id} ({language.value})")
    return {"data": content_service.get_course_content(db, course_id, language)}


@router.get("/{course_id}/sections/{section_key}", response_model=ApiResponse[SectionContentOut])
def read_section(
    course_id: UUID,
    section_key: str,
    lang: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    language = content_service.parse_language(lang)
    return {"data": content_service.get_section_content(db, course_id, section_key, language)}


@router.get("/{course_id}/sections/{section_key}/quiz", response_model=ApiResponse[List[QuizQuestionOut]])
def read_section_quiz(
    course_id: UUID,
    section_key: str,
    lang: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    language = content_service.parse_language(lang)
    return {"data": content_service.get_section_quiz(db, course_id, section_key, language)}


@router.post("/{course_id}/sections/{section_key}/quiz", response_model=ApiResponse[QuizResultOut])
def submit_quiz_answer(
    *,
    course_id: UUID,
    section_key: str,
    db: Session = Depends(get_db),
    body: QuizAnswerRequest,
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Check an answer against the stored correct answer and record the attempt.
    """
    try:
        result = quiz_service.submit_quiz_answer(
            db,
            current_user,
            course_id,
            section_key,
            body.question_key,
            body.answer,
            body.attempt_index,
        )
        return {"data": result}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error submitting quiz answer: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while submitting the answer")


@router.get("/{course_id}/sections/{section_key}/progress", response_model=ApiResponse[SectionProgressOut])
def read_section_progress(
    course_id: UUID,
    section_key: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    record = section_progress_service.get_section_progress(db, current_user, course_id, section_key)
    return {"data": SectionProgressOut.model_validate(record) if record else None}


@router.post("/{course_id}/sections/{section_key}/progress", response_model=ApiResponse[SectionProgressResult])
def update_section_progress(
    *,
    course_id: UUID,
    section_key: str,
    db: Session = Depends(get_db),
    body: SectionProgressRequest,
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Save progress on one section and recompute the course percentage.
    """
    logger.info(f"User {current_user.email} is updating section {section_key} of course {course_id}")
    try:
        record, percent = section_progress_service.update_section_progress(
            db, current_user, course_id, section_key, body
        )
        return {
            "data": SectionProgressResult(
                section_progress=SectionProgressOut.model_validate(record),
                course_progress_percent=percent,
            )
        }
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating section progress: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating section progress")
