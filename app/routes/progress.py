import math
from typing import Any
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.api.deps import get_current_active_user, get_db
from app.core.errors import AppError, DatabaseError, NotFoundError, ValidationError
from app.core.logger import get_logger
from app.db.base_class import utcnow
from app.schemas.common import ApiResponse
from app.schemas.progress import (
    AllProgressOut,
    CourseProgressOut,
    ProgressUpdateRequest,
    QuestionEventOut,
    QuestionEventRequest,
)
from app.services import progress_service
from app.services.course_catalog import resolve_course
from app.services.tenancy import UserContext

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(tags=["progress"])


def _validate_percent(value: Any) -> float:
    # bool is an int subclass; true/false is not a percentage
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("progressPercent must be a number between 0 and 100", field="progressPercent")
    if not math.isfinite(value) or value < 0 or value > 100:
        raise ValidationError("progressPercent must be a number between 0 and 100", field="progressPercent")
    return value


@router.get("/progress", response_model=ApiResponse[AllProgressOut])
def read_all_progress(
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    All of the caller's enrollments with their progress.
    """
    logger.info(f"User {current_user.email} is requesting all progress")
    try:
        return {"data": progress_service.get_all_user_progress(db, current_user)}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error retrieving progress: {str(e)}")
        raise DatabaseError("An error occurred while retrieving progress")


@router.get("/courses/{course}/progress", response_model=ApiResponse[CourseProgressOut])
def read_course_progress(
    course: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Progress on one course addressed by its route (``ebook``, ``ebook-spanish``).
    """
    logger.info(f"User {current_user.email} is requesting progress for: {course}")
    progress = progress_service.get_progress_by_route(db, current_user, course)
    if progress is None:
        raise NotFoundError("Progress not found or user not enrolled")
    return {"data": progress}


@router.post("/courses/{course}/progress", response_model=ApiResponse[CourseProgressOut])
def update_course_progress(
    *,
    course: str,
    db: Session = Depends(get_db),
    body: ProgressUpdateRequest,
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Save the caller's progress percentage and current section.
    """
    logger.info(f"User {current_user.email} is updating progress for: {course}")
    percent = _validate_percent(body.progress_percent)
    try:
        progress = progress_service.update_progress_by_route(
            db, current_user, course, percent, body.current_section
        )
        if body.event_type is not None:
            progress_service.record_activity_event(
                db,
                current_user,
                resolve_course(db, course),
                body.event_type,
                {
                    "progressPercent": progress.progress_percent,
                    "currentSection": body.current_section,
                    "timestamp": utcnow().isoformat(),
                },
            )
        return {"data": progress, "message": "Progress saved"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating progress for {course}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating progress")


@router.post(
    "/courses/{course}/questions",
    response_model=ApiResponse[QuestionEventOut],
    status_code=status.HTTP_201_CREATED,
)
def record_question(
    *,
    course: str,
    db: Session = Depends(get_db),
    body: QuestionEventRequest,
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Record one answered question for analytics.
    """
    if not body.section_key:
        raise ValidationError("sectionKey is required", field="sectionKey")
    if not body.question_key:
        raise ValidationError("questionKey is required", field="questionKey")
    if not isinstance(body.is_correct, bool):
        raise ValidationError("isCorrect must be a boolean", field="isCorrect")

    course_row = resolve_course(db, course)
    try:
        event = progress_service.record_question_event(
            db,
            current_user,
            course_row,
            section_key=body.section_key,
            question_key=body.question_key,
            is_correct=body.is_correct,
            attempt_index=body.attempt_index,
            response_meta=body.response_meta,
        )
        logger.info(f"Question event {body.section_key}/{body.question_key} recorded for {current_user.email}")
        return {"data": QuestionEventOut.model_validate(event)}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error recording question event: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while recording the question event")
