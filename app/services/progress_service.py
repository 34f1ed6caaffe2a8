from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from app.core.cache import cache
from app.core.errors import NotFoundError
from app.core.logger import get_logger
from app.db.base_class import utcnow
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.enums import EnrollmentStatus, EventType
from app.models.events import ActivityEvent, QuestionEvent
from app.models.progress import Progress
from app.schemas.progress import AllProgressOut, CourseProgressOut, ProgressUser, UserCourseProgress
from app.services.course_catalog import resolve_course
from app.services.tenancy import UserContext

logger = get_logger(__name__)

INITIAL_SECTION = "introduction"


def status_for_percent(percent: float) -> EnrollmentStatus:
    if percent >= 100:
        return EnrollmentStatus.COMPLETED
    if percent > 0:
        return EnrollmentStatus.IN_PROGRESS
    return EnrollmentStatus.ENROLLED


def clamp_percent(percent: float) -> float:
    return max(0, min(100, percent))


def round_percent(percent: float) -> int:
    # halves round up: 12.5 -> 13
    return int(percent + 0.5)


def sync_enrollment_status(enrollment: Enrollment, percent: float) -> None:
    """Enrollment status follows progress; ``completed_at`` only while complete."""
    enrollment.status = status_for_percent(percent)
    if enrollment.status == EnrollmentStatus.COMPLETED:
        if enrollment.completed_at is None:
            enrollment.completed_at = utcnow()
    else:
        enrollment.completed_at = None


def _get_enrollment(db: Session, user_id: UUID, course_id: UUID) -> Optional[Enrollment]:
    return db.query(Enrollment).filter(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id,
    ).first()


def _get_progress(db: Session, user_id: UUID, course_id: UUID) -> Optional[Progress]:
    return db.query(Progress).filter(
        Progress.user_id == user_id,
        Progress.course_id == course_id,
    ).first()


def _course_progress_out(course: Course, enrollment: Enrollment, progress: Optional[Progress]) -> CourseProgressOut:
    return CourseProgressOut(
        course_id=course.id,
        course_slug=course.slug,
        enrollment_id=enrollment.id,
        status=enrollment.status,
        enrolled_at=enrollment.enrolled_at,
        completed_at=enrollment.completed_at,
        progress_percent=progress.progress_percent if progress else 0,
        current_section=progress.current_section if progress else None,
        last_active_at=progress.last_active_at if progress else None,
    )


def initialize_user_progress(db: Session, user_id: UUID, plant_id: UUID, course_id: UUID) -> Progress:
    """Create the 0% progress row that accompanies a new enrollment."""
    progress = _get_progress(db, user_id, course_id)
    if progress:
        return progress
    progress = Progress(
        user_id=user_id,
        course_id=course_id,
        plant_id=plant_id,
        progress_percent=0,
        current_section=INITIAL_SECTION,
        last_active_at=utcnow(),
    )
    db.add(progress)
    db.flush()
    return progress


def get_progress_by_route(db: Session, context: UserContext, route: str) -> Optional[CourseProgressOut]:
    course = resolve_course(db, route)
    enrollment = _get_enrollment(db, context.user_id, course.id)
    if not enrollment:
        return None
    progress = _get_progress(db, context.user_id, course.id)
    if not progress:
        return None
    return _course_progress_out(course, enrollment, progress)


def update_progress_by_route(
    db: Session,
    context: UserContext,
    route: str,
    percent: float,
    current_section: Optional[str] = None,
) -> CourseProgressOut:
    course = resolve_course(db, route)
    enrollment = _get_enrollment(db, context.user_id, course.id)
    if not enrollment:
        logger.warning(f"Progress update for unenrolled user {context.user_id} on course {course.slug}")
        raise NotFoundError("You are not enrolled in this course")

    percent = clamp_percent(percent)
    progress = _get_progress(db, context.user_id, course.id)
    if not progress:
        progress = initialize_user_progress(db, context.user_id, enrollment.plant_id, course.id)

    progress.progress_percent = round_percent(percent)
    if current_section is not None:
        progress.current_section = current_section
    progress.last_active_at = utcnow()
    sync_enrollment_status(enrollment, percent)

    db.commit()
    db.refresh(progress)
    db.refresh(enrollment)
    cache.invalidate_for("progress_update")
    logger.info(f"Progress for user {context.user_id} on {course.slug} set to {progress.progress_percent}%")
    return _course_progress_out(course, enrollment, progress)


def record_activity_event(
    db: Session,
    context: UserContext,
    course: Course,
    event_type: EventType,
    meta: Optional[Dict[str, Any]] = None,
) -> ActivityEvent:
    event = ActivityEvent(
        user_id=context.user_id,
        course_id=course.id,
        plant_id=context.plant_id,
        event_type=event_type,
        meta=meta,
        occurred_at=utcnow(),
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def record_question_event(
    db: Session,
    context: UserContext,
    course: Course,
    section_key: str,
    question_key: str,
    is_correct: bool,
    attempt_index: int = 1,
    response_meta: Optional[Dict[str, Any]] = None,
) -> QuestionEvent:
    event = QuestionEvent(
        user_id=context.user_id,
        course_id=course.id,
        plant_id=context.plant_id,
        section_key=section_key,
        question_key=question_key,
        is_correct=is_correct,
        attempt_index=attempt_index,
        response_meta=response_meta,
        answered_at=utcnow(),
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    cache.invalidate("analytics")
    return event


def get_all_user_progress(db: Session, context: UserContext) -> AllProgressOut:
    enrollments = (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course))
        .filter(Enrollment.user_id == context.user_id)
        .order_by(Enrollment.enrolled_at.desc())
        .all()
    )
    progress_by_course = {
        row.course_id: row
        for row in db.query(Progress).filter(Progress.user_id == context.user_id).all()
    }

    items = []
    for enrollment in enrollments:
        progress = progress_by_course.get(enrollment.course_id)
        items.append(UserCourseProgress(
            enrollment_id=enrollment.id,
            course_id=enrollment.course_id,
            course_slug=enrollment.course.slug,
            course_title=enrollment.course.title,
            status=enrollment.status,
            enrolled_at=enrollment.enrolled_at,
            completed_at=enrollment.completed_at,
            progress_percent=progress.progress_percent if progress else 0,
            current_section=progress.current_section if progress else None,
            last_active_at=progress.last_active_at if progress else enrollment.enrolled_at,
        ))

    return AllProgressOut(
        progress=items,
        user=ProgressUser(id=context.user_id, plant_id=context.plant_id),
    )
