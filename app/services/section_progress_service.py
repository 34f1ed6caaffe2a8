from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.logger import get_logger
from app.db.base_class import utcnow
from app.models.content import CourseSection
from app.models.enrollment import Enrollment
from app.models.progress import Progress
from app.models.section_progress import SectionProgress
from app.schemas.content import SectionProgressRequest
from app.services.content_service import get_course, get_published_section
from app.services.progress_service import initialize_user_progress, round_percent, sync_enrollment_status
from app.services.tenancy import UserContext

logger = get_logger(__name__)


def get_section_progress(db: Session, context: UserContext, course_id: UUID, section_key: str) -> Optional[SectionProgress]:
    course = get_course(db, course_id)
    section = get_published_section(db, course.id, section_key)
    return db.query(SectionProgress).filter(
        SectionProgress.user_id == context.user_id,
        SectionProgress.section_id == section.id,
    ).first()


def recompute_course_progress(db: Session, context: UserContext, course_id: UUID) -> int:
    """Course progress is the rounded share of published sections completed."""
    published_ids = [
        row.id for row in db.query(CourseSection.id).filter(
            CourseSection.course_id == course_id,
            CourseSection.is_published.is_(True),
        ).all()
    ]
    total = len(published_ids)
    completed = 0
    if published_ids:
        completed = db.query(SectionProgress).filter(
            SectionProgress.user_id == context.user_id,
            SectionProgress.section_id.in_(published_ids),
            SectionProgress.is_completed.is_(True),
        ).count()
    raw_percent = completed / total * 100 if total else 0
    percent = round_percent(raw_percent)

    progress = db.query(Progress).filter(
        Progress.user_id == context.user_id,
        Progress.course_id == course_id,
    ).first()
    if not progress:
        progress = initialize_user_progress(db, context.user_id, context.plant_id, course_id)
    progress.progress_percent = percent
    progress.sections_completed = completed
    progress.total_sections = total
    progress.last_active_at = utcnow()

    enrollment = db.query(Enrollment).filter(
        Enrollment.user_id == context.user_id,
        Enrollment.course_id == course_id,
    ).first()
    if enrollment:
        sync_enrollment_status(enrollment, raw_percent)
    return percent


def update_section_progress(
    db: Session,
    context: UserContext,
    course_id: UUID,
    section_key: str,
    update: SectionProgressRequest,
) -> tuple:
    course = get_course(db, course_id)
    section = get_published_section(db, course.id, section_key)

    record = db.query(SectionProgress).filter(
        SectionProgress.user_id == context.user_id,
        SectionProgress.section_id == section.id,
    ).first()
    now = utcnow()
    if record is None:
        record = SectionProgress(
            user_id=context.user_id,
            section_id=section.id,
            plant_id=context.plant_id,
        )
        db.add(record)
    record.is_completed = update.is_completed
    record.time_spent_seconds = update.time_spent_seconds
    record.last_viewed_at = now
    if update.is_completed:
        record.completed_at = record.completed_at or now
    else:
        record.completed_at = None
    db.flush()

    percent = recompute_course_progress(db, context, course.id)
    db.commit()
    db.refresh(record)
    cache.invalidate_for("progress_update")
    logger.info(f"Section {section_key} progress saved for user {context.user_id}; course at {percent}%")
    return record, percent
