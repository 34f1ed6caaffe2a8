from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.core.cache import cache
from app.core.errors import ConflictError, NotFoundError
from app.core.logger import get_logger
from app.db.base_class import utcnow
from app.models.enrollment import Enrollment
from app.models.enums import EnrollmentStatus
from app.models.profile import Profile
from app.models.progress import Progress
from app.schemas.common import build_page
from app.schemas.enrollment import (
    BulkStatusUpdate,
    EnrollmentCreate,
    EnrollmentStats,
    EnrollmentUpdate,
    EnrollmentWithRelations,
)
from app.services.content_service import get_course
from app.services.progress_service import initialize_user_progress
from app.services.tenancy import UserContext, apply_tenant_filter, require_plant_access

logger = get_logger(__name__)


def _enrollments_query(db: Session, context: UserContext):
    query = db.query(Enrollment).options(
        joinedload(Enrollment.user),
        joinedload(Enrollment.course),
        joinedload(Enrollment.plant),
    )
    return apply_tenant_filter(query, Enrollment.plant_id, context)


def list_enrollments(
    db: Session,
    context: UserContext,
    plant_id: Optional[UUID] = None,
    course_id: Optional[UUID] = None,
    user_id: Optional[UUID] = None,
    status: Optional[EnrollmentStatus] = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    query = _enrollments_query(db, context)
    if plant_id:
        require_plant_access(context, plant_id)
        query = query.filter(Enrollment.plant_id == plant_id)
    if course_id:
        query = query.filter(Enrollment.course_id == course_id)
    if user_id:
        query = query.filter(Enrollment.user_id == user_id)
    if status:
        query = query.filter(Enrollment.status == status)

    total = query.count()
    enrollments = (
        query.order_by(Enrollment.enrolled_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    items = [EnrollmentWithRelations.model_validate(enrollment) for enrollment in enrollments]
    return build_page(items, total, page, limit)


def get_enrollment(db: Session, context: UserContext, enrollment_id: UUID) -> Enrollment:
    enrollment = _enrollments_query(db, context).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise NotFoundError("Enrollment not found")
    return enrollment


def create_enrollment(db: Session, context: UserContext, data: EnrollmentCreate) -> Enrollment:
    """Enroll a learner and create their 0% progress row."""
    profile = db.query(Profile).filter(Profile.id == data.user_id).first()
    if not profile:
        raise NotFoundError("User not found")
    course = get_course(db, data.course_id)

    plant_id = data.plant_id or profile.plant_id
    require_plant_access(context, plant_id)

    existing = db.query(Enrollment.id).filter(
        Enrollment.user_id == profile.id,
        Enrollment.course_id == course.id,
    ).first()
    if existing:
        raise ConflictError("User is already enrolled in this course")

    enrollment = Enrollment(
        user_id=profile.id,
        course_id=course.id,
        plant_id=plant_id,
        status=data.status,
        enrolled_at=utcnow(),
        completed_at=utcnow() if data.status == EnrollmentStatus.COMPLETED else None,
    )
    db.add(enrollment)
    db.flush()
    initialize_user_progress(db, profile.id, plant_id, course.id)
    db.commit()
    cache.invalidate_for("enrollment_update")
    logger.info(f"Enrolled user {profile.id} in course {course.slug}")
    return get_enrollment(db, context, enrollment.id)


def _apply_status(enrollment: Enrollment, status: EnrollmentStatus, completed_at=None) -> None:
    enrollment.status = status
    if status == EnrollmentStatus.COMPLETED:
        enrollment.completed_at = completed_at or enrollment.completed_at or utcnow()
    else:
        enrollment.completed_at = None


def update_enrollment(db: Session, context: UserContext, enrollment_id: UUID, update: EnrollmentUpdate) -> Enrollment:
    enrollment = get_enrollment(db, context, enrollment_id)
    if update.status is not None:
        _apply_status(enrollment, update.status, update.completed_at)
    elif update.completed_at is not None:
        enrollment.completed_at = update.completed_at
    db.commit()
    cache.invalidate_for("enrollment_update")
    return get_enrollment(db, context, enrollment.id)


def bulk_update_status(db: Session, context: UserContext, data: BulkStatusUpdate) -> int:
    enrollments = apply_tenant_filter(
        db.query(Enrollment).filter(Enrollment.id.in_(data.enrollment_ids)),
        Enrollment.plant_id,
        context,
    ).all()
    for enrollment in enrollments:
        _apply_status(enrollment, data.status)
    db.commit()
    cache.invalidate_for("enrollment_update")
    logger.info(f"Bulk status update to {data.status.value}: {len(enrollments)} of {len(data.enrollment_ids)} enrollments")
    return len(enrollments)


def delete_enrollment(db: Session, context: UserContext, enrollment_id: UUID) -> None:
    enrollment = get_enrollment(db, context, enrollment_id)
    db.query(Progress).filter(
        Progress.user_id == enrollment.user_id,
        Progress.course_id == enrollment.course_id,
    ).delete(synchronize_session=False)
    db.delete(enrollment)
    db.commit()
    cache.invalidate_for("enrollment_update")


def enrollment_stats(db: Session, context: UserContext, plant_id: Optional[UUID] = None) -> EnrollmentStats:
    query = apply_tenant_filter(
        db.query(Enrollment.status, func.count(Enrollment.id)),
        Enrollment.plant_id,
        context,
    )
    if plant_id:
        require_plant_access(context, plant_id)
        query = query.filter(Enrollment.plant_id == plant_id)
    counts = {status: count for status, count in query.group_by(Enrollment.status).all()}

    enrolled = counts.get(EnrollmentStatus.ENROLLED, 0)
    in_progress = counts.get(EnrollmentStatus.IN_PROGRESS, 0)
    completed = counts.get(EnrollmentStatus.COMPLETED, 0)
    total = enrolled + in_progress + completed
    return EnrollmentStats(
        total_enrollments=total,
        enrolled=enrolled,
        in_progress=in_progress,
        completed=completed,
        completion_rate=round(completed / total * 100, 1) if total else 0.0,
    )


def overdue_enrollments(db: Session, context: UserContext, days: int = 30) -> List[Enrollment]:
    """Enrollments still not started ``days`` after enrolment."""
    cutoff = utcnow() - timedelta(days=days)
    return (
        _enrollments_query(db, context)
        .filter(
            Enrollment.status == EnrollmentStatus.ENROLLED,
            Enrollment.enrolled_at < cutoff,
        )
        .order_by(Enrollment.enrolled_at)
        .all()
    )
