from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.api.deps import get_db, require_org_admin
from app.core.errors import AppError, DatabaseError, ValidationError
from app.core.logger import get_logger
from app.models.enums import EnrollmentStatus
from app.schemas.common import ApiResponse, Paginated
from app.schemas.enrollment import (
    BulkStatusUpdate,
    BulkUpdateResult,
    EnrollmentCreate,
    EnrollmentStats,
    EnrollmentUpdate,
    EnrollmentWithRelations,
)
from app.services import enrollment_service
from app.services.tenancy import UserContext

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/admin/enrollments", tags=["admin-enrollments"])


@router.get("", response_model=ApiResponse[Paginated[EnrollmentWithRelations]])
def read_enrollments(
    db: Session = Depends(get_db),
    plant_id: Optional[UUID] = Query(None, alias="plantId"),
    course_id: Optional[UUID] = Query(None, alias="courseId"),
    user_id: Optional[UUID] = Query(None, alias="userId"),
    enrollment_status: Optional[EnrollmentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    List enrollments in the caller's plants, newest first.
    """
    logger.info(f"Listing enrollments for admin: {current_user.email} (page: {page}, limit: {limit})")
    try:
        data = enrollment_service.list_enrollments(
            db, current_user,
            plant_id=plant_id, course_id=course_id, user_id=user_id, status=enrollment_status,
            page=page, limit=limit,
        )
        return {"data": data}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error listing enrollments: {str(e)}")
        raise DatabaseError("An error occurred while fetching enrollments")


@router.post("", response_model=ApiResponse[EnrollmentWithRelations], status_code=status.HTTP_201_CREATED)
def create_enrollment(
    *,
    db: Session = Depends(get_db),
    enrollment_in: EnrollmentCreate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    Enroll a user in a course and initialise their progress.
    """
    logger.info(
        f"Enrolling user {enrollment_in.user_id} in course {enrollment_in.course_id} by admin: {current_user.email}"
    )
    try:
        enrollment = enrollment_service.create_enrollment(db, current_user, enrollment_in)
        return {"data": EnrollmentWithRelations.model_validate(enrollment), "message": "Enrollment created"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error creating enrollment: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while creating the enrollment")


@router.patch("", response_model=ApiResponse[EnrollmentWithRelations])
def update_enrollment(
    *,
    db: Session = Depends(get_db),
    enrollment_in: EnrollmentUpdate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    if enrollment_in.enrollment_id is None:
        raise ValidationError("enrollmentId is required", field="enrollmentId")
    logger.info(f"Updating enrollment {enrollment_in.enrollment_id} by admin: {current_user.email}")
    try:
        enrollment = enrollment_service.update_enrollment(
            db, current_user, enrollment_in.enrollment_id, enrollment_in
        )
        return {"data": EnrollmentWithRelations.model_validate(enrollment), "message": "Enrollment updated"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating enrollment: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating the enrollment")


@router.post("/bulk-status", response_model=ApiResponse[BulkUpdateResult])
def bulk_update_status(
    *,
    db: Session = Depends(get_db),
    body: BulkStatusUpdate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    Set one status on many enrollments; ids outside the caller's plants are skipped.
    """
    try:
        updated = enrollment_service.bulk_update_status(db, current_user, body)
        return {"data": BulkUpdateResult(updated=updated), "message": f"{updated} enrollments updated"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error in bulk status update: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating enrollments")


@router.get("/stats", response_model=ApiResponse[EnrollmentStats])
def read_enrollment_stats(
    db: Session = Depends(get_db),
    plant_id: Optional[UUID] = Query(None, alias="plantId"),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    return {"data": enrollment_service.enrollment_stats(db, current_user, plant_id)}


@router.get("/overdue", response_model=ApiResponse[List[EnrollmentWithRelations]])
def read_overdue_enrollments(
    db: Session = Depends(get_db),
    days: int = Query(30, ge=1, le=365),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    Enrollments that have not been started within ``days`` of enrolment.
    """
    enrollments = enrollment_service.overdue_enrollments(db, current_user, days)
    logger.info(f"Found {len(enrollments)} enrollments overdue by {days} days")
    return {"data": [EnrollmentWithRelations.model_validate(enrollment) for enrollment in enrollments]}


@router.delete("/{enrollment_id}", response_model=ApiResponse[dict])
def delete_enrollment(
    enrollment_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    logger.info(f"Deleting enrollment {enrollment_id} by admin: {current_user.email}")
    try:
        enrollment_service.delete_enrollment(db, current_user, enrollment_id)
        return {"message": "Enrollment deleted"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting enrollment {enrollment_id}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while deleting the enrollment")
