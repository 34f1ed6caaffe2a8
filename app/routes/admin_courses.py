from typing import Any, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.api.deps import get_db, require_org_admin
from app.core.errors import AppError, DatabaseError
from app.core.logger import get_logger
from app.schemas.common import ApiResponse
from app.schemas.course import CourseCreate, CourseListData, CourseOut, CourseUpdate
from app.services import course_service
from app.services.content_service import get_course
from app.services.tenancy import UserContext

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/admin/courses", tags=["admin-courses"])


@router.get("", response_model=ApiResponse[CourseListData])
def read_courses(
    db: Session = Depends(get_db),
    is_published: Optional[bool] = Query(None, alias="isPublished"),
    search: Optional[str] = Query(None, max_length=100),
    version: Optional[str] = Query(None, max_length=20),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    Courses with enrollment statistics for the caller's plants.
    """
    logger.info(f"Listing courses for admin: {current_user.email}")
    try:
        data = course_service.list_courses_with_stats(
            db, current_user, is_published=is_published, search=search, version=version
        )
        logger.info(f"Found {data.statistics.total_courses} courses")
        return {"data": data}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error listing courses: {str(e)}")
        raise DatabaseError("An error occurred while fetching courses")


@router.post("", response_model=ApiResponse[CourseOut], status_code=status.HTTP_201_CREATED)
def create_course(
    *,
    db: Session = Depends(get_db),
    course_in: CourseCreate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    logger.info(f"Creating course {course_in.slug} by admin: {current_user.email}")
    try:
        course = course_service.create_course(db, course_in)
        return {"data": CourseOut.model_validate(course), "message": "Course created"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error creating course: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while creating the course")


@router.get("/{course_id}", response_model=ApiResponse[CourseOut])
def read_course(
    course_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    return {"data": CourseOut.model_validate(get_course(db, course_id))}


@router.patch("/{course_id}", response_model=ApiResponse[CourseOut])
def update_course(
    *,
    course_id: UUID,
    db: Session = Depends(get_db),
    course_in: CourseUpdate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    logger.info(f"Updating course {course_id} by admin: {current_user.email}")
    try:
        course = course_service.update_course(db, course_id, course_in)
        return {"data": CourseOut.model_validate(course), "message": "Course updated"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating course {course_id}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating the course")


@router.delete("/{course_id}", response_model=ApiResponse[dict])
def delete_course(
    course_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    Delete a course with its languages, content, enrollments and progress.
    """
    logger.info(f"Deleting course {course_id} by admin: {current_user.email}")
    try:
        course_service.delete_course(db, course_id)
        return {"message": "Course deleted"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting course {course_id}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while deleting the course")
