from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.api.deps import get_db, require_admin
from app.core.errors import AppError, DatabaseError
from app.core.logger import get_logger
from app.schemas.analytics import AnalyticsData, DetailedAnalytics, QuestionStats
from app.schemas.common import ApiResponse
from app.services import analytics_service
from app.services.tenancy import UserContext

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin-analytics"])

# plant managers read analytics for their own plants
require_any_admin = require_admin()


@router.get("/analytics", response_model=ApiResponse[AnalyticsData])
def read_analytics(
    db: Session = Depends(get_db),
    plant_id: Optional[UUID] = Query(None, alias="plantId"),
    course_id: Optional[UUID] = Query(None, alias="courseId"),
    current_user: UserContext = Depends(require_any_admin),
) -> Any:
    """
    Dashboard figures, plus plant and course statistics when asked for.
    """
    logger.info(f"Analytics requested by {current_user.email} (plant: {plant_id}, course: {course_id})")
    try:
        data = AnalyticsData(dashboard=analytics_service.dashboard_stats(db, current_user))
        if plant_id:
            data.plant_stats = analytics_service.plant_stats(db, current_user, plant_id)
        if course_id:
            data.course_stats = analytics_service.course_stats(db, current_user, course_id, plant_id)
        return {"data": data}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error building analytics: {str(e)}")
        raise DatabaseError("An error occurred while building analytics")


@router.get("/analytics/questions", response_model=ApiResponse[List[QuestionStats]])
def read_question_stats(
    db: Session = Depends(get_db),
    plant_id: Optional[UUID] = Query(None, alias="plantId"),
    course_id: Optional[UUID] = Query(None, alias="courseId"),
    question_key: Optional[str] = Query(None, alias="questionKey", max_length=100),
    current_user: UserContext = Depends(require_any_admin),
) -> Any:
    return {"data": analytics_service.question_stats(db, current_user, plant_id, course_id, question_key)}


@router.get("/reports", response_model=ApiResponse[DetailedAnalytics])
def read_reports(
    db: Session = Depends(get_db),
    days: int = Query(30, ge=1, le=365),
    current_user: UserContext = Depends(require_any_admin),
) -> Any:
    """
    Full report: overview, course and plant performance, question analytics,
    compliance, engagement and daily trends.
    """
    logger.info(f"Detailed report requested by {current_user.email} ({days} days)")
    try:
        return {"data": analytics_service.detailed_analytics(db, current_user, days)}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error building report: {str(e)}")
        raise DatabaseError("An error occurred while building the report")
