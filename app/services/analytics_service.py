"""
Reporting queries for the admin dashboard.

All figures are limited to the caller's accessible plants; an explicit
``plant_id`` narrows them further and must itself be accessible. Rates are
percentages rounded to one decimal.
"""
from datetime import timedelta
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, case, distinct, func
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.logger import get_logger
from app.db.base_class import utcnow
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.enums import EnrollmentStatus, UserStatus
from app.models.events import ActivityEvent, QuestionEvent
from app.models.plant import Plant
from app.models.profile import Profile
from app.models.progress import Progress
from app.schemas.analytics import (
    AnalyticsOverview,
    ComplianceRow,
    CoursePerformance,
    CourseStats,
    DashboardStats,
    DetailedAnalytics,
    EngagementMetrics,
    PlantPerformance,
    PlantStats,
    QuestionAnalytics,
    QuestionStats,
    TrendPoint,
)
from app.services.course_service import plants_cache_key
from app.services.tenancy import UserContext, apply_tenant_filter, require_plant_access

logger = get_logger(__name__)

COMPLETED = EnrollmentStatus.COMPLETED
IN_PROGRESS = EnrollmentStatus.IN_PROGRESS


def _round1(value) -> float:
    return round(float(value or 0), 1)


def _rate(part, whole) -> float:
    return _round1(part / whole * 100) if whole else 0.0


def _scoped(query, column, context: UserContext, plant_id: Optional[UUID] = None):
    query = apply_tenant_filter(query, column, context)
    if plant_id:
        require_plant_access(context, plant_id)
        query = query.filter(column == plant_id)
    return query


def _count_completed():
    return func.count(case((Enrollment.status == COMPLETED, 1)))


def _count_in_progress():
    return func.count(case((Enrollment.status == IN_PROGRESS, 1)))


def plant_stats(db: Session, context: UserContext, plant_id: UUID) -> PlantStats:
    require_plant_access(context, plant_id)
    enrollments = db.query(
        func.count(Enrollment.id).label("total"),
        _count_completed().label("completed"),
        _count_in_progress().label("in_progress"),
    ).filter(Enrollment.plant_id == plant_id).one()
    average_progress = db.query(func.avg(Progress.progress_percent)).filter(Progress.plant_id == plant_id).scalar()
    total_users = db.query(func.count(Profile.id)).filter(Profile.plant_id == plant_id).scalar()

    return PlantStats(
        total_users=total_users or 0,
        active_enrollments=enrollments.in_progress or 0,
        completion_rate=_rate(enrollments.completed, enrollments.total),
        average_progress=_round1(average_progress),
    )


def course_stats(db: Session, context: UserContext, course_id: UUID, plant_id: Optional[UUID] = None) -> CourseStats:
    enrollments = _scoped(
        db.query(func.count(Enrollment.id).label("total"), _count_completed().label("completed")),
        Enrollment.plant_id,
        context,
        plant_id,
    ).filter(Enrollment.course_id == course_id).one()
    average_progress = _scoped(
        db.query(func.avg(Progress.progress_percent)),
        Progress.plant_id,
        context,
        plant_id,
    ).filter(Progress.course_id == course_id).scalar()

    return CourseStats(
        total_enrollments=enrollments.total or 0,
        completed_enrollments=enrollments.completed or 0,
        average_progress=_round1(average_progress),
        completion_rate=_rate(enrollments.completed, enrollments.total),
    )


def dashboard_stats(db: Session, context: UserContext) -> DashboardStats:
    def load() -> DashboardStats:
        total_users = _scoped(db.query(func.count(Profile.id)), Profile.plant_id, context).scalar() or 0
        enrollments = _scoped(
            db.query(func.count(Enrollment.id).label("total"), _count_completed().label("completed")),
            Enrollment.plant_id,
            context,
        ).one()
        average_progress = _scoped(
            db.query(func.avg(Progress.progress_percent)), Progress.plant_id, context
        ).scalar()
        return DashboardStats(
            total_users=total_users,
            total_courses=db.query(func.count(Course.id)).scalar() or 0,
            total_enrollments=enrollments.total or 0,
            completed_enrollments=enrollments.completed or 0,
            completion_rate=_rate(enrollments.completed, enrollments.total),
            average_progress=_round1(average_progress),
        )

    return cache.get_or_set("dashboard-stats", plants_cache_key(context), load)


def question_stats(
    db: Session,
    context: UserContext,
    plant_id: Optional[UUID] = None,
    course_id: Optional[UUID] = None,
    question_key: Optional[str] = None,
) -> List[QuestionStats]:
    query = _scoped(
        db.query(
            QuestionEvent.question_key,
            func.count(QuestionEvent.id).label("total"),
            func.count(case((QuestionEvent.is_correct.is_(True), 1))).label("correct"),
            func.count(distinct(QuestionEvent.user_id)).label("users"),
        ),
        QuestionEvent.plant_id,
        context,
        plant_id,
    )
    if course_id:
        query = query.filter(QuestionEvent.course_id == course_id)
    if question_key:
        query = query.filter(QuestionEvent.question_key == question_key)
    rows = query.group_by(QuestionEvent.question_key).order_by(QuestionEvent.question_key).all()
    return [
        QuestionStats(
            question_key=row.question_key,
            total_attempts=row.total,
            correct_attempts=row.correct,
            unique_users=row.users,
            success_rate=_rate(row.correct, row.total),
        )
        for row in rows
    ]


def engagement_metrics(db: Session, context: UserContext, plant_id: Optional[UUID] = None) -> EngagementMetrics:
    total_users = _scoped(db.query(func.count(Profile.id)), Profile.plant_id, context, plant_id).scalar() or 0
    activity = _scoped(
        db.query(
            func.count(distinct(ActivityEvent.user_id)).label("active_users"),
            func.count(ActivityEvent.id).label("events"),
        ),
        ActivityEvent.plant_id,
        context,
        plant_id,
    ).one()
    active_users = activity.active_users or 0
    return EngagementMetrics(
        total_users=total_users,
        active_users=active_users,
        average_sessions_per_user=_round1(active_users / total_users) if total_users else 0.0,
        total_events=activity.events or 0,
    )


def _users_per_plant(db: Session, context: UserContext, plant_id: Optional[UUID] = None) -> Dict[UUID, int]:
    rows = _scoped(
        db.query(Profile.plant_id, func.count(Profile.id)),
        Profile.plant_id,
        context,
        plant_id,
    ).group_by(Profile.plant_id).all()
    return {row[0]: row[1] for row in rows}


def _visible_plants(db: Session, context: UserContext, plant_id: Optional[UUID] = None) -> List[Plant]:
    return _scoped(db.query(Plant), Plant.id, context, plant_id).order_by(Plant.name).all()


def compliance_tracking(db: Session, context: UserContext, plant_id: Optional[UUID] = None) -> List[ComplianceRow]:
    """Per plant and course: how many of the plant's users have completed it."""
    plants = _visible_plants(db, context, plant_id)
    users = _users_per_plant(db, context, plant_id)
    rows = _scoped(
        db.query(
            Enrollment.plant_id,
            Enrollment.course_id,
            Course.title,
            func.count(distinct(Enrollment.user_id)).label("enrolled"),
            _count_completed().label("completed"),
        ).join(Course, Course.id == Enrollment.course_id),
        Enrollment.plant_id,
        context,
        plant_id,
    ).group_by(Enrollment.plant_id, Enrollment.course_id, Course.title).all()

    by_plant: Dict[UUID, list] = {}
    for row in rows:
        by_plant.setdefault(row.plant_id, []).append(row)

    result = []
    for plant in plants:
        required = users.get(plant.id, 0)
        course_rows = by_plant.get(plant.id)
        if not course_rows:
            result.append(ComplianceRow(
                plant_id=plant.id,
                plant_name=plant.name,
                course_id=None,
                course_name="All Courses",
                required_users=required,
                enrolled_users=0,
                completed_users=0,
                compliance_rate=0.0,
                overdue_users=required,
            ))
            continue
        for row in sorted(course_rows, key=lambda r: r.title):
            result.append(ComplianceRow(
                plant_id=plant.id,
                plant_name=plant.name,
                course_id=row.course_id,
                course_name=row.title,
                required_users=required,
                enrolled_users=row.enrolled,
                completed_users=row.completed,
                compliance_rate=_rate(row.completed, required),
                overdue_users=max(0, required - row.completed),
            ))
    return result


def performance_trends(
    db: Session,
    context: UserContext,
    days: int = 30,
    plant_id: Optional[UUID] = None,
) -> List[TrendPoint]:
    cutoff = utcnow() - timedelta(days=days)
    day = func.date(Enrollment.enrolled_at)
    rows = _scoped(
        db.query(
            day.label("day"),
            func.count(Enrollment.id).label("enrollments"),
            _count_completed().label("completions"),
            func.avg(Progress.progress_percent).label("average_progress"),
        ).outerjoin(
            Progress,
            and_(Progress.user_id == Enrollment.user_id, Progress.course_id == Enrollment.course_id),
        ),
        Enrollment.plant_id,
        context,
        plant_id,
    ).filter(Enrollment.enrolled_at >= cutoff).group_by(day).order_by(day).all()
    return [
        TrendPoint(
            date=str(row.day),
            enrollments=row.enrollments,
            completions=row.completions,
            average_progress=_round1(row.average_progress),
        )
        for row in rows
    ]


def _overview(db: Session, context: UserContext) -> AnalyticsOverview:
    profiles = _scoped(db.query(Profile), Profile.plant_id, context)
    total_users = profiles.count()
    active_users = profiles.filter(Profile.status == UserStatus.ACTIVE).count()
    enrollments = _scoped(
        db.query(func.count(Enrollment.id).label("total"), _count_completed().label("completed")),
        Enrollment.plant_id,
        context,
    ).one()
    return AnalyticsOverview(
        total_users=total_users,
        active_users=active_users,
        total_enrollments=enrollments.total or 0,
        completed_courses=enrollments.completed or 0,
        overall_completion_rate=_rate(enrollments.completed, enrollments.total),
    )


def _course_performance(db: Session, context: UserContext) -> List[CoursePerformance]:
    enrollment_rows = _scoped(
        db.query(
            Enrollment.course_id,
            func.count(Enrollment.id).label("total"),
            _count_completed().label("completed"),
        ),
        Enrollment.plant_id,
        context,
    ).group_by(Enrollment.course_id).all()
    enrollments = {row.course_id: row for row in enrollment_rows}
    progress_rows = _scoped(
        db.query(Progress.course_id, func.avg(Progress.progress_percent).label("avg_progress")),
        Progress.plant_id,
        context,
    ).group_by(Progress.course_id).all()
    progress = {row.course_id: row.avg_progress for row in progress_rows}

    result = []
    for course in db.query(Course).order_by(Course.title).all():
        row = enrollments.get(course.id)
        total = row.total if row else 0
        completed = row.completed if row else 0
        result.append(CoursePerformance(
            course_id=course.id,
            course_name=course.title,
            total_enrollments=total,
            completed_enrollments=completed,
            completion_rate=_rate(completed, total),
            average_score=_round1(progress.get(course.id)),
        ))
    return result


def _plant_performance(db: Session, context: UserContext) -> List[PlantPerformance]:
    users = _users_per_plant(db, context)
    enrollment_rows = _scoped(
        db.query(
            Enrollment.plant_id,
            _count_in_progress().label("in_progress"),
            _count_completed().label("completed"),
        ),
        Enrollment.plant_id,
        context,
    ).group_by(Enrollment.plant_id).all()
    enrollments = {row.plant_id: row for row in enrollment_rows}

    result = []
    for plant in _visible_plants(db, context):
        row = enrollments.get(plant.id)
        total_users = users.get(plant.id, 0)
        completed = row.completed if row else 0
        result.append(PlantPerformance(
            plant_id=plant.id,
            plant_name=plant.name,
            total_users=total_users,
            active_enrollments=row.in_progress if row else 0,
            completed_courses=completed,
            completion_rate=_rate(completed, total_users),
        ))
    return result


def _question_analytics(db: Session, context: UserContext) -> List[QuestionAnalytics]:
    rows = _scoped(
        db.query(
            QuestionEvent.course_id,
            Course.title,
            QuestionEvent.section_key,
            QuestionEvent.question_key,
            func.count(QuestionEvent.id).label("total"),
            func.count(case((QuestionEvent.is_correct.is_(True), 1))).label("correct"),
            func.avg(QuestionEvent.attempt_index).label("avg_attempts"),
        ).join(Course, Course.id == QuestionEvent.course_id),
        QuestionEvent.plant_id,
        context,
    ).group_by(
        QuestionEvent.course_id, Course.title, QuestionEvent.section_key, QuestionEvent.question_key
    ).order_by(Course.title, QuestionEvent.section_key, QuestionEvent.question_key).all()
    return [
        QuestionAnalytics(
            course_id=row.course_id,
            course_name=row.title,
            section_key=row.section_key,
            question_key=row.question_key,
            total_attempts=row.total,
            correct_attempts=row.correct,
            accuracy_rate=_rate(row.correct, row.total),
            average_attempts=_round1(row.avg_attempts),
        )
        for row in rows
    ]


def detailed_analytics(db: Session, context: UserContext, days: int = 30) -> DetailedAnalytics:
    def load() -> DetailedAnalytics:
        logger.info(f"Building detailed analytics for plants {plants_cache_key(context)}")
        return DetailedAnalytics(
            overview=_overview(db, context),
            course_performance=_course_performance(db, context),
            plant_performance=_plant_performance(db, context),
            question_analytics=_question_analytics(db, context),
            compliance_tracking=compliance_tracking(db, context),
            user_engagement=engagement_metrics(db, context),
            performance_trends=performance_trends(db, context, days=days),
        )

    return cache.get_or_set("analytics", f"{plants_cache_key(context)}|{days}", load)
