from typing import List, Optional
from uuid import UUID
from app.schemas.common import CamelModel

class PlantStats(CamelModel):
    total_users: int
    active_enrollments: int
    completion_rate: float
    average_progress: float

class CourseStats(CamelModel):
    total_enrollments: int
    completed_enrollments: int
    average_progress: float
    completion_rate: float

class DashboardStats(CamelModel):
    total_users: int
    total_courses: int
    total_enrollments: int
    completed_enrollments: int
    completion_rate: float
    average_progress: float

class AnalyticsData(CamelModel):
    dashboard: DashboardStats
    plant_stats: Optional[PlantStats] = None
    course_stats: Optional[CourseStats] = None

class QuestionStats(CamelModel):
    question_key: str
    total_attempts: int
    correct_attempts: int
    unique_users: int
    success_rate: float

class AnalyticsOverview(CamelModel):
    total_users: int
    active_users: int
    total_enrollments: int
    completed_courses: int
    overall_completion_rate: float

class CoursePerformance(CamelModel):
    course_id: UUID
    course_name: str
    total_enrollments: int
    completed_enrollments: int
    completion_rate: float
    average_score: float

class PlantPerformance(CamelModel):
    plant_id: UUID
    plant_name: str
    total_users: int
    active_enrollments: int
    completed_courses: int
    completion_rate: float

class QuestionAnalytics(CamelModel):
    course_id: UUID
    course_name: str
    section_key: str
    question_key: str
    total_attempts: int
    correct_attempts: int
    accuracy_rate: float
    average_attempts: float

class EngagementMetrics(CamelModel):
    total_users: int
    active_users: int
    average_sessions_per_user: float
    total_events: int

class ComplianceRow(CamelModel):
    plant_id: UUID
    plant_name: str
    course_id: Optional[UUID] = None
    course_name: str
    required_users: int
    enrolled_users: int
    completed_users: int
    compliance_rate: float
    overdue_users: int

class TrendPoint(CamelModel):
    date: str
    enrollments: int
    completions: int
    average_progress: float

class DetailedAnalytics(CamelModel):
    overview: AnalyticsOverview
    course_performance: List[CoursePerformance]
    plant_performance: List[PlantPerformance]
    question_analytics: List[QuestionAnalytics]
    compliance_tracking: List[ComplianceRow]
    user_engagement: EngagementMetrics
    performance_trends: List[TrendPoint]
