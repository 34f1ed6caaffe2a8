"""
SQLAlchemy models for the database.
"""

from app.models.enums import (
    AdminRoleType,
    BlockType,
    ContentType,
    EnrollmentStatus,
    EventType,
    Language,
    QuestionType,
    UserStatus,
)
from app.models.plant import Plant
from app.models.course import Course, CourseLanguage
from app.models.profile import Profile
from app.models.admin_role import AdminRole
from app.models.enrollment import Enrollment
from app.models.progress import Progress
from app.models.events import ActivityEvent, QuestionEvent
from app.models.content import CourseSection, ContentBlock, QuizQuestion, ContentTranslation
from app.models.section_progress import SectionProgress

__all__ = [
    "AdminRoleType",
    "BlockType",
    "ContentType",
    "EnrollmentStatus",
    "EventType",
    "Language",
    "QuestionType",
    "UserStatus",
    "Plant",
    "Course",
    "CourseLanguage",
    "Profile",
    "AdminRole",
    "Enrollment",
    "Progress",
    "ActivityEvent",
    "QuestionEvent",
    "CourseSection",
    "ContentBlock",
    "QuizQuestion",
    "ContentTranslation",
    "SectionProgress",
]
