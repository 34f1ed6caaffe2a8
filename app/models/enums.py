import enum
from sqlalchemy import Enum


class AdminRoleType(str, enum.Enum):
    HR_ADMIN = "hr_admin"
    DEV_ADMIN = "dev_admin"
    PLANT_MANAGER = "plant_manager"


class EnrollmentStatus(str, enum.Enum):
    ENROLLED = "enrolled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class EventType(str, enum.Enum):
    VIEW_SECTION = "view_section"
    START_COURSE = "start_course"
    COMPLETE_COURSE = "complete_course"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class BlockType(str, enum.Enum):
    HERO = "hero"
    TEXT = "text"
    CARD = "card"
    IMAGE = "image"
    TABLE = "table"
    LIST = "list"
    GRID = "grid"
    CALLOUT = "callout"
    QUOTE = "quote"
    DIVIDER = "divider"
    VIDEO = "video"
    AUDIO = "audio"


class QuestionType(str, enum.Enum):
    TRUE_FALSE = "true-false"
    MULTIPLE_CHOICE = "multiple-choice"


class ContentType(str, enum.Enum):
    SECTION = "section"
    CONTENT_BLOCK = "content_block"
    QUIZ_QUESTION = "quiz_question"


class Language(str, enum.Enum):
    EN = "en"
    ES = "es"
    FR = "fr"
    DE = "de"


def pg_enum(enum_cls, name: str) -> Enum:
    """Database enum stored by value, e.g. ``'in_progress'`` rather than ``'IN_PROGRESS'``."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )
