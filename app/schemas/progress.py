from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import Field
from app.models.enums import EnrollmentStatus, EventType
from app.schemas.common import CamelModel

class CourseProgressOut(CamelModel):
    """Progress as seen from a course route such as ``/ebook``."""
    course_id: UUID
    course_slug: str
    enrollment_id: UUID
    status: EnrollmentStatus
    enrolled_at: datetime
    completed_at: Optional[datetime] = None
    progress_percent: int = 0
    current_section: Optional[str] = None
    last_active_at: Optional[datetime] = None

class ProgressUpdateRequest(CamelModel):
    # type-checked by the route so a wrong type answers 400 like the other progress errors
    progress_percent: Any = None
    current_section: Optional[str] = Field(None, max_length=100)
    event_type: Optional[EventType] = None

class QuestionEventRequest(CamelModel):
    section_key: Optional[str] = Field(None, max_length=100)
    question_key: Optional[str] = Field(None, max_length=100)
    is_correct: Any = None
    attempt_index: int = Field(1, ge=1)
    response_meta: Optional[Dict[str, Any]] = None

class QuestionEventOut(CamelModel):
    id: UUID
    section_key: str
    question_key: str
    is_correct: bool
    attempt_index: int
    answered_at: datetime

class UserCourseProgress(CamelModel):
    enrollment_id: UUID
    course_id: UUID
    course_slug: str
    course_title: str
    status: EnrollmentStatus
    enrolled_at: datetime
    completed_at: Optional[datetime] = None
    progress_percent: int = 0
    current_section: Optional[str] = None
    last_active_at: datetime

class ProgressUser(CamelModel):
    id: UUID
    plant_id: UUID

class AllProgressOut(CamelModel):
    progress: List[UserCourseProgress]
    user: ProgressUser
