from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import Field
from app.models.enums import Language
from app.schemas.common import CamelModel

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

class CourseBase(CamelModel):
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)
    title: str = Field(..., min_length=1, max_length=200)
    version: str = Field("1.0", min_length=1, max_length=20)
    is_published: bool = False

class CourseCreate(CourseBase):
    default_language: Language = Language.EN
    available_languages: List[Language] = [Language.EN]

class CourseUpdate(CamelModel):
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    version: Optional[str] = Field(None, min_length=1, max_length=20)
    is_published: Optional[bool] = None
    default_language: Optional[Language] = None
    available_languages: Optional[List[Language]] = None

class CourseOut(CourseBase):
    id: UUID
    default_language: Language
    available_languages: List[str]
    content_version: str
    created_at: datetime
    updated_at: datetime

class CourseSummary(CamelModel):
    id: UUID
    slug: str
    title: str

class CourseWithStats(CourseOut):
    total_enrollments: int = 0
    completed_enrollments: int = 0
    avg_progress: float = 0
    completion_rate: float = 0

class CourseStatistics(CamelModel):
    total_courses: int
    active_courses: int
    total_enrollments: int
    avg_completion_rate: float

class CourseListData(CamelModel):
    courses: List[CourseWithStats]
    statistics: CourseStatistics
