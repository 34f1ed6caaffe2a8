from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from uuid import UUID
from pydantic import Field
from app.models.enums import BlockType, Language, QuestionType
from app.schemas.common import CamelModel

Answer = Union[str, List[str]]

class ContentBlockOut(CamelModel):
    id: UUID
    block_type: BlockType
    order_index: int
    content: Dict[str, Any]
    metadata: Optional[Dict[str, Any]] = None

class QuizQuestionOut(CamelModel):
    """Learner-facing question; the correct answer is never included."""
    id: UUID
    question_key: str
    question_type: QuestionType
    question_text: str
    options: Optional[List[Any]] = None
    explanation: Optional[str] = None
    order_index: int

class SectionContentOut(CamelModel):
    id: UUID
    section_key: str
    title: str
    order_index: int
    icon_name: Optional[str] = None
    content_blocks: List[ContentBlockOut] = []
    quiz_questions: List[QuizQuestionOut] = []

class CourseContentCourse(CamelModel):
    id: UUID
    slug: str
    title: str
    version: str
    default_language: Language
    content_version: str

class CourseContentOut(CamelModel):
    course: CourseContentCourse
    language: Language
    sections: List[SectionContentOut]
    translations: Dict[str, Dict[str, Any]] = {}

class QuizAnswerRequest(CamelModel):
    question_key: str = Field(..., min_length=1, max_length=100)
    answer: Answer
    attempt_index: int = Field(1, ge=1)

class QuizResultOut(CamelModel):
    is_correct: bool
    explanation: Optional[str] = None
    correct_answer: Answer
    user_answer: Answer
    event_id: UUID

class SectionProgressRequest(CamelModel):
    is_completed: bool = False
    time_spent_seconds: int = Field(0, ge=0)

class SectionProgressOut(CamelModel):
    id: UUID
    section_id: UUID
    is_completed: bool
    time_spent_seconds: int
    last_viewed_at: datetime
    completed_at: Optional[datetime] = None

class SectionProgressResult(CamelModel):
    section_progress: SectionProgressOut
    course_progress_percent: int

# Import / export payloads

class ImportContentBlock(CamelModel):
    block_type: BlockType
    order_index: int = Field(..., ge=0)
    content: Dict[str, Any]
    metadata: Optional[Dict[str, Any]] = None

class ImportQuizQuestion(CamelModel):
    question_key: str = Field(..., min_length=1, max_length=100)
    question_type: QuestionType
    question_text: str = Field(..., min_length=1)
    options: Optional[List[Any]] = None
    correct_answer: Answer
    explanation: Optional[str] = None
    order_index: int = Field(..., ge=0)

class ImportSection(CamelModel):
    section_key: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=200)
    order_index: int = Field(..., ge=0)
    icon_name: Optional[str] = Field(None, max_length=50)
    is_published: bool = True
    content_blocks: List[ImportContentBlock] = []
    quiz_questions: List[ImportQuizQuestion] = []

class ContentImportRequest(CamelModel):
    course_id: UUID
    language: Language = Language.EN
    sections: List[ImportSection] = Field(..., min_length=1)

class ImportResultOut(CamelModel):
    sections_created: int = 0
    sections_updated: int = 0
    content_blocks_created: int = 0
    quiz_questions_created: int = 0
    translations_saved: int = 0
    errors: List[str] = []

class ExportSection(ImportSection):
    pass

class ContentExportOut(CamelModel):
    course: CourseContentCourse
    language: Language
    available_languages: List[str]
    content: List[ExportSection]
    translations: Dict[str, Dict[str, Any]] = {}
    exported_at: datetime
    version: str
