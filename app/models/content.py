from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UUID, ForeignKey, JSON, UniqueConstraint, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base
from app.models.enums import BlockType, ContentType, Language, QuestionType, pg_enum

class CourseSection(Base):
    __tablename__ = "course_sections"
    __table_args__ = (UniqueConstraint("course_id", "section_key", name="uq_course_sections_course_key"),)

    id           = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id    = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    section_key  = Column(String(100), nullable=False)
    title        = Column(String(200), nullable=False)
    order_index  = Column(Integer, nullable=False)
    icon_name    = Column(String(50), nullable=True)
    is_published = Column(Boolean, default=True, nullable=False)
    created_at   = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at   = Column(DateTime(timezone=True), server_default=func.now(),
                          onupdate=func.now(), nullable=False)

    course = relationship("Course", back_populates="sections")
    content_blocks = relationship(
        "ContentBlock",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="ContentBlock.order_index",
    )
    quiz_questions = relationship(
        "QuizQuestion",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.order_index",
    )
    progress_records = relationship("SectionProgress", back_populates="section", cascade="all, delete-orphan")


class ContentBlock(Base):
    __tablename__ = "content_blocks"

    id             = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    section_id     = Column(UUID(as_uuid=True), ForeignKey("course_sections.id", ondelete="CASCADE"), nullable=False, index=True)
    block_type     = Column(pg_enum(BlockType, "block_type"), nullable=False)
    order_index    = Column(Integer, nullable=False)
    content        = Column(JSON, nullable=False)
    # "metadata" is reserved on declarative classes
    block_metadata = Column("metadata", JSON, nullable=True)
    created_at     = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at     = Column(DateTime(timezone=True), server_default=func.now(),
                            onupdate=func.now(), nullable=False)

    section = relationship("CourseSection", back_populates="content_blocks")


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id             = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    section_id     = Column(UUID(as_uuid=True), ForeignKey("course_sections.id", ondelete="CASCADE"), nullable=False, index=True)
    question_key   = Column(String(100), nullable=False)
    question_type  = Column(pg_enum(QuestionType, "question_type"), nullable=False)
    question_text  = Column(Text, nullable=False)
    options        = Column(JSON, nullable=True)
    # a single answer string, or a list for multi-select questions
    correct_answer = Column(JSON, nullable=False)
    explanation    = Column(Text, nullable=True)
    order_index    = Column(Integer, nullable=False)
    created_at     = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at     = Column(DateTime(timezone=True), server_default=func.now(),
                            onupdate=func.now(), nullable=False)

    section = relationship("CourseSection", back_populates="quiz_questions")


class ContentTranslation(Base):
    __tablename__ = "content_translations"
    __table_args__ = (
        UniqueConstraint("content_type", "content_id", "language_code", name="uq_content_translations_target"),
    )

    id                 = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    content_type       = Column(pg_enum(ContentType, "content_type"), nullable=False)
    content_id         = Column(UUID(as_uuid=True), nullable=False, index=True)
    language_code      = Column(pg_enum(Language, "language_code"), nullable=False)
    translated_content = Column(JSON, nullable=False)
    created_at         = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at         = Column(DateTime(timezone=True), server_default=func.now(),
                                onupdate=func.now(), nullable=False)
