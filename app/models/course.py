from sqlalchemy import Boolean, Column, String, DateTime, UUID, ForeignKey, JSON, UniqueConstraint, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base
from app.models.enums import Language, pg_enum

class Course(Base):
    __tablename__ = "courses"

    id                  = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    slug                = Column(String(100), nullable=False, unique=True)
    title               = Column(String(200), nullable=False)
    version             = Column(String(20), nullable=False, default="1.0")
    is_published        = Column(Boolean, default=False, nullable=False)
    default_language    = Column(pg_enum(Language, "language_code"), nullable=False, default=Language.EN)
    available_languages = Column(JSON, nullable=False, default=lambda: ["en"])
    content_version     = Column(String(20), nullable=False, default="1.0")
    created_at          = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at          = Column(DateTime(timezone=True), server_default=func.now(),
                                 onupdate=func.now(), nullable=False)

    languages = relationship("CourseLanguage", back_populates="course", cascade="all, delete-orphan")
    sections = relationship(
        "CourseSection",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CourseSection.order_index",
    )
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")
    progress_records = relationship("Progress", back_populates="course", cascade="all, delete-orphan")
    activity_events = relationship("ActivityEvent", back_populates="course", cascade="all, delete-orphan")
    question_events = relationship("QuestionEvent", back_populates="course", cascade="all, delete-orphan")


class CourseLanguage(Base):
    __tablename__ = "course_languages"
    __table_args__ = (UniqueConstraint("course_id", "language_code", name="uq_course_languages_course_language"),)

    id            = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id     = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    language_code = Column(pg_enum(Language, "language_code"), nullable=False)
    is_primary    = Column(Boolean, default=False, nullable=False)
    is_published  = Column(Boolean, default=False, nullable=False)
    created_at    = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at    = Column(DateTime(timezone=True), server_default=func.now(),
                           onupdate=func.now(), nullable=False)

    course = relationship("Course", back_populates="languages")
