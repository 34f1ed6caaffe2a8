from sqlalchemy import Boolean, Column, DateTime, Integer, String, UUID, ForeignKey, JSON, CheckConstraint, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base, utcnow
from app.models.enums import EventType, pg_enum

class ActivityEvent(Base):
    __tablename__ = "activity_events"

    id          = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id     = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id   = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    plant_id    = Column(UUID(as_uuid=True), ForeignKey("plants.id"), nullable=False, index=True)
    event_type  = Column(pg_enum(EventType, "event_type"), nullable=False)
    meta        = Column(JSON, nullable=True)
    occurred_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    created_at  = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("Profile", back_populates="activity_events")
    course = relationship("Course", back_populates="activity_events")


class QuestionEvent(Base):
    __tablename__ = "question_events"
    __table_args__ = (CheckConstraint("attempt_index >= 1", name="ck_question_events_attempt_index"),)

    id            = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id       = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id     = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    plant_id      = Column(UUID(as_uuid=True), ForeignKey("plants.id"), nullable=False, index=True)
    section_key   = Column(String(100), nullable=False)
    question_key  = Column(String(100), nullable=False)
    is_correct    = Column(Boolean, nullable=False)
    attempt_index = Column(Integer, nullable=False, default=1)
    response_meta = Column(JSON, nullable=True)
    answered_at   = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    created_at    = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("Profile", back_populates="question_events")
    course = relationship("Course", back_populates="question_events")
