from sqlalchemy import Boolean, Column, DateTime, Integer, UUID, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base, utcnow

class SectionProgress(Base):
    __tablename__ = "section_progress"
    __table_args__ = (UniqueConstraint("user_id", "section_id", name="uq_section_progress_user_section"),)

    id                 = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id            = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id         = Column(UUID(as_uuid=True), ForeignKey("course_sections.id", ondelete="CASCADE"), nullable=False, index=True)
    plant_id           = Column(UUID(as_uuid=True), ForeignKey("plants.id"), nullable=False, index=True)
    is_completed       = Column(Boolean, default=False, nullable=False)
    time_spent_seconds = Column(Integer, default=0, nullable=False)
    last_viewed_at     = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    completed_at       = Column(DateTime(timezone=True), nullable=True)
    created_at         = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at         = Column(DateTime(timezone=True), server_default=func.now(),
                                onupdate=func.now(), nullable=False)

    user = relationship("Profile", back_populates="section_progress")
    section = relationship("CourseSection", back_populates="progress_records")
