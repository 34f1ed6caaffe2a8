from sqlalchemy import Column, DateTime, Integer, String, UUID, ForeignKey, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base, utcnow

class Progress(Base):
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_progress_user_course"),
        CheckConstraint("progress_percent >= 0 AND progress_percent <= 100", name="ck_progress_percent_range"),
    )

    id                 = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id            = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id          = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    plant_id           = Column(UUID(as_uuid=True), ForeignKey("plants.id"), nullable=False, index=True)
    progress_percent   = Column(Integer, nullable=False, default=0)
    current_section    = Column(String(100), nullable=True)
    sections_completed = Column(Integer, nullable=False, default=0)
    total_sections     = Column(Integer, nullable=False, default=0)
    last_active_at     = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    created_at         = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at         = Column(DateTime(timezone=True), server_default=func.now(),
                                onupdate=func.now(), nullable=False)

    user = relationship("Profile", back_populates="progress_records")
    course = relationship("Course", back_populates="progress_records")
