from sqlalchemy import Column, String, DateTime, UUID, ForeignKey, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base
from app.models.enums import UserStatus, pg_enum

class Profile(Base):
    """A learner or administrator; ``id`` is the auth provider's user id."""
    __tablename__ = "profiles"

    id         = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plant_id   = Column(UUID(as_uuid=True), ForeignKey("plants.id"), nullable=False, index=True)
    first_name = Column(String(50), nullable=False)
    last_name  = Column(String(50), nullable=False)
    email      = Column(String(255), nullable=False, index=True)
    job_title  = Column(String(100), nullable=True)
    status     = Column(pg_enum(UserStatus, "user_status"), nullable=False, default=UserStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    plant = relationship("Plant", back_populates="profiles")
    admin_roles = relationship("AdminRole", back_populates="user", cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", back_populates="user", cascade="all, delete-orphan")
    progress_records = relationship("Progress", back_populates="user", cascade="all, delete-orphan")
    activity_events = relationship("ActivityEvent", back_populates="user", cascade="all, delete-orphan")
    question_events = relationship("QuestionEvent", back_populates="user", cascade="all, delete-orphan")
    section_progress = relationship("SectionProgress", back_populates="user", cascade="all, delete-orphan")
