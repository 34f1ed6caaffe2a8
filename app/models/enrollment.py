from sqlalchemy import Column, DateTime, UUID, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base, utcnow
from app.models.enums import EnrollmentStatus, pg_enum

class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),)

    id           = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id      = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id    = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    plant_id     = Column(UUID(as_uuid=True), ForeignKey("plants.id"), nullable=False, index=True)
    status       = Column(pg_enum(EnrollmentStatus, "enrollment_status"), nullable=False,
                          default=EnrollmentStatus.ENROLLED)
    enrolled_at  = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at   = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at   = Column(DateTime(timezone=True), server_default=func.now(),
                          onupdate=func.now(), nullable=False)

    user = relationship("Profile", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")
    plant = relationship("Plant")
