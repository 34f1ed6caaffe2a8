from sqlalchemy import Column, DateTime, UUID, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base
from app.models.enums import AdminRoleType, pg_enum

class AdminRole(Base):
    """Role grant; a null ``plant_id`` means the grant is organisation-wide."""
    __tablename__ = "admin_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", "plant_id", name="uq_admin_roles_user_role_plant"),)

    id         = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id    = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    role       = Column(pg_enum(AdminRoleType, "admin_role"), nullable=False)
    plant_id   = Column(UUID(as_uuid=True), ForeignKey("plants.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("Profile", back_populates="admin_roles")
    plant = relationship("Plant")
