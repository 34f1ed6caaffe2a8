from sqlalchemy import Boolean, Column, String, DateTime, UUID, func
from sqlalchemy.orm import relationship
import uuid
from app.db.base_class import Base

class Plant(Base):
    __tablename__ = "plants"

    id         = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name       = Column(String(100), nullable=False, unique=True)
    is_active  = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    profiles = relationship("Profile", back_populates="plant")
