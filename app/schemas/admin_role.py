from typing import Optional
from datetime import datetime
from uuid import UUID
from app.models.enums import AdminRoleType
from app.schemas.common import CamelModel

class AdminRoleCreate(CamelModel):
    user_id: UUID
    role: AdminRoleType
    plant_id: Optional[UUID] = None

class AdminRoleOut(AdminRoleCreate):
    id: UUID
    created_at: datetime
