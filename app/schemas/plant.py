from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import Field
from app.schemas.common import CamelModel

class PlantBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True

class PlantCreate(PlantBase):
    pass

class PlantUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None

class PlantOut(PlantBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

class PlantSummary(CamelModel):
    id: UUID
    name: str
