from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError
from app.models.plant import Plant
from app.schemas.plant import PlantCreate, PlantUpdate
from app.services.tenancy import UserContext, apply_tenant_filter


def list_plants(db: Session, context: UserContext, is_active: Optional[bool] = None) -> List[Plant]:
    query = apply_tenant_filter(db.query(Plant), Plant.id, context)
    if is_active is not None:
        query = query.filter(Plant.is_active.is_(is_active))
    return query.order_by(Plant.name).all()


def _ensure_name_available(db: Session, name: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Plant.id).filter(Plant.name == name)
    if exclude_id:
        query = query.filter(Plant.id != exclude_id)
    if query.first():
        raise ConflictError("A plant with this name already exists")


def create_plant(db: Session, data: PlantCreate) -> Plant:
    _ensure_name_available(db, data.name)
    plant = Plant(name=data.name, is_active=data.is_active)
    db.add(plant)
    db.commit()
    db.refresh(plant)
    return plant


def update_plant(db: Session, plant_id: UUID, update: PlantUpdate) -> Plant:
    plant = db.query(Plant).filter(Plant.id == plant_id).first()
    if not plant:
        raise NotFoundError("Plant not found")
    if update.name is not None:
        _ensure_name_available(db, update.name, exclude_id=plant.id)
        plant.name = update.name
    if update.is_active is not None:
        plant.is_active = update.is_active
    db.commit()
    db.refresh(plant)
    return plant
