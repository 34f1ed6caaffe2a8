from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.api.deps import get_db, require_org_admin
from app.core.errors import AppError, DatabaseError
from app.core.logger import get_logger
from app.schemas.common import ApiResponse
from app.schemas.plant import PlantCreate, PlantOut, PlantUpdate
from app.services import plant_service
from app.services.tenancy import UserContext

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/admin/plants", tags=["admin-plants"])


@router.get("", response_model=ApiResponse[List[PlantOut]])
def read_plants(
    db: Session = Depends(get_db),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    plants = plant_service.list_plants(db, current_user, is_active)
    logger.info(f"Found {len(plants)} plants for admin: {current_user.email}")
    return {"data": [PlantOut.model_validate(plant) for plant in plants]}


@router.post("", response_model=ApiResponse[PlantOut], status_code=status.HTTP_201_CREATED)
def create_plant(
    *,
    db: Session = Depends(get_db),
    plant_in: PlantCreate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    logger.info(f"Creating plant {plant_in.name} by admin: {current_user.email}")
    try:
        plant = plant_service.create_plant(db, plant_in)
        return {"data": PlantOut.model_validate(plant), "message": "Plant created"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error creating plant: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while creating the plant")


@router.patch("/{plant_id}", response_model=ApiResponse[PlantOut])
def update_plant(
    *,
    plant_id: UUID,
    db: Session = Depends(get_db),
    plant_in: PlantUpdate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    logger.info(f"Updating plant {plant_id} by admin: {current_user.email}")
    try:
        plant = plant_service.update_plant(db, plant_id, plant_in)
        return {"data": PlantOut.model_validate(plant), "message": "Plant updated"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating plant {plant_id}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating the plant")
