from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.logger import get_logger
from app.models.admin_role import AdminRole
from app.models.enums import AdminRoleType
from app.models.plant import Plant
from app.schemas.admin_role import AdminRoleCreate
from app.services.tenancy import UserContext
from app.services.user_service import get_user

logger = get_logger(__name__)


def list_user_roles(db: Session, context: UserContext, user_id: UUID) -> List[AdminRole]:
    get_user(db, context, user_id)
    return db.query(AdminRole).filter(AdminRole.user_id == user_id).order_by(AdminRole.created_at).all()


def grant_role(db: Session, context: UserContext, data: AdminRoleCreate) -> AdminRole:
    get_user(db, context, data.user_id)
    if data.role == AdminRoleType.PLANT_MANAGER and data.plant_id is None:
        raise ValidationError("Plant managers must be scoped to a plant", field="plantId")
    if data.plant_id and not db.query(Plant.id).filter(Plant.id == data.plant_id).first():
        raise NotFoundError("Plant not found")

    # NULL plant ids never collide in a unique index, so org-wide grants are checked here
    existing = db.query(AdminRole.id).filter(
        AdminRole.user_id == data.user_id,
        AdminRole.role == data.role,
        AdminRole.plant_id.is_(None) if data.plant_id is None else AdminRole.plant_id == data.plant_id,
    ).first()
    if existing:
        raise ConflictError("Role already assigned to user")

    grant = AdminRole(user_id=data.user_id, role=data.role, plant_id=data.plant_id)
    db.add(grant)
    db.commit()
    db.refresh(grant)
    cache.invalidate_for("user_update")
    logger.info(f"Granted {data.role.value} to user {data.user_id} (plant: {data.plant_id or 'all'})")
    return grant


def revoke_role(db: Session, context: UserContext, role_id: UUID) -> None:
    grant = db.query(AdminRole).filter(AdminRole.id == role_id).first()
    if not grant:
        raise NotFoundError("Role assignment not found")
    get_user(db, context, grant.user_id)
    role, user_id = grant.role, grant.user_id
    db.delete(grant)
    db.commit()
    cache.invalidate_for("user_update")
    logger.info(f"Revoked {role.value} from user {user_id}")
