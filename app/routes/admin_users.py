from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.api.deps import get_auth_client, get_db, require_org_admin
from app.core.errors import AppError, DatabaseError, ValidationError
from app.core.logger import get_logger
from app.models.enums import AdminRoleType, UserStatus
from app.schemas.admin_role import AdminRoleCreate, AdminRoleOut
from app.schemas.common import ApiResponse, Paginated
from app.schemas.profile import AdminUserUpdate, ProfileCreate, ProfileWithRelations, UserStats
from app.services import admin_role_service, user_service
from app.services.supabase_auth import SupabaseAuthClient
from app.services.tenancy import UserContext

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin-users"])


@router.get("/users", response_model=ApiResponse[Paginated[ProfileWithRelations]])
def read_users(
    db: Session = Depends(get_db),
    plant_id: Optional[UUID] = Query(None, alias="plantId"),
    user_status: Optional[UserStatus] = Query(None, alias="status"),
    role: Optional[AdminRoleType] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    List users in the caller's plants with their plant, roles and enrollments.
    """
    logger.info(f"Listing users for admin: {current_user.email} (page: {page}, limit: {limit})")
    try:
        data = user_service.list_users(
            db, current_user,
            plant_id=plant_id, status=user_status, role=role, search=search,
            page=page, limit=limit,
        )
        logger.info(f"Found {data['total']} users")
        return {"data": data}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error listing users: {str(e)}")
        raise DatabaseError("An error occurred while fetching users")


@router.post("/users", response_model=ApiResponse[ProfileWithRelations], status_code=status.HTTP_201_CREATED)
def create_user(
    *,
    db: Session = Depends(get_db),
    user_in: ProfileCreate,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    Create a profile; users without an id are invited through the auth provider.
    """
    logger.info(f"Creating user {user_in.email} by admin: {current_user.email}")
    try:
        profile = user_service.create_user(db, current_user, user_in, auth_client)
        logger.info(f"Successfully created user: {profile.id}")
        return {"data": ProfileWithRelations.model_validate(profile), "message": "User created"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error creating user: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while creating the user")


@router.patch("/users", response_model=ApiResponse[ProfileWithRelations])
def update_user(
    *,
    db: Session = Depends(get_db),
    user_in: AdminUserUpdate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    if user_in.user_id is None:
        raise ValidationError("userId is required", field="userId")
    logger.info(f"Updating user {user_in.user_id} by admin: {current_user.email}")
    try:
        profile = user_service.update_user(db, current_user, user_in.user_id, user_in)
        return {"data": ProfileWithRelations.model_validate(profile), "message": "User updated"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating user {user_in.user_id}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating the user")


@router.get("/users/stats", response_model=ApiResponse[UserStats])
def read_user_stats(
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    return {"data": user_service.user_stats(db, current_user)}


@router.get("/users/{user_id}", response_model=ApiResponse[ProfileWithRelations])
def read_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    logger.info(f"Getting user {user_id} for admin: {current_user.email}")
    profile = user_service.get_user(db, current_user, user_id)
    return {"data": ProfileWithRelations.model_validate(profile)}


@router.delete("/users/{user_id}", response_model=ApiResponse[dict])
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    Delete a profile along with its roles, enrollments and progress.
    """
    logger.info(f"Deleting user {user_id} by admin: {current_user.email}")
    try:
        user_service.delete_user(db, current_user, user_id)
        logger.info(f"Successfully deleted user: {user_id}")
        return {"message": "User deleted"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while deleting the user")


@router.get("/users/{user_id}/roles", response_model=ApiResponse[List[AdminRoleOut]])
def read_user_roles(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    roles = admin_role_service.list_user_roles(db, current_user, user_id)
    return {"data": [AdminRoleOut.model_validate(role) for role in roles]}


@router.post("/roles", response_model=ApiResponse[AdminRoleOut], status_code=status.HTTP_201_CREATED)
def grant_role(
    *,
    db: Session = Depends(get_db),
    role_in: AdminRoleCreate,
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    """
    Grant an admin role to a user, optionally scoped to one plant.
    """
    logger.info(f"Granting {role_in.role.value} to {role_in.user_id} by admin: {current_user.email}")
    try:
        grant = admin_role_service.grant_role(db, current_user, role_in)
        return {"data": AdminRoleOut.model_validate(grant), "message": "Role granted"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error granting role: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while granting the role")


@router.delete("/roles/{role_id}", response_model=ApiResponse[dict])
def revoke_role(
    role_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_org_admin),
) -> Any:
    logger.info(f"Revoking role assignment {role_id} by admin: {current_user.email}")
    try:
        admin_role_service.revoke_role(db, current_user, role_id)
        return {"message": "Role revoked"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error revoking role {role_id}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while revoking the role")
