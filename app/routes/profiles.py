from typing import Any
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import get_current_active_user, get_db
from app.core.errors import AppError, AuthorizationError, DatabaseError, NotFoundError
from app.core.logger import get_logger
from app.models.profile import Profile
from app.schemas.common import ApiResponse
from app.schemas.profile import ProfileOut, ProfileUpdate, ProfileWithRelations, SelfProfileUpdate
from app.services import user_service
from app.services.tenancy import UserContext, apply_tenant_filter

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(tags=["profiles"])


@router.get("/user/profile", response_model=ApiResponse[ProfileWithRelations])
def read_own_profile(
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Get the caller's profile with plant, roles and enrollments.
    """
    logger.info(f"Profile requested by user: {current_user.email}")
    profile = user_service.get_user(db, current_user, current_user.user_id)
    return {"data": ProfileWithRelations.model_validate(profile)}


@router.patch("/user/profile", response_model=ApiResponse[ProfileOut])
def update_own_profile(
    *,
    db: Session = Depends(get_db),
    profile_in: SelfProfileUpdate,
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Update the caller's own name and job title.
    """
    logger.info(f"User {current_user.email} is updating their profile")
    try:
        profile = db.query(Profile).filter(Profile.id == current_user.user_id).first()
        for field_name, value in profile_in.model_dump(exclude_unset=True).items():
            if value is None and field_name != "job_title":
                continue
            setattr(profile, field_name, value)
        db.commit()
        db.refresh(profile)
        logger.info(f"Profile updated for user: {current_user.email}")
        return {"data": ProfileOut.model_validate(profile), "message": "Profile updated"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating profile: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating the profile")


@router.get("/profiles/{profile_id}", response_model=ApiResponse[ProfileOut])
def read_profile(
    profile_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Get a profile from one of the caller's plants.
    """
    logger.info(f"User {current_user.email} is requesting profile: {profile_id}")
    query = db.query(Profile).filter(Profile.id == profile_id)
    if profile_id != current_user.user_id:
        query = apply_tenant_filter(query, Profile.plant_id, current_user)
    profile = query.first()
    if not profile:
        logger.warning(f"Profile not found or outside tenant: {profile_id}")
        raise NotFoundError("Profile not found")
    return {"data": ProfileOut.model_validate(profile)}


@router.patch("/profiles/{profile_id}", response_model=ApiResponse[ProfileOut])
def update_profile(
    *,
    profile_id: UUID,
    db: Session = Depends(get_db),
    profile_in: ProfileUpdate,
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Update a profile. Owners may edit their own; admins any profile in their plants.
    """
    logger.info(f"User {current_user.email} is updating profile: {profile_id}")
    try:
        if profile_id == current_user.user_id:
            # owners cannot move plants or change their own status
            if profile_in.plant_id is not None or profile_in.status is not None:
                raise AuthorizationError("Only administrators can change plant or status")
            profile = db.query(Profile).filter(Profile.id == profile_id).first()
            changes = profile_in.model_dump(exclude_unset=True)
            if changes.get("email"):
                user_service._ensure_email_available(db, changes["email"], exclude_id=profile.id)
            for field_name, value in changes.items():
                if value is None and field_name != "job_title":
                    continue
                setattr(profile, field_name, value)
            db.commit()
            db.refresh(profile)
        else:
            if not current_user.has_admin_role():
                raise AuthorizationError("Insufficient permissions")
            profile = user_service.update_user(db, current_user, profile_id, profile_in)
        logger.info(f"Profile {profile_id} updated by {current_user.email}")
        return {"data": ProfileOut.model_validate(profile), "message": "Profile updated"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating profile {profile_id}: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while updating the profile")
