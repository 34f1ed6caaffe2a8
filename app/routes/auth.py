from typing import Any
from uuid import UUID
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.api.deps import get_auth_client, get_current_active_user, get_db, get_token, require_admin
from app.core.config import settings
from app.core.errors import AppError, AuthenticationError, AuthProviderError, ConflictError, DatabaseError, NotFoundError
from app.core.logger import get_logger
from app.db.session import bind_tenant_context, system_context
from app.models.enums import AdminRoleType
from app.models.plant import Plant
from app.models.profile import Profile
from app.schemas.auth import (
    CurrentUserOut,
    ForgotPasswordRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    SignupResult,
    Token,
)
from app.schemas.common import ApiResponse
from app.schemas.profile import ProfileOut
from app.services.supabase_auth import SupabaseAuthClient
from app.services.tenancy import UserContext, rls_debug_info

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _token_from_session(session: dict) -> Token:
    return Token(
        access_token=session["access_token"],
        token_type=session.get("token_type", "bearer"),
        refresh_token=session.get("refresh_token"),
        expires_in=session.get("expires_in"),
    )


@router.post("/signup", response_model=ApiResponse[SignupResult], status_code=status.HTTP_201_CREATED)
def signup(
    *,
    db: Session = Depends(get_db),
    user_in: SignupRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> Any:
    """
    Register with the auth provider and create the matching profile.
    """
    logger.info(f"Attempting to create new user with email: {user_in.email}")
    # no caller yet; plant and email checks must see every row
    system_context(db)
    plant = db.query(Plant).filter(Plant.id == user_in.plant_id, Plant.is_active.is_(True)).first()
    if not plant:
        logger.warning(f"Signup failed - unknown or inactive plant: {user_in.plant_id}")
        raise NotFoundError("Plant not found")
    if db.query(Profile.id).filter(func.lower(Profile.email) == user_in.email.lower()).first():
        logger.warning(f"Signup failed - email already exists: {user_in.email}")
        raise ConflictError("The user with this email already exists in the system.")

    result = auth_client.sign_up(
        user_in.email,
        user_in.password,
        {"first_name": user_in.first_name, "last_name": user_in.last_name},
    )
    provider_user = result["user"]
    if not provider_user or not provider_user.get("id"):
        raise AuthProviderError("Authentication provider returned no user id")

    try:
        user_id = UUID(str(provider_user["id"]))
        bind_tenant_context(db, user_id, [plant.id])
        profile = Profile(
            id=user_id,
            plant_id=plant.id,
            first_name=user_in.first_name,
            last_name=user_in.last_name,
            email=user_in.email,
            job_title=user_in.job_title,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        logger.info(f"Successfully created new user: {profile.email}")
        return {
            "data": SignupResult(
                profile=ProfileOut.model_validate(profile),
                confirmation_required=result["session"] is None,
            ),
            "message": "Account created",
        }
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error creating user: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while creating the user.")


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> Any:
    """
    OAuth2 compatible token login, get an access token for future requests.
    """
    logger.info(f"Login attempt for user: {form_data.username}")
    session = auth_client.sign_in_with_password(form_data.username, form_data.password)
    logger.info(f"Successful login for user: {form_data.username}")
    return _token_from_session(session)


@router.post("/refresh", response_model=Token)
def refresh(
    body: RefreshRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> Any:
    session = auth_client.refresh_session(body.refresh_token)
    return _token_from_session(session)


@router.get("/me", response_model=ApiResponse[CurrentUserOut])
def read_users_me(
    current_user: UserContext = Depends(get_current_active_user),
) -> Any:
    """
    Get current user with role, permissions and accessible plants.
    """
    logger.info(f"User profile accessed for: {current_user.email}")
    return {
        "data": CurrentUserOut(
            profile=ProfileOut.model_validate(current_user.profile),
            role=current_user.primary_role,
            permissions=current_user.permissions,
            accessible_plants=current_user.accessible_plants,
            all_plants=current_user.all_plants,
        )
    }


@router.get("/rls-debug", response_model=ApiResponse[dict])
def rls_debug(
    current_user: UserContext = Depends(require_admin(AdminRoleType.DEV_ADMIN)),
) -> Any:
    """Tenant context as the database sees it."""
    return {"data": rls_debug_info(current_user)}


@router.post("/logout", response_model=ApiResponse[dict])
def logout(
    token: str = Depends(get_token),
    current_user: UserContext = Depends(get_current_active_user),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> Any:
    """
    Logout current user.
    """
    auth_client.sign_out(token)
    logger.info(f"User logged out: {current_user.email}")
    return {"message": "Successfully logged out"}


@router.post("/forgot-password", response_model=ApiResponse[dict])
def forgot_password(
    body: ForgotPasswordRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> Any:
    logger.info(f"Password reset requested for: {body.email}")
    try:
        auth_client.recover_password(body.email, settings.PASSWORD_RESET_REDIRECT_URL)
    except AuthenticationError as e:
        # same answer whether or not the address is registered
        logger.warning(f"Password reset not sent for {body.email}: {e.message}")
    return {"message": "If the email exists, a password reset link has been sent"}


@router.post("/reset-password", response_model=ApiResponse[dict])
def reset_password(
    body: ResetPasswordRequest,
    current_user: UserContext = Depends(get_current_active_user),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> Any:
    auth_client.update_password(current_user.user_id, body.password)
    logger.info(f"Password updated for user: {current_user.email}")
    return {"message": "Password updated"}
