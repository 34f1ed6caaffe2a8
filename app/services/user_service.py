from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.cache import cache
from app.core.errors import AuthProviderError, ConflictError, NotFoundError
from app.core.logger import get_logger
from app.models.admin_role import AdminRole
from app.models.enrollment import Enrollment
from app.models.enums import AdminRoleType, EnrollmentStatus, UserStatus
from app.models.profile import Profile
from app.schemas.common import build_page
from app.schemas.profile import ProfileCreate, ProfileUpdate, ProfileWithRelations, UserStats
from app.services.supabase_auth import SupabaseAuthClient
from app.services.tenancy import UserContext, apply_tenant_filter, require_plant_access

logger = get_logger(__name__)


def _profiles_query(db: Session, context: UserContext):
    query = db.query(Profile).options(
        joinedload(Profile.plant),
        selectinload(Profile.admin_roles),
        selectinload(Profile.enrollments).joinedload(Enrollment.course),
    )
    return apply_tenant_filter(query, Profile.plant_id, context)


def list_users(
    db: Session,
    context: UserContext,
    plant_id: Optional[UUID] = None,
    status: Optional[UserStatus] = None,
    role: Optional[AdminRoleType] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    query = _profiles_query(db, context)
    if plant_id:
        require_plant_access(context, plant_id)
        query = query.filter(Profile.plant_id == plant_id)
    if status:
        query = query.filter(Profile.status == status)
    if role:
        query = query.filter(Profile.admin_roles.any(AdminRole.role == role))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Profile.first_name.ilike(pattern),
            Profile.last_name.ilike(pattern),
            Profile.email.ilike(pattern),
        ))

    total = query.count()
    profiles = (
        query.order_by(Profile.last_name, Profile.first_name)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    items = [ProfileWithRelations.model_validate(profile) for profile in profiles]
    return build_page(items, total, page, limit)


def get_user(db: Session, context: UserContext, user_id: UUID) -> Profile:
    """Profiles outside the caller's plants read as missing."""
    profile = _profiles_query(db, context).filter(Profile.id == user_id).first()
    if not profile:
        raise NotFoundError("User not found")
    return profile


def _ensure_email_available(db: Session, email: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Profile.id).filter(func.lower(Profile.email) == email.lower())
    if exclude_id:
        query = query.filter(Profile.id != exclude_id)
    if query.first():
        raise ConflictError("A user with this email already exists")


def create_user(
    db: Session,
    context: UserContext,
    data: ProfileCreate,
    auth_client: SupabaseAuthClient,
) -> Profile:
    require_plant_access(context, data.plant_id)
    _ensure_email_available(db, data.email)

    user_id = data.id
    if user_id is None:
        invited = auth_client.invite_user(
            data.email,
            {"first_name": data.first_name, "last_name": data.last_name},
        )
        if not invited:
            raise AuthProviderError("Authentication provider returned no user for the invite")
        user_id = UUID(invited["id"])
        logger.info(f"Invited {data.email} through the auth provider as {user_id}")
    elif db.query(Profile.id).filter(Profile.id == user_id).first():
        raise ConflictError("A profile already exists for this user")

    profile = Profile(
        id=user_id,
        plant_id=data.plant_id,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        job_title=data.job_title,
        status=data.status,
    )
    db.add(profile)
    db.commit()
    cache.invalidate_for("user_update")
    return get_user(db, context, profile.id)


def update_user(db: Session, context: UserContext, user_id: UUID, update: ProfileUpdate) -> Profile:
    profile = get_user(db, context, user_id)
    changes = update.model_dump(exclude_unset=True, exclude={"user_id"})

    if changes.get("email"):
        _ensure_email_available(db, changes["email"], exclude_id=profile.id)
    if changes.get("plant_id"):
        require_plant_access(context, changes["plant_id"])

    for field_name, value in changes.items():
        if value is None and field_name != "job_title":
            continue
        setattr(profile, field_name, value)

    db.commit()
    cache.invalidate_for("user_update")
    return get_user(db, context, profile.id)


def delete_user(db: Session, context: UserContext, user_id: UUID) -> None:
    profile = get_user(db, context, user_id)
    db.delete(profile)
    db.commit()
    cache.invalidate_for("user_update")


def user_stats(db: Session, context: UserContext) -> UserStats:
    query = apply_tenant_filter(db.query(Profile), Profile.plant_id, context)
    total = query.count()
    active = query.filter(Profile.status == UserStatus.ACTIVE).count()
    admins = query.filter(Profile.admin_roles.any()).count()

    enrollments = apply_tenant_filter(db.query(Enrollment), Enrollment.plant_id, context)
    total_enrollments = enrollments.count()
    completed = enrollments.filter(Enrollment.status == EnrollmentStatus.COMPLETED).count()
    return UserStats(
        total_users=total,
        active_users=active,
        suspended_users=total - active,
        admin_users=admins,
        total_enrollments=total_enrollments,
        completed_courses=completed,
        overall_completion_rate=round(completed / total_enrollments * 100, 1) if total_enrollments else 0.0,
    )
