"""
Plant-based multi-tenancy.

A caller can see rows of the plants in their ``UserContext.accessible_plants``.
Org admins (hr_admin, dev_admin) see every active plant; plant managers see
their own plant plus the plants they manage; everybody else sees their own
plant only. The same set is pushed to PostgreSQL as ``app.accessible_plants``
so the row-level-security policies agree with the filters applied here.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set
from uuid import UUID

from sqlalchemy.orm import Query, Session

from app.core.errors import TenantAccessError
from app.core.logger import get_logger
from app.db.session import bind_tenant_context
from app.models.admin_role import AdminRole
from app.models.enums import AdminRoleType
from app.models.plant import Plant
from app.models.profile import Profile

logger = get_logger(__name__)

NO_PLANT = UUID(int=0)

ORG_ADMIN_ROLES = (AdminRoleType.HR_ADMIN, AdminRoleType.DEV_ADMIN)

ROLE_PRIORITY = ("hr_admin", "dev_admin", "plant_manager", "user")

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "hr_admin": [
        "read", "write", "delete", "manage_users", "manage_courses",
        "manage_enrollments", "view_analytics", "manage_plants",
    ],
    "dev_admin": [
        "read", "write", "delete", "manage_users", "manage_courses",
        "manage_enrollments", "view_analytics", "manage_plants",
    ],
    "plant_manager": ["read", "write", "manage_courses", "manage_enrollments", "view_analytics"],
    "user": ["read"],
}


@dataclass
class RoleGrant:
    role: AdminRoleType
    plant_id: Optional[UUID] = None


@dataclass
class UserContext:
    user_id: UUID
    email: str
    plant_id: UUID
    roles: List[RoleGrant] = field(default_factory=list)
    accessible_plants: List[UUID] = field(default_factory=list)
    all_plants: bool = False
    profile: Optional[Profile] = None

    @property
    def role_names(self) -> Set[str]:
        return {grant.role.value for grant in self.roles}

    @property
    def primary_role(self) -> str:
        names = self.role_names
        for role in ROLE_PRIORITY:
            if role in names:
                return role
        return "user"

    @property
    def permissions(self) -> List[str]:
        return ROLE_PERMISSIONS[self.primary_role]

    @property
    def is_org_admin(self) -> bool:
        return any(grant.role in ORG_ADMIN_ROLES for grant in self.roles)

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions

    def has_admin_role(self, role: Optional[AdminRoleType] = None, plant_id: Optional[UUID] = None) -> bool:
        """
        Check for a role grant.

        With no ``role`` any grant counts. A plant-scoped grant only matches its
        own plant; an org-wide grant (no plant) matches every plant.
        """
        for grant in self.roles:
            if role is not None and grant.role != role:
                continue
            if plant_id is not None and grant.plant_id is not None and grant.plant_id != plant_id:
                continue
            return True
        return False

    def can_access_plant(self, plant_id: Optional[UUID]) -> bool:
        if plant_id is None:
            return False
        return self.all_plants or plant_id in self.accessible_plants


def get_accessible_plants(db: Session, plant_id: UUID, roles: List[RoleGrant]) -> List[UUID]:
    """Own plant first, then the plants the role grants open up."""
    plants: List[UUID] = [plant_id] if plant_id else []

    if any(grant.role in ORG_ADMIN_ROLES for grant in roles):
        active = db.query(Plant.id).filter(Plant.is_active.is_(True)).all()
        extra = [row.id for row in active]
    else:
        extra = [
            grant.plant_id for grant in roles
            if grant.role == AdminRoleType.PLANT_MANAGER and grant.plant_id is not None
        ]

    for candidate in extra:
        if candidate not in plants:
            plants.append(candidate)
    return plants


def load_user_context(db: Session, user_id: UUID, email: Optional[str] = None) -> Optional[UserContext]:
    """
    Build the caller's context from their profile and role grants and bind it
    to the session. Returns None when the user has no profile.
    """
    # the profile and role policies admit the caller's own rows once the user id is set
    bind_tenant_context(db, user_id)

    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        return None

    grants = [
        RoleGrant(role=row.role, plant_id=row.plant_id)
        for row in db.query(AdminRole).filter(AdminRole.user_id == user_id).all()
    ]
    context = UserContext(
        user_id=profile.id,
        email=email or profile.email,
        plant_id=profile.plant_id,
        roles=grants,
        accessible_plants=get_accessible_plants(db, profile.plant_id, grants),
        all_plants=any(grant.role in ORG_ADMIN_ROLES for grant in grants),
        profile=profile,
    )
    bind_tenant_context(db, context.user_id, context.accessible_plants, all_plants=context.all_plants)
    return context


def apply_tenant_filter(query: Query, column, context: UserContext) -> Query:
    """Restrict ``query`` to rows whose ``column`` is one of the caller's plants."""
    if context.all_plants:
        return query
    plants = context.accessible_plants
    if not plants:
        # matches nothing
        return query.filter(column == NO_PLANT)
    if len(plants) == 1:
        return query.filter(column == plants[0])
    return query.filter(column.in_(plants))


def require_plant_access(context: UserContext, plant_id: Optional[UUID]) -> None:
    if not context.can_access_plant(plant_id):
        logger.warning(f"Tenant access denied for user {context.user_id} to plant {plant_id}")
        raise TenantAccessError("Access denied: plant is outside your organisation scope")


def validate_tenant_access(db: Session, model, record_id: UUID, context: UserContext) -> bool:
    """True when the record exists and belongs to one of the caller's plants."""
    row = db.query(model.plant_id).filter(model.id == record_id).first()
    if row is None:
        return False
    return context.can_access_plant(row.plant_id)


def rls_debug_info(context: UserContext) -> dict:
    return {
        "userId": str(context.user_id),
        "plantId": str(context.plant_id),
        "role": context.primary_role,
        "roles": sorted(context.role_names),
        "permissions": context.permissions,
        "accessiblePlants": [str(plant_id) for plant_id in context.accessible_plants],
        "allPlants": context.all_plants,
        "isOrgAdmin": context.is_org_admin,
    }
