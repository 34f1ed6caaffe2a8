import pytest

from app.core.errors import TenantAccessError
from app.db.session import TENANT_CONTEXT_KEY
from app.models.enums import AdminRoleType
from app.models.profile import Profile
from app.services.tenancy import (
    RoleGrant,
    UserContext,
    apply_tenant_filter,
    load_user_context,
    require_plant_access,
    rls_debug_info,
    validate_tenant_access,
)
from conftest import make_plant, make_profile


def test_learner_sees_only_their_plant(db, plant, other_plant, learner):
    context = load_user_context(db, learner.id)

    assert context.accessible_plants == [plant.id]
    assert not context.all_plants
    assert context.primary_role == "user"
    assert context.permissions == ["read"]
    assert context.can_access_plant(plant.id)
    assert not context.can_access_plant(other_plant.id)


def test_plant_manager_sees_managed_plants(db, plant, other_plant):
    manager = make_profile(db, plant, roles=[(AdminRoleType.PLANT_MANAGER, other_plant)])
    context = load_user_context(db, manager.id)

    assert context.accessible_plants == [plant.id, other_plant.id]
    assert context.primary_role == "plant_manager"
    assert context.has_permission("view_analytics")
    assert not context.has_permission("manage_users")
    assert context.has_admin_role(AdminRoleType.PLANT_MANAGER, other_plant.id)
    assert not context.is_org_admin


def test_org_admin_sees_every_active_plant(db, plant, other_plant, hr_admin):
    closed = make_plant(db, name="Miami, FL", is_active=False)
    context = load_user_context(db, hr_admin.id)

    assert context.all_plants
    assert context.is_org_admin
    assert set(context.accessible_plants) == {plant.id, other_plant.id}
    assert closed.id not in context.accessible_plants
    assert context.primary_role == "hr_admin"


def test_role_priority_prefers_hr_admin():
    context = UserContext(
        user_id=None, email="x@specchem.com", plant_id=None,
        roles=[RoleGrant(AdminRoleType.PLANT_MANAGER), RoleGrant(AdminRoleType.DEV_ADMIN), RoleGrant(AdminRoleType.HR_ADMIN)],
    )
    assert context.primary_role == "hr_admin"


def test_load_user_context_binds_session(db, learner, plant):
    load_user_context(db, learner.id)
    bound = db.info[TENANT_CONTEXT_KEY]
    assert bound.user_id == str(learner.id)
    assert bound.plants_setting == str(plant.id)


def test_missing_profile_has_no_context(db):
    import uuid
    assert load_user_context(db, uuid.uuid4()) is None


def test_tenant_filter_restricts_queries(db, plant, other_plant, learner):
    make_profile(db, other_plant, email="atlanta@specchem.com")
    context = load_user_context(db, learner.id)

    emails = [p.email for p in apply_tenant_filter(db.query(Profile), Profile.plant_id, context).all()]
    assert emails == ["learner@specchem.com"]


def test_tenant_filter_with_no_plants_matches_nothing(db, learner):
    context = UserContext(user_id=learner.id, email=learner.email, plant_id=None)
    assert apply_tenant_filter(db.query(Profile), Profile.plant_id, context).count() == 0


def test_require_plant_access(db, plant, other_plant, learner):
    context = load_user_context(db, learner.id)
    require_plant_access(context, plant.id)
    with pytest.raises(TenantAccessError):
        require_plant_access(context, other_plant.id)
    with pytest.raises(TenantAccessError):
        require_plant_access(context, None)


def test_validate_tenant_access(db, plant, other_plant, learner):
    outsider = make_profile(db, other_plant)
    context = load_user_context(db, learner.id)
    assert validate_tenant_access(db, Profile, learner.id, context)
    assert not validate_tenant_access(db, Profile, outsider.id, context)


def test_rls_debug_info(db, dev_admin):
    info = rls_debug_info(load_user_context(db, dev_admin.id))
    assert info["role"] == "dev_admin"
    assert info["allPlants"] is True
    assert info["isOrgAdmin"] is True
