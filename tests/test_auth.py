"""
Authentication routes against a fake supabase auth client.
"""
from datetime import timedelta
from types import SimpleNamespace
import uuid

import pytest
from supabase import AuthApiError

from app.api.deps import get_db
from app.db.session import TENANT_CONTEXT_KEY, SessionLocal
from app.main import app
from app.models.enums import UserStatus
from app.models.profile import Profile
from conftest import auth_headers, make_profile, provider_session, provider_user, use_auth_provider

pytestmark = pytest.mark.anyio("asyncio")


async def test_protected_route_without_token_returns_envelope(client):
    async with client:
        r = await client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {
        "success": False,
        "error": "Authentication required",
        "code": "AUTHENTICATION_REQUIRED",
        "statusCode": 401,
    }


async def test_expired_token_is_rejected(client, learner):
    async with client:
        r = await client.get("/api/auth/me", headers=auth_headers(learner, timedelta(minutes=-1)))
    assert r.status_code == 401
    assert r.json()["code"] == "TOKEN_EXPIRED"


async def test_token_without_profile_is_rejected(client):
    ghost = Profile(id=uuid.uuid4(), email="ghost@specchem.com")
    async with client:
        r = await client.get("/api/auth/me", headers=auth_headers(ghost))
    assert r.status_code == 401
    assert r.json()["code"] == "PROFILE_NOT_FOUND"


async def test_suspended_user_is_forbidden(client, db, plant):
    suspended = make_profile(db, plant, status=UserStatus.SUSPENDED)
    async with client:
        r = await client.get("/api/auth/me", headers=auth_headers(suspended))
    assert r.status_code == 403
    assert r.json()["code"] == "ACCOUNT_SUSPENDED"


async def test_me_returns_role_permissions_and_plants(client, hr_admin, plant, other_plant):
    async with client:
        r = await client.get("/api/auth/me", headers=auth_headers(hr_admin))
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert data["profile"]["email"] == "hr@specchem.com"
    assert data["profile"]["firstName"] == "Harper"
    assert data["role"] == "hr_admin"
    assert "manage_users" in data["permissions"]
    assert data["allPlants"] is True
    assert set(data["accessiblePlants"]) == {str(plant.id), str(other_plant.id)}


async def test_signup_creates_profile_in_plant(client, db, plant):
    new_id = uuid.uuid4()
    calls = use_auth_provider(sign_up=lambda credentials: SimpleNamespace(user=provider_user(new_id), session=None))
    async with client:
        r = await client.post("/api/auth/signup", json={
            "email": "new@specchem.com",
            "password": "s3cret-pass",
            "firstName": "Nia",
            "lastName": "New",
            "plantId": str(plant.id),
            "jobTitle": "Operator",
        })
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["profile"]["id"] == str(new_id)
    assert data["profile"]["plantId"] == str(plant.id)
    assert data["confirmationRequired"] is True

    name, (credentials,) = calls[0]
    assert name == "sign_up"
    assert credentials["email"] == "new@specchem.com"
    assert credentials["options"]["data"] == {"first_name": "Nia", "last_name": "New"}
    assert db.query(Profile).filter(Profile.id == new_id).one().job_title == "Operator"


async def test_signup_with_session_needs_no_confirmation(client, plant):
    new_id = uuid.uuid4()
    use_auth_provider(
        sign_up=lambda credentials: SimpleNamespace(user=provider_user(new_id), session=provider_session())
    )
    async with client:
        r = await client.post("/api/auth/signup", json={
            "email": "new@specchem.com",
            "password": "s3cret-pass",
            "firstName": "Nia",
            "lastName": "New",
            "plantId": str(plant.id),
        })
    assert r.status_code == 201
    assert r.json()["data"]["confirmationRequired"] is False


async def test_signup_rejects_unknown_plant(client):
    calls = use_auth_provider()
    async with client:
        r = await client.post("/api/auth/signup", json={
            "email": "new@specchem.com",
            "password": "s3cret-pass",
            "firstName": "Nia",
            "lastName": "New",
            "plantId": str(uuid.uuid4()),
        })
    assert r.status_code == 404
    assert calls == []


async def test_signup_rejects_duplicate_email(client, learner, plant):
    calls = use_auth_provider()
    async with client:
        r = await client.post("/api/auth/signup", json={
            "email": "Learner@specchem.com",
            "password": "s3cret-pass",
            "firstName": "Lee",
            "lastName": "Again",
            "plantId": str(plant.id),
        })
    assert r.status_code == 409
    assert r.json()["code"] == "CONFLICT"
    assert calls == []


async def test_signup_checks_run_with_org_wide_tenant_context(client, learner, plant):
    sessions = []

    def recording_get_db():
        session = SessionLocal()
        sessions.append(session)
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = recording_get_db
    use_auth_provider()
    async with client:
        r = await client.post("/api/auth/signup", json={
            "email": "learner@specchem.com",
            "password": "s3cret-pass",
            "firstName": "Lee",
            "lastName": "Again",
            "plantId": str(plant.id),
        })
    assert r.status_code == 409
    assert sessions[0].info[TENANT_CONTEXT_KEY].all_plants is True


async def test_signup_validates_body(client, plant):
    async with client:
        r = await client.post("/api/auth/signup", json={
            "email": "not-an-email",
            "password": "s3cret-pass",
            "firstName": "Nia",
            "lastName": "New",
            "plantId": str(plant.id),
        })
    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["field"] == "email"


async def test_login_returns_provider_tokens(client):
    calls = use_auth_provider(
        sign_in_with_password=lambda credentials: SimpleNamespace(user=None, session=provider_session())
    )
    async with client:
        r = await client.post("/api/auth/login", data={"username": "lee@specchem.com", "password": "pw-123456"})
    assert r.status_code == 200
    assert r.json() == {
        "access_token": "access-123",
        "token_type": "bearer",
        "refresh_token": "refresh-456",
        "expires_in": 3600,
    }
    assert calls == [("sign_in_with_password", ({"email": "lee@specchem.com", "password": "pw-123456"},))]


async def test_login_with_bad_credentials(client):
    def reject(credentials):
        raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")

    use_auth_provider(sign_in_with_password=reject)
    async with client:
        r = await client.post("/api/auth/login", data={"username": "lee@specchem.com", "password": "wrong"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid login credentials"


async def test_provider_outage_is_retried_then_reported(client, monkeypatch):
    monkeypatch.setattr("app.core.decorators.time.sleep", lambda seconds: None)

    def broken(credentials):
        raise AuthApiError("database error", 500, None)

    calls = use_auth_provider(sign_in_with_password=broken)
    async with client:
        r = await client.post("/api/auth/login", data={"username": "lee@specchem.com", "password": "pw-123456"})
    assert r.status_code == 502
    assert r.json()["code"] == "AUTH_PROVIDER_ERROR"
    assert len(calls) == 3


async def test_refresh_uses_refresh_token(client):
    calls = use_auth_provider(
        refresh_session=lambda token: SimpleNamespace(user=None, session=provider_session(access_token="fresh"))
    )
    async with client:
        r = await client.post("/api/auth/refresh", json={"refreshToken": "refresh-456"})
    assert r.status_code == 200
    assert r.json()["access_token"] == "fresh"
    assert calls == [("refresh_session", ("refresh-456",))]


async def test_forgot_password_does_not_reveal_accounts(client):
    def unknown(email, options):
        raise AuthApiError("User not found", 404, "user_not_found")

    calls = use_auth_provider(reset_password_for_email=unknown)
    async with client:
        r = await client.post("/api/auth/forgot-password", json={"email": "nobody@specchem.com"})
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert calls[0][1][0] == "nobody@specchem.com"


async def test_logout_and_reset_password(client, learner):
    calls = use_auth_provider(
        admin_sign_out=lambda jwt: None,
        admin_update_user_by_id=lambda uid, attributes: SimpleNamespace(user=provider_user(uid)),
    )
    headers = auth_headers(learner)
    async with client:
        r1 = await client.post("/api/auth/logout", headers=headers)
        r2 = await client.post("/api/auth/reset-password", json={"password": "brand-new-pw"}, headers=headers)
    assert r1.status_code == 200
    assert r2.status_code == 200
    assert calls[0] == ("admin.sign_out", (headers["Authorization"].split(" ", 1)[1],))
    assert calls[1] == ("admin.update_user_by_id", (str(learner.id), {"password": "brand-new-pw"}))


async def test_rls_debug_is_for_dev_admins(client, learner, dev_admin):
    async with client:
        denied = await client.get("/api/auth/rls-debug", headers=auth_headers(learner))
        allowed = await client.get("/api/auth/rls-debug", headers=auth_headers(dev_admin))
    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["data"]["role"] == "dev_admin"
