"""
Supabase Auth access for the API, built on supabase-py.

Only the calls the API needs are wrapped: sign-up, password sign-in,
refresh, sign-out, password recovery/update and admin invites. Transient
failures are retried; provider rejections surface as ``AuthenticationError``
and anything else as ``AuthProviderError``.
"""
from typing import Any, Callable, Dict, Optional

from supabase import AuthApiError, AuthError, AuthRetryableError, Client, ClientOptions, create_client

from app.core.config import settings
from app.core.decorators import retry_on_transient_error
from app.core.errors import AuthenticationError, AuthProviderError, ValidationError
from app.core.logger import get_logger

logger = get_logger(__name__)

# provider answers that mean "bad credentials or input" rather than "provider broken"
CLIENT_ERROR_STATUSES = (400, 401, 403, 404, 422)


def _user_dict(user: Any) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": str(user.id), "email": getattr(user, "email", None)}


def _session_dict(session: Any) -> Optional[Dict[str, Any]]:
    if session is None:
        return None
    return {
        "access_token": session.access_token,
        "refresh_token": getattr(session, "refresh_token", None),
        "expires_in": getattr(session, "expires_in", None),
        "token_type": getattr(session, "token_type", None) or "bearer",
    }


class SupabaseAuthClient:
    """
    Wraps an anon-key supabase ``Client`` for end-user calls and a
    service-role one for admin calls. Either can be passed in; otherwise
    they are created from settings on first use.
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        service_client: Optional[Client] = None,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        service_role_key: Optional[str] = None,
    ):
        self.url = url if url is not None else settings.SUPABASE_URL
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY
        self.service_role_key = service_role_key if service_role_key is not None else settings.SUPABASE_SERVICE_ROLE_KEY
        self._client = client
        self._service_client = service_client

    @staticmethod
    def _create(url: str, key: str) -> Client:
        # one client per request; nothing is persisted or refreshed server side
        options = ClientOptions(auto_refresh_token=False, persist_session=False)
        return create_client(url, key, options=options)

    @property
    def client(self) -> Client:
        if self._client is None:
            if not (self.url and self.anon_key):
                raise AuthProviderError("Authentication provider is not configured")
            self._client = self._create(self.url, self.anon_key)
        return self._client

    @property
    def service_client(self) -> Client:
        if self._service_client is None:
            if not (self.url and self.service_role_key):
                raise AuthProviderError("Service role key is required for admin auth calls")
            self._service_client = self._create(self.url, self.service_role_key)
        return self._service_client

    @retry_on_transient_error(max_retries=2, transient_errors=(AuthRetryableError,))
    def _invoke(self, call: Callable[..., Any], *args) -> Any:
        return call(*args)

    def _call(self, operation: str, call: Callable[..., Any], *args) -> Any:
        try:
            return self._invoke(call, *args)
        except AuthApiError as e:
            if e.status in CLIENT_ERROR_STATUSES:
                logger.warning(f"Auth provider rejected {operation}: {e.message}")
                if e.status == 422:
                    raise ValidationError(e.message)
                raise AuthenticationError(e.message or "Authentication failed")
            logger.error(f"Auth provider {operation} failed with {e.status}: {e.message}")
            raise AuthProviderError("Authentication provider is unavailable")
        except AuthError as e:
            logger.error(f"Auth provider {operation} failed: {e.message}")
            raise AuthProviderError("Authentication provider is unavailable")

    def sign_up(self, email: str, password: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._call(
            "sign_up",
            self.client.auth.sign_up,
            {"email": email, "password": password, "options": {"data": data or {}}},
        )
        return {"user": _user_dict(response.user), "session": _session_dict(response.session)}

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        response = self._call(
            "sign_in_with_password",
            self.client.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        if response.session is None:
            raise AuthenticationError("Invalid login credentials")
        return _session_dict(response.session)

    def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        response = self._call("refresh_session", self.client.auth.refresh_session, refresh_token)
        if response.session is None:
            raise AuthenticationError("Refresh token is invalid or expired", code="INVALID_TOKEN")
        return _session_dict(response.session)

    def sign_out(self, access_token: str) -> None:
        self._call("sign_out", self.client.auth.admin.sign_out, access_token)

    def recover_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        self._call("reset_password_for_email", self.client.auth.reset_password_for_email, email, options)

    def update_password(self, user_id: str, password: str) -> Dict[str, Any]:
        response = self._call(
            "update_user_by_id",
            self.service_client.auth.admin.update_user_by_id,
            str(user_id),
            {"password": password},
        )
        return _user_dict(response.user)

    def invite_user(self, email: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._call(
            "invite_user_by_email",
            self.service_client.auth.admin.invite_user_by_email,
            email,
            {"data": data or {}},
        )
        return _user_dict(response.user)


def get_auth_client() -> SupabaseAuthClient:
    return SupabaseAuthClient()
