from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings
from app.core.errors import AuthenticationError


@dataclass
class TokenPayload:
    sub: str
    email: Optional[str]
    role: Optional[str]
    exp: Optional[int]


def create_access_token(
    subject: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Mint an access token shaped like the ones Supabase Auth issues.

    Used for local development and the test-suite; production tokens come
    from the auth provider.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: Dict[str, Any] = {
        "sub": str(subject),
        "email": email,
        "aud": settings.JWT_AUDIENCE,
        "role": "authenticated",
        "exp": expire,
    }
    if extra_claims:
        to_encode.update(extra_claims)
    return jwt.encode(to_encode, settings.SUPABASE_JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenPayload:
    """Verify signature, expiry and audience of a bearer token."""
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except ExpiredSignatureError:
        raise AuthenticationError("Access token has expired", code="TOKEN_EXPIRED")
    except JWTError:
        raise AuthenticationError("Invalid access token", code="INVALID_TOKEN")

    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError("Access token has no subject", code="INVALID_TOKEN")
    return TokenPayload(
        sub=sub,
        email=payload.get("email"),
        role=payload.get("role"),
        exp=payload.get("exp"),
    )
