"""JWT token creation and verification.

Two token classes, each signed with its own secret:
- Access token: {sub, role, type=access}, default 7 days
- Refresh token: {sub, type=refresh}, default 30 days

The refresh token deliberately carries no role. Whoever exchanges it must
look the user up again, so a role change takes effect on the next refresh
instead of being replayed from an old token.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from taskhub.config import settings
from taskhub.db.models import ROLES
from taskhub.errors import TaskHubError

ACCESS = "access"
REFRESH = "refresh"


class InvalidOrExpiredToken(TaskHubError):
    """Bad signature, malformed payload, wrong token class, or expired."""


@dataclass(frozen=True)
class AccessClaims:
    subject_id: int
    role: str


@dataclass(frozen=True)
class RefreshClaims:
    subject_id: int


def _encode(claims: dict, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str, token_type: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidOrExpiredToken("Token has expired")
    except jwt.InvalidTokenError as e:
        raise InvalidOrExpiredToken(f"Invalid token: {e}")

    if payload.get("type") != token_type:
        raise InvalidOrExpiredToken(f"Not an {token_type} token")
    return payload


def _subject_id(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidOrExpiredToken("Invalid token subject")


def issue_access_token(
    subject_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed access token embedding the user's current role."""
    return _encode(
        {"sub": str(subject_id), "role": role, "type": ACCESS},
        settings.jwt_secret,
        expires_delta or timedelta(days=settings.access_token_expire_days),
    )


def issue_refresh_token(
    subject_id: int,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed refresh token. No role claim on purpose."""
    return _encode(
        {"sub": str(subject_id), "type": REFRESH},
        settings.jwt_refresh_secret,
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def verify_access_token(token: str) -> AccessClaims:
    """Verify an access token against the access secret.

    The role comes from the token as issued; it is not re-checked against
    the database here.
    """
    payload = _decode(token, settings.jwt_secret, ACCESS)
    role = payload.get("role")
    if role not in ROLES:
        raise InvalidOrExpiredToken("Invalid token role")
    return AccessClaims(subject_id=_subject_id(payload), role=role)


def verify_refresh_token(token: str) -> RefreshClaims:
    """Verify a refresh token against the refresh secret. Ignores any role."""
    payload = _decode(token, settings.jwt_refresh_secret, REFRESH)
    return RefreshClaims(subject_id=_subject_id(payload))
