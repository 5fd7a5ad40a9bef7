"""FastAPI auth dependencies: the authentication gate.

authenticate() turns an Authorization header into a Principal. Every
failure (no header, wrong scheme, bad signature, expired) ends in the
same Unauthenticated error, so clients cannot tell a forged token from
an expired one. The specific reason is only logged.

get_current_principal() is used as Depends() on protected routers;
require_admin() adds the role gate for admin-only routes.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException

from taskhub.auth.jwt import InvalidOrExpiredToken, verify_access_token
from taskhub.errors import Unauthenticated

logger = structlog.get_logger()


@dataclass(frozen=True)
class Principal:
    """The authenticated identity making the request."""

    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def authenticate(authorization: Optional[str]) -> Principal:
    """Resolve a Principal from a `Bearer <token>` header value."""
    if not authorization:
        raise Unauthenticated()

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated()

    try:
        claims = verify_access_token(token)
    except InvalidOrExpiredToken as e:
        logger.debug("auth.token_rejected", reason=str(e))
        raise Unauthenticated() from None

    return Principal(id=claims.subject_id, role=claims.role)


async def get_current_principal(
    authorization: Optional[str] = Header(None),
) -> Principal:
    """Required auth: 401 unless a valid access token is presented."""
    try:
        principal = authenticate(authorization)
    except Unauthenticated as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    structlog.contextvars.bind_contextvars(user_id=principal.id)
    return principal


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Role gate for admin-only routes. The route itself is not secret, so 403."""
    if not principal.is_admin:
        logger.info("auth.admin_required", user_id=principal.id)
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal
