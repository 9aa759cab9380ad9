"""Bearer session resolution for protected listings.

Listing endpoints never reject a request in a dependency; they receive a
``SessionContext`` and let the listing service turn a missing or invalid
session into the empty 401 envelope.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Annotated

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from betaintel.config import get_settings

logger = structlog.get_logger()
settings = get_settings()
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SessionContext:
    authenticated: bool
    subject: str | None = None
    reason: str | None = None


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.jwt_access_token_expire_minutes
        )

    to_encode = {
        "sub": subject,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def decode_session(token: str) -> SessionContext:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError:
        return SessionContext(authenticated=False, reason="expired")
    except JWTError:
        return SessionContext(authenticated=False, reason="invalid")

    subject = payload.get("sub")
    if subject is None or payload.get("type") != "access":
        return SessionContext(authenticated=False, reason="invalid")
    return SessionContext(authenticated=True, subject=str(subject))


async def get_session_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> SessionContext:
    """Resolve the bearer token, if any, without raising."""
    if not settings.auth_enabled:
        return SessionContext(authenticated=True, subject="anonymous")
    if not credentials:
        return SessionContext(authenticated=False, reason="missing")

    context = decode_session(credentials.credentials)
    if not context.authenticated:
        logger.info("session_rejected", reason=context.reason)
    return context


CurrentSession = Annotated[SessionContext, Depends(get_session_context)]
