from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt

from marketplace_api.core.config import settings
from marketplace_api.core.exceptions import AuthenticationError
from marketplace_api.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)


@dataclass(frozen=True)
class Identity:
    subject: str
    email: Optional[str] = None
    role: Optional[str] = None


def _extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def identify(request: Request) -> Optional[Identity]:
    """Resolve the caller from a bearer token; None when unauthenticated."""
    token = _extract_token(request)
    if token is None:
        return None

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.warning("auth.invalid_token", error=str(e), path=request.url.path)
        return None

    subject = payload.get("sub")
    if not subject:
        logger.warning("auth.missing_subject", path=request.url.path)
        return None

    return Identity(subject=str(subject), email=payload.get("email"), role=payload.get("role"))


def require_identity(request: Request) -> Identity:
    """Dependency for privileged routes."""
    identity = identify(request)
    if identity is None:
        raise AuthenticationError(
            message="No valid authentication token, access denied",
            code="unauthenticated",
        )
    logger.debug("auth.authenticated", subject=identity.subject, path=request.url.path)
    return identity


def create_access_token(subject: str, *, role: str = "admin", email: Optional[str] = None, expires_in_minutes: int = 60) -> str:
    """Issue a signed token; used by the admin tooling and tests."""
    claims = {
        "sub": subject,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_in_minutes),
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)
