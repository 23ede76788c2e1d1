"""Identity token handling.

Session tokens are signed JWTs issued by the external identity provider.
This service only verifies them; ``create_identity_token`` exists for
local development and tests.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from src.config import settings


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as asserted by the identity provider."""

    subject: str
    email: str | None = None


def create_identity_token(
    subject: str,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token the way the identity provider does."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_identity_token(token: str) -> Identity | None:
    """Verify ``token`` and return its identity, or None if it is not valid."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        return None
    return Identity(subject=subject, email=payload.get("email"))
