# app/core/security.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from app.core.config import settings


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class Capability(str, Enum):
    """
    What a caller may do. Granted by the identity service in the token's
    "scopes" claim; routes check capabilities, never role names.
    """

    SCHEDULE_READ = "schedule:read"
    SCHEDULE_WRITE = "schedule:write"
    SHIFTS_MANAGE = "shifts:manage"
    APPOINTMENTS_WRITE = "appointments:write"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    *,
    subject: str,                # staff id (UUID as str)
    role: Optional[str] = None,
    hospital_id: Optional[str] = None,
    scopes: Optional[list[str]] = None,
    expires_minutes: Optional[int] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a short-lived Bearer access token.
    Production tokens come from the identity service; this is used by
    local tooling and tests.
    """
    exp_minutes = expires_minutes or settings.ACCESS_EXPIRES_MIN
    to_encode: Dict[str, Any] = {
        "sub": subject,
        "type": TokenType.ACCESS.value,
        "iat": int(_utcnow().timestamp()),
        "exp": int((_utcnow() + timedelta(minutes=exp_minutes)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    if role:
        to_encode["role"] = role
    if hospital_id:
        to_encode["hospital_id"] = hospital_id
    if scopes:
        to_encode["scopes"] = scopes
    if extra_claims:
        to_encode.update(extra_claims)

    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class InvalidTokenError(Exception):
    """Raised when a token is missing/invalid/expired or claims are malformed."""


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises InvalidTokenError on failure.
    """
    if not token:
        raise InvalidTokenError("missing_token")
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        # expired signature, invalid signature, bad format, ...
        raise InvalidTokenError("invalid_token") from exc

    if "sub" not in payload or "type" not in payload:
        raise InvalidTokenError("invalid_claims")

    return payload


def is_access_token(payload: Dict[str, Any]) -> bool:
    return payload.get("type") == TokenType.ACCESS.value
