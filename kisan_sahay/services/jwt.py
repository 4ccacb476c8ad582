import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from kisan_sahay.core.config import settings

FARMER = "farmer"
ADMIN = "admin"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime  # naive UTC

    def to_dict(self) -> dict:
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "tokenType": "bearer",
            "expiresIn": settings.JWT_ACCESS_EXPIRE_MINUTES * 60,
        }


def _encode(subject, subject_type: str, role: Optional[str], secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject),
        "type": subject_type,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    subject,
    subject_type: str = FARMER,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    return _encode(
        subject,
        subject_type,
        role,
        settings.JWT_ACCESS_SECRET,
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES),
    )


def create_refresh_token(
    subject,
    subject_type: str = FARMER,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    return _encode(
        subject,
        subject_type,
        role,
        settings.JWT_REFRESH_SECRET,
        expires_delta or timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
    )


def create_token_pair(subject, subject_type: str = FARMER, role: Optional[str] = None) -> TokenPair:
    refresh_delta = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)
    refresh_expires_at = datetime.now(timezone.utc).replace(tzinfo=None) + refresh_delta
    return TokenPair(
        access_token=create_access_token(subject, subject_type, role),
        refresh_token=create_refresh_token(subject, subject_type, role, refresh_delta),
        refresh_expires_at=refresh_expires_at,
    )


def decode_access_token(token: str) -> dict:
    """Raises ``jwt.ExpiredSignatureError`` or ``jwt.InvalidTokenError``."""
    return jwt.decode(token, settings.JWT_ACCESS_SECRET, algorithms=[settings.JWT_ALGORITHM])


def decode_refresh_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_REFRESH_SECRET, algorithms=[settings.JWT_ALGORITHM])
