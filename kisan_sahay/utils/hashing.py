from __future__ import annotations

import hashlib
import secrets

import bcrypt

from kisan_sahay.core.config import settings

OTP_LENGTH = 6


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, stored: str | None) -> bool:
    if not stored:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        return False


def generate_otp(length: int = OTP_LENGTH) -> str:
    # First digit is never 0 so the code always has the full length
    first = str(secrets.randbelow(9) + 1)
    return first + "".join(str(secrets.randbelow(10)) for _ in range(length - 1))


def hash_otp(otp: str) -> str:
    return hash_password(otp)


def verify_otp(otp: str, stored: str | None) -> bool:
    return verify_password(otp, stored)


def hash_token(token: str) -> str:
    """SHA-256 hex digest, the stored form of refresh tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
