from __future__ import annotations

import logging
from typing import Callable, Optional, Union

import jwt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from kisan_sahay.core.config import settings
from kisan_sahay.core.errors import ApiError, ErrorCode
from kisan_sahay.db.session import get_db
from kisan_sahay.models.admin_user import AdminRole, AdminUser
from kisan_sahay.models.farmer import Farmer
from kisan_sahay.services.jwt import ADMIN, FARMER, decode_access_token
from kisan_sahay.services.notification_service import NotificationDispatcher, get_dispatcher
from kisan_sahay.utils.rate_limiter import InMemoryRateLimiter, RateLimiter

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)

_rate_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _rate_limiter


def get_notifier() -> NotificationDispatcher:
    return get_dispatcher()


def _decode(token: Optional[str]) -> dict:
    if not token:
        raise ApiError.unauthorized("Authentication required")
    try:
        return decode_access_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise ApiError.unauthorized("Access token expired", ErrorCode.TOKEN_EXPIRED) from exc
    except jwt.InvalidTokenError as exc:
        raise ApiError.unauthorized("Invalid access token", ErrorCode.TOKEN_INVALID) from exc


def _subject_id(payload: dict) -> int:
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise ApiError.unauthorized("Invalid access token", ErrorCode.TOKEN_INVALID) from exc


def _load(db: Session, payload: dict) -> Union[Farmer, AdminUser]:
    subject_type = payload.get("type")
    if subject_type == FARMER:
        farmer = db.get(Farmer, _subject_id(payload))
        if farmer is None:
            raise ApiError.unauthorized("Account not found", ErrorCode.TOKEN_INVALID)
        return farmer
    if subject_type == ADMIN:
        admin = db.get(AdminUser, _subject_id(payload))
        if admin is None:
            raise ApiError.unauthorized("Account not found", ErrorCode.TOKEN_INVALID)
        if not admin.is_active:
            raise ApiError.forbidden("Account is deactivated")
        return admin
    raise ApiError.unauthorized("Invalid access token", ErrorCode.TOKEN_INVALID)


def get_current_principal(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Union[Farmer, AdminUser]:
    return _load(db, _decode(token))


def get_current_farmer(principal: Union[Farmer, AdminUser] = Depends(get_current_principal)) -> Farmer:
    if not isinstance(principal, Farmer):
        raise ApiError.forbidden("Farmer access required")
    return principal


def get_current_admin(principal: Union[Farmer, AdminUser] = Depends(get_current_principal)) -> AdminUser:
    if not isinstance(principal, AdminUser):
        raise ApiError.forbidden("Admin access required")
    return principal


def require_role(*roles: AdminRole) -> Callable[..., AdminUser]:
    def _check(admin: AdminUser = Depends(get_current_admin)) -> AdminUser:
        if admin.role not in roles:
            raise ApiError.forbidden()
        return admin

    return _check


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(limiter: RateLimiter, key: str, limit: int, window_seconds: int) -> None:
    decision = limiter.hit(key, limit, window_seconds)
    if not decision.allowed:
        logger.warning("[ratelimit] %s refused, retry in %ss", key, decision.retry_after)
        raise ApiError(
            429,
            ErrorCode.RATE_LIMIT_EXCEEDED,
            "Too many requests. Please try again later.",
            {"retryAfter": decision.retry_after},
            headers={"Retry-After": str(decision.retry_after)},
        )


class RateLimit:
    """Route dependency refusing requests over ``limit`` per window."""

    def __init__(self, scope: str, limit: int, window_seconds: int, key_func: Optional[Callable[[Request], str]] = None):
        self.scope = scope
        self.limit = limit
        self.window_seconds = window_seconds
        self.key_func = key_func or client_ip

    def __call__(self, request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
        enforce_rate_limit(limiter, f"{self.scope}:{self.key_func(request)}", self.limit, self.window_seconds)


default_rate_limit = RateLimit("global", settings.RATE_LIMIT_MAX_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS)
