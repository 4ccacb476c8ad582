from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from kisan_sahay.api.deps import (
    client_ip,
    enforce_rate_limit,
    get_current_principal,
    get_notifier,
    get_rate_limiter,
)
from kisan_sahay.core.responses import ok
from kisan_sahay.db.session import get_db
from kisan_sahay.models.admin_user import AdminUser
from kisan_sahay.models.farmer import Farmer
from kisan_sahay.schemas.auth import AdminOut, FarmerLogin, FarmerRegister, OtpSend, OtpVerify, RefreshRequest
from kisan_sahay.schemas.farmer import FarmerOut
from kisan_sahay.services.auth_service import AuthService
from kisan_sahay.services.notification_service import NotificationDispatcher
from kisan_sahay.utils.rate_limiter import RateLimiter

router = APIRouter()

AUTH_LIMIT = 5
AUTH_WINDOW_SECONDS = 60
OTP_LIMIT = 3
OTP_WINDOW_SECONDS = 3600


def principal_out(principal: Union[Farmer, AdminUser]) -> dict:
    if isinstance(principal, AdminUser):
        return {"type": "admin", "admin": AdminOut.model_validate(principal).dump()}
    return {"type": "farmer", "farmer": FarmerOut.model_validate(principal).dump()}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: FarmerRegister,
    request: Request,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    enforce_rate_limit(limiter, f"auth:{client_ip(request)}:{payload.mobile}", AUTH_LIMIT, AUTH_WINDOW_SECONDS)
    farmer = AuthService.register_farmer(db, payload)
    return ok(request, {"farmer": FarmerOut.model_validate(farmer).dump()})


@router.post("/login")
def login(
    payload: FarmerLogin,
    request: Request,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    enforce_rate_limit(limiter, f"auth:{client_ip(request)}:{payload.mobile}", AUTH_LIMIT, AUTH_WINDOW_SECONDS)
    farmer, tokens = AuthService.login_farmer(db, payload.mobile, payload.password)
    return ok(request, {**tokens.to_dict(), "farmer": FarmerOut.model_validate(farmer).dump()})


@router.post("/otp/send")
def send_otp(
    payload: OtpSend,
    request: Request,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    enforce_rate_limit(limiter, f"otp:{payload.mobile}", OTP_LIMIT, OTP_WINDOW_SECONDS)
    expires_in = AuthService.send_otp(db, payload.mobile, notifier, payload.channel)
    return ok(request, {"message": "OTP sent", "expiresIn": expires_in})


@router.post("/otp/verify")
def verify_otp(
    payload: OtpVerify,
    request: Request,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    enforce_rate_limit(limiter, f"auth:{client_ip(request)}:{payload.mobile}", AUTH_LIMIT, AUTH_WINDOW_SECONDS)
    result = AuthService.verify_otp(db, payload.mobile, payload.otp)
    return ok(request, {
        **result.tokens.to_dict(),
        "farmer": FarmerOut.model_validate(result.farmer).dump(),
        "isNewUser": result.is_new_user,
    })


@router.post("/refresh")
def refresh(payload: RefreshRequest, request: Request, db: Session = Depends(get_db)):
    _, tokens = AuthService.refresh(db, payload.refresh_token)
    return ok(request, tokens.to_dict())


@router.post("/logout")
def logout(request: Request, payload: Optional[RefreshRequest] = None, db: Session = Depends(get_db)):
    revoked = AuthService.logout(db, payload.refresh_token if payload else None)
    return ok(request, {"loggedOut": True, "revoked": revoked})


@router.get("/me")
def me(request: Request, principal: Union[Farmer, AdminUser] = Depends(get_current_principal)):
    return ok(request, principal_out(principal))
