from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Tuple, Union

import jwt as pyjwt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kisan_sahay.core.config import settings
from kisan_sahay.core.errors import ApiError, ErrorCode
from kisan_sahay.models.admin_user import AdminRole, AdminUser
from kisan_sahay.models.farmer import Farmer, PreferredLanguage
from kisan_sahay.models.otp_log import NotificationChannel, OtpLog
from kisan_sahay.models.refresh_token import RefreshToken
from kisan_sahay.schemas.auth import AdminRegister, FarmerRegister
from kisan_sahay.services.jwt import ADMIN, FARMER, TokenPair, create_token_pair, decode_refresh_token
from kisan_sahay.services.notification_service import NotificationDispatcher
from kisan_sahay.utils.date_utils import utcnow
from kisan_sahay.utils.hashing import (
    generate_otp,
    hash_otp,
    hash_password,
    hash_token,
    verify_otp,
    verify_password,
)

logger = logging.getLogger(__name__)

OTP_FARMER_NAME = "शेतकरी"
OTP_WINDOW = timedelta(hours=1)

Subject = Union[Farmer, AdminUser]


@dataclass(frozen=True)
class OtpLoginResult:
    farmer: Farmer
    tokens: TokenPair
    is_new_user: bool


def _invalid_credentials() -> ApiError:
    return ApiError.unauthorized("Invalid mobile number or password", ErrorCode.INVALID_CREDENTIALS)


class AuthService:
    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    @staticmethod
    def issue_tokens(db: Session, subject: Subject, *, commit: bool = True) -> TokenPair:
        if isinstance(subject, AdminUser):
            pair = create_token_pair(subject.id, ADMIN, subject.role.value)
            row = RefreshToken(admin_user_id=subject.id, token_hash=hash_token(pair.refresh_token),
                               expires_at=pair.refresh_expires_at)
        else:
            pair = create_token_pair(subject.id, FARMER)
            row = RefreshToken(farmer_id=subject.id, token_hash=hash_token(pair.refresh_token),
                               expires_at=pair.refresh_expires_at)
        db.add(row)
        if commit:
            db.commit()
        else:
            db.flush()
        return pair

    @staticmethod
    def refresh(db: Session, refresh_token: str) -> Tuple[Subject, TokenPair]:
        try:
            payload = decode_refresh_token(refresh_token)
        except pyjwt.ExpiredSignatureError as exc:
            raise ApiError.unauthorized("Refresh token expired", ErrorCode.TOKEN_EXPIRED) from exc
        except pyjwt.InvalidTokenError as exc:
            raise ApiError.unauthorized("Invalid refresh token", ErrorCode.TOKEN_INVALID) from exc

        stored = db.scalars(select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))).first()
        if stored is None or stored.revoked_at is not None:
            raise ApiError.unauthorized("Invalid refresh token", ErrorCode.TOKEN_INVALID)
        if stored.expires_at <= utcnow():
            raise ApiError.unauthorized("Refresh token expired", ErrorCode.TOKEN_EXPIRED)

        subject: Optional[Subject]
        if payload.get("type") == ADMIN:
            subject = db.get(AdminUser, stored.admin_user_id) if stored.admin_user_id else None
            if subject is not None and not subject.is_active:
                subject = None
        else:
            subject = db.get(Farmer, stored.farmer_id) if stored.farmer_id else None
        if subject is None or str(subject.id) != str(payload.get("sub")):
            raise ApiError.unauthorized("Invalid refresh token", ErrorCode.TOKEN_INVALID)

        stored.revoked_at = utcnow()
        pair = AuthService.issue_tokens(db, subject, commit=False)
        db.commit()
        return subject, pair

    @staticmethod
    def logout(db: Session, refresh_token: Optional[str]) -> bool:
        if not refresh_token:
            return False
        stored = db.scalars(select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))).first()
        if stored is None or stored.revoked_at is not None:
            return False
        stored.revoked_at = utcnow()
        db.commit()
        return True

    # ------------------------------------------------------------------
    # Farmers
    # ------------------------------------------------------------------

    @staticmethod
    def get_farmer_by_mobile(db: Session, mobile: str) -> Optional[Farmer]:
        return db.scalars(select(Farmer).where(Farmer.mobile == mobile)).first()

    @staticmethod
    def register_farmer(db: Session, data: FarmerRegister) -> Farmer:
        if AuthService.get_farmer_by_mobile(db, data.mobile) is not None:
            raise ApiError.conflict("This mobile number is already registered")
        farmer = Farmer(
            name=data.name.strip(),
            mobile=data.mobile,
            village=data.village.strip(),
            taluka=data.taluka.strip(),
            district=data.district.strip(),
            farm_size=data.farm_size,
            password_hash=hash_password(data.password),
            preferred_lang=data.preferred_lang,
            is_otp_user=False,
        )
        db.add(farmer)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ApiError.conflict("This mobile number is already registered") from exc
        db.refresh(farmer)
        logger.info("[auth] farmer %s registered", farmer.id)
        return farmer

    @staticmethod
    def login_farmer(db: Session, mobile: str, password: str) -> Tuple[Farmer, TokenPair]:
        farmer = AuthService.get_farmer_by_mobile(db, mobile)
        if farmer is None or farmer.is_otp_user or not farmer.password_hash:
            raise _invalid_credentials()
        if not verify_password(password, farmer.password_hash):
            raise _invalid_credentials()
        farmer.last_active_at = utcnow()
        pair = AuthService.issue_tokens(db, farmer)
        db.refresh(farmer)
        return farmer, pair

    @staticmethod
    def send_otp(
        db: Session,
        mobile: str,
        notifier: NotificationDispatcher,
        channel: NotificationChannel = NotificationChannel.SMS,
    ) -> int:
        """Issue a fresh code and return its lifetime in seconds."""
        since = utcnow() - OTP_WINDOW
        recent = db.scalar(
            select(func.count()).select_from(OtpLog).where(OtpLog.mobile == mobile, OtpLog.created_at >= since)
        ) or 0
        if recent >= settings.OTP_HOURLY_LIMIT:
            raise ApiError(
                429,
                ErrorCode.OTP_MAX_ATTEMPTS,
                "Too many OTP requests. Please try again after an hour.",
            )

        otp = generate_otp()
        expires_in = settings.OTP_EXPIRY_MINUTES * 60
        db.add(OtpLog(
            mobile=mobile,
            otp_hash=hash_otp(otp),
            channel=channel,
            expires_at=utcnow() + timedelta(seconds=expires_in),
        ))
        db.commit()

        farmer = AuthService.get_farmer_by_mobile(db, mobile)
        language = farmer.preferred_lang.value if farmer is not None else settings.DEFAULT_LANGUAGE
        result = notifier.send_otp(mobile, otp, channel, language)
        if not result.success:
            logger.warning("[auth] OTP delivery failed via %s: %s", result.provider, result.error)
        return expires_in

    @staticmethod
    def verify_otp(db: Session, mobile: str, otp: str) -> OtpLoginResult:
        now = utcnow()
        log = db.scalars(
            select(OtpLog)
            .where(OtpLog.mobile == mobile, OtpLog.verified.is_(False), OtpLog.expires_at > now)
            .order_by(OtpLog.created_at.desc(), OtpLog.id.desc())
        ).first()
        if log is None:
            raise ApiError.unauthorized("OTP expired or not found. Please request a new one.", ErrorCode.OTP_EXPIRED)
        if log.attempts >= settings.OTP_MAX_ATTEMPTS:
            raise ApiError.unauthorized("Too many wrong attempts. Please request a new OTP.", ErrorCode.OTP_MAX_ATTEMPTS)
        if not verify_otp(otp, log.otp_hash):
            log.attempts += 1
            db.commit()
            raise ApiError.unauthorized("Incorrect OTP", ErrorCode.INVALID_OTP)

        log.verified = True
        farmer = AuthService.get_farmer_by_mobile(db, mobile)
        is_new_user = farmer is None
        if is_new_user:
            farmer = Farmer(
                name=OTP_FARMER_NAME,
                mobile=mobile,
                village="",
                taluka="",
                district="",
                farm_size=0,
                preferred_lang=PreferredLanguage(settings.DEFAULT_LANGUAGE),
                is_otp_user=True,
            )
            db.add(farmer)
            db.flush()
            logger.info("[auth] OTP farmer %s created", farmer.id)
        farmer.last_active_at = now
        pair = AuthService.issue_tokens(db, farmer, commit=False)
        db.commit()
        db.refresh(farmer)
        return OtpLoginResult(farmer=farmer, tokens=pair, is_new_user=is_new_user)

    # ------------------------------------------------------------------
    # Admin users
    # ------------------------------------------------------------------

    @staticmethod
    def login_admin(db: Session, email: str, password: str) -> Tuple[AdminUser, TokenPair]:
        admin = db.scalars(select(AdminUser).where(AdminUser.email == email)).first()
        if admin is None or not verify_password(password, admin.password_hash):
            raise ApiError.unauthorized("Invalid email or password", ErrorCode.INVALID_CREDENTIALS)
        if not admin.is_active:
            raise ApiError.forbidden("Account is deactivated")
        pair = AuthService.issue_tokens(db, admin)
        db.refresh(admin)
        return admin, pair

    @staticmethod
    def register_admin(db: Session, data: AdminRegister, *, commit: bool = True) -> AdminUser:
        if db.scalars(select(AdminUser).where(AdminUser.email == data.email)).first() is not None:
            raise ApiError.conflict("Email is already registered")
        admin = AdminUser(
            email=data.email,
            password_hash=hash_password(data.password),
            name=data.name.strip(),
            role=AdminRole(data.role),
            district=data.district,
            phone=data.phone,
            is_active=True,
        )
        db.add(admin)
        try:
            if commit:
                db.commit()
                db.refresh(admin)
            else:
                db.flush()
        except IntegrityError as exc:
            db.rollback()
            raise ApiError.conflict("Email is already registered") from exc
        logger.info("[auth] admin %s registered with role %s", admin.id, admin.role.value)
        return admin
