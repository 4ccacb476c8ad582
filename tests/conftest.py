"""
Shared fixtures: a throwaway SQLite file, a TestClient with a recording
notifier and a fresh rate limiter, and factories for farmers and admins.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="kisan_sahay_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REMINDERS_ENABLED"] = "0"
os.environ["MSG91_AUTH_KEY"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""

from typing import List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from kisan_sahay.api.deps import get_notifier, get_rate_limiter  # noqa: E402
from kisan_sahay.db.database import engine  # noqa: E402
from kisan_sahay.db.session import Base, SessionLocal  # noqa: E402
from kisan_sahay.models.admin_user import AdminRole, AdminUser  # noqa: E402
from kisan_sahay.models.checkin import (  # noqa: E402
    CheckIn,
    CropCondition,
    FamilySupport,
    LoanPressure,
    RiskLevel,
    SleepQuality,
)
from kisan_sahay.models.farmer import Farmer, FarmerStatus, PreferredLanguage  # noqa: E402
from kisan_sahay.models.otp_log import NotificationChannel  # noqa: E402
from kisan_sahay.services.jwt import ADMIN, FARMER, create_access_token  # noqa: E402
from kisan_sahay.services.notification_service import NotificationDispatcher, NotificationResult  # noqa: E402
from kisan_sahay.utils.date_utils import utcnow  # noqa: E402
from kisan_sahay.utils.hashing import hash_password  # noqa: E402
from kisan_sahay.utils.rate_limiter import InMemoryRateLimiter  # noqa: E402

from main import app  # noqa: E402

PASSWORD = "secret123"


class FakeNotifier(NotificationDispatcher):
    """Records every dispatch; flip ``fail`` to simulate provider errors."""

    def __init__(self) -> None:
        self.reminders: List[tuple] = []
        self.alerts: List[tuple] = []
        self.otps: List[tuple] = []
        self.fail = False
        self.raise_on_alert = False

    def _result(self) -> NotificationResult:
        if self.fail:
            return NotificationResult(success=False, provider="fake", error="provider down")
        return NotificationResult(success=True, provider="fake", message_id="fake-1")

    def send_reminder(self, farmer_id, mobile, message, channel):
        self.reminders.append((farmer_id, mobile, message, NotificationChannel(channel)))
        return self._result()

    def send_alert(self, counselor_contact, farmer_name, risk_level, district):
        if self.raise_on_alert:
            raise RuntimeError("provider exploded")
        self.alerts.append((counselor_contact, farmer_name, risk_level, district))
        return self._result()

    def send_otp(self, mobile, otp, channel, language="mr"):
        self.otps.append((mobile, otp, NotificationChannel(channel), language))
        return self._result()

    @property
    def last_otp(self) -> Optional[str]:
        return self.otps[-1][1] if self.otps else None


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def limiter():
    return InMemoryRateLimiter()


@pytest.fixture
def client(notifier, limiter):
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_farmer(db):
    counter = {"n": 0}

    def _make(**overrides) -> Farmer:
        counter["n"] += 1
        values = dict(
            name=f"Farmer {counter['n']}",
            mobile=f"98765{counter['n']:05d}",
            village="Shirur",
            taluka="Shirur",
            district="Pune",
            farm_size=2.5,
            password_hash=hash_password(PASSWORD),
            preferred_lang=PreferredLanguage.EN,
            is_otp_user=False,
            status=FarmerStatus.ACTIVE,
        )
        values.update(overrides)
        farmer = Farmer(**values)
        db.add(farmer)
        db.commit()
        db.refresh(farmer)
        return farmer

    return _make


@pytest.fixture
def make_admin(db):
    counter = {"n": 0}

    def _make(role: AdminRole = AdminRole.COUNSELOR, **overrides) -> AdminUser:
        counter["n"] += 1
        values = dict(
            email=f"admin{counter['n']}@kisansahay.in",
            password_hash=hash_password(PASSWORD),
            name=f"Admin {counter['n']}",
            role=role,
            district="Pune",
            phone=f"91234{counter['n']:05d}",
            is_active=True,
        )
        values.update(overrides)
        admin = AdminUser(**values)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    return _make


def farmer_headers(farmer: Farmer) -> dict:
    return {"Authorization": f"Bearer {create_access_token(farmer.id, FARMER)}"}


def admin_headers(admin: AdminUser) -> dict:
    return {"Authorization": f"Bearer {create_access_token(admin.id, ADMIN, admin.role.value)}"}


@pytest.fixture
def make_checkin(db):
    def _make(farmer: Farmer, risk_level: RiskLevel = RiskLevel.LOW, risk_score: int = 0, **overrides) -> CheckIn:
        values = dict(
            farmer_id=farmer.id,
            crop_condition=CropCondition.GOOD,
            loan_pressure=LoanPressure.LOW,
            sleep_quality=SleepQuality.GOOD,
            family_support=FamilySupport.STRONG,
            hope_level=7,
            notes=None,
            risk_score=risk_score,
            risk_level=risk_level,
            critical_factors="[]",
            alert_triggered=False,
            counselor_notified=False,
            timestamp=utcnow(),
        )
        values.update(overrides)
        checkin = CheckIn(**values)
        db.add(checkin)
        db.commit()
        db.refresh(checkin)
        return checkin

    return _make
