from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from kisan_sahay.api.deps import (
    client_ip,
    enforce_rate_limit,
    get_current_admin,
    get_notifier,
    get_rate_limiter,
    require_role,
)
from kisan_sahay.api.routes.auth import AUTH_LIMIT, AUTH_WINDOW_SECONDS
from kisan_sahay.core.errors import ApiError
from kisan_sahay.core.responses import ok
from kisan_sahay.db.session import get_db
from kisan_sahay.models.admin_user import AdminRole, AdminUser
from kisan_sahay.models.alert import AlertSeverity, AlertStatus
from kisan_sahay.models.checkin import RiskLevel
from kisan_sahay.models.farmer import FarmerStatus
from kisan_sahay.schemas.admin import AssignCounselor, SendNotification
from kisan_sahay.schemas.alert import AlertOut, AlertUpdate
from kisan_sahay.schemas.auth import AdminLogin, AdminOut, AdminRegister
from kisan_sahay.schemas.checkin import CheckInOut, CheckInSummary
from kisan_sahay.schemas.common import pagination
from kisan_sahay.schemas.farmer import FarmerOut
from kisan_sahay.services.admin_service import AdminService, district_scope
from kisan_sahay.services.alert_service import AlertService
from kisan_sahay.services.auth_service import AuthService
from kisan_sahay.services.checkin_service import CheckinService
from kisan_sahay.services.notification_service import NotificationDispatcher
from kisan_sahay.utils.rate_limiter import RateLimiter

router = APIRouter()


# --- Auth ---

@router.post("/login")
def admin_login(
    payload: AdminLogin,
    request: Request,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    enforce_rate_limit(limiter, f"auth:{client_ip(request)}:{payload.email}", AUTH_LIMIT, AUTH_WINDOW_SECONDS)
    admin, tokens = AuthService.login_admin(db, payload.email, payload.password)
    return ok(request, {**tokens.to_dict(), "admin": AdminOut.model_validate(admin).dump()})


@router.post("/register", status_code=status.HTTP_201_CREATED)
def admin_register(
    payload: AdminRegister,
    request: Request,
    db: Session = Depends(get_db),
    _: AdminUser = Depends(require_role(AdminRole.SUPER_ADMIN)),
):
    admin = AuthService.register_admin(db, payload)
    return ok(request, {"admin": AdminOut.model_validate(admin).dump()})


@router.get("/me")
def admin_me(request: Request, admin: AdminUser = Depends(get_current_admin)):
    return ok(request, {"admin": AdminOut.model_validate(admin).dump()})


# --- Dashboard ---

@router.get("/dashboard")
def dashboard(request: Request, db: Session = Depends(get_db), admin: AdminUser = Depends(get_current_admin)):
    return ok(request, AdminService.dashboard(db, admin))


# --- Farmers ---

@router.get("/farmers")
def list_farmers(
    request: Request,
    status_filter: Optional[FarmerStatus] = Query(None, alias="status"),
    district: Optional[str] = Query(None),
    risk_level: Optional[RiskLevel] = Query(None, alias="riskLevel"),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    rows, total = AdminService.list_farmers(
        db, admin,
        status=status_filter, district=district, risk_level=risk_level, search=search,
        page=page, limit=limit,
    )
    farmers = []
    for farmer, last_checkin in rows:
        item = FarmerOut.model_validate(farmer).dump()
        item["lastCheckIn"] = CheckInSummary.model_validate(last_checkin).dump() if last_checkin else None
        farmers.append(item)
    return ok(request, {"farmers": farmers, "pagination": pagination(page, limit, total)})


@router.get("/farmers/{farmer_id}")
def farmer_details(
    farmer_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    farmer, checkins, alerts = AdminService.farmer_details(db, admin, farmer_id)
    return ok(request, {
        "farmer": FarmerOut.model_validate(farmer).dump(),
        "counselor": AdminOut.model_validate(farmer.counselor).dump() if farmer.counselor else None,
        "recentCheckIns": [CheckInOut.model_validate(c).dump() for c in checkins],
        "recentAlerts": [AlertOut.model_validate(a).dump() for a in alerts],
    })


# --- Alerts ---

@router.get("/alerts")
def list_alerts(
    request: Request,
    status_filter: Optional[AlertStatus] = Query(None, alias="status"),
    severity: Optional[AlertSeverity] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    alerts, total = AlertService.list_alerts(
        db, status=status_filter, severity=severity, district=district_scope(admin), page=page, limit=limit
    )
    return ok(request, {
        "alerts": [AlertOut.model_validate(a).dump() for a in alerts],
        "pagination": pagination(page, limit, total),
    })


@router.patch("/alerts/{alert_id}")
def update_alert(
    alert_id: int,
    payload: AlertUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    alert = AlertService.get_alert(db, alert_id)
    scope = district_scope(admin)
    if alert is None or (scope is not None and alert.farmer.district != scope):
        raise ApiError.not_found("Alert not found")
    alert = AlertService.update_alert(
        db, alert, admin,
        status=payload.status, resolution=payload.resolution, assigned_to_id=payload.assigned_to_id,
    )
    return ok(request, {"alert": AlertOut.model_validate(alert).dump()})


# --- Counselors ---

@router.get("/counselors")
def list_counselors(request: Request, db: Session = Depends(get_db), admin: AdminUser = Depends(get_current_admin)):
    counselors = []
    for counselor, open_alerts in AdminService.list_counselors(db, admin):
        item = AdminOut.model_validate(counselor).dump()
        item["openAlerts"] = open_alerts
        counselors.append(item)
    return ok(request, {"counselors": counselors})


@router.post("/counselors/assign")
def assign_counselor(
    payload: AssignCounselor,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    farmer, reassigned = AdminService.assign_counselor(db, admin, payload.farmer_id, payload.counselor_id)
    return ok(request, {"farmer": FarmerOut.model_validate(farmer).dump(), "alertsAssigned": reassigned})


# --- Check-ins & analytics ---

@router.get("/checkins")
def list_checkins(
    request: Request,
    farmer_id: Optional[int] = Query(None, alias="farmerId"),
    risk_level: Optional[RiskLevel] = Query(None, alias="riskLevel"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    checkins, total = CheckinService.list_checkins(
        db,
        farmer_id=farmer_id, risk_level=risk_level, district=district_scope(admin),
        start=start_date, end=end_date, page=page, limit=limit,
    )
    items = []
    for checkin in checkins:
        item = CheckInOut.model_validate(checkin).dump()
        item["farmerName"] = checkin.farmer.name
        item["district"] = checkin.farmer.district
        items.append(item)
    return ok(request, {"checkIns": items, "pagination": pagination(page, limit, total)})


@router.get("/analytics/trends")
def risk_trends(
    request: Request,
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    return ok(request, {"days": days, "trends": AdminService.risk_trends(db, admin, days)})


# --- Notifications ---

@router.post("/notifications/send")
def send_notifications(
    payload: SendNotification,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    stats = AdminService.send_notifications(db, admin, payload.farmer_ids, payload.message, payload.channel, notifier)
    return ok(request, stats.to_dict())
