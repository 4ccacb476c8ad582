from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from kisan_sahay.api.deps import get_current_farmer, get_notifier
from kisan_sahay.core.responses import ok
from kisan_sahay.db.session import get_db
from kisan_sahay.models.farmer import Farmer
from kisan_sahay.schemas.checkin import CheckInCreate, CheckInOut, CheckInSummary
from kisan_sahay.services.checkin_service import CheckinService
from kisan_sahay.services.notification_service import NotificationDispatcher
from kisan_sahay.utils.i18n import t

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_checkin(
    payload: CheckInCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    farmer: Farmer = Depends(get_current_farmer),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    result = CheckinService.create_checkin(db, farmer, payload)

    if result.decision.triggers_alert and farmer.counselor is not None:
        background_tasks.add_task(
            CheckinService.notify_counselor,
            notifier,
            farmer.counselor.phone,
            farmer.name,
            result.checkin.risk_level,
            farmer.district,
        )

    language = farmer.preferred_lang.value
    return ok(request, {
        "message": t("checkin.thankyou", language),
        "checkIn": CheckInSummary.model_validate(result.checkin).dump(),
        "response": result.feedback.to_dict(),
    })


@router.get("/{checkin_id}")
def get_checkin(
    checkin_id: int,
    request: Request,
    db: Session = Depends(get_db),
    farmer: Farmer = Depends(get_current_farmer),
):
    checkin = CheckinService.get_checkin(db, checkin_id, farmer.id)
    return ok(request, {"checkIn": CheckInOut.model_validate(checkin).dump()})
