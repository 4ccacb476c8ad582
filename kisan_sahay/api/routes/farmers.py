from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from kisan_sahay.api.deps import get_current_farmer
from kisan_sahay.core.responses import ok
from kisan_sahay.db.session import get_db
from kisan_sahay.models.farmer import Farmer
from kisan_sahay.schemas.checkin import CheckInOut
from kisan_sahay.schemas.common import pagination
from kisan_sahay.schemas.farmer import FarmerOut, FarmerUpdate
from kisan_sahay.services.checkin_service import CheckinService
from kisan_sahay.services.farmer_service import FarmerService

router = APIRouter()


@router.get("/me")
def get_profile(request: Request, farmer: Farmer = Depends(get_current_farmer)):
    return ok(request, {"farmer": FarmerOut.model_validate(farmer).dump()})


@router.patch("/me")
def update_profile(
    payload: FarmerUpdate,
    request: Request,
    db: Session = Depends(get_db),
    farmer: Farmer = Depends(get_current_farmer),
):
    farmer = FarmerService.update_profile(db, farmer, payload)
    return ok(request, {"farmer": FarmerOut.model_validate(farmer).dump()})


@router.get("/me/checkins")
def checkin_history(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    farmer: Farmer = Depends(get_current_farmer),
):
    checkins, total = CheckinService.list_checkins(
        db, farmer_id=farmer.id, start=start_date, end=end_date, page=page, limit=limit
    )
    return ok(request, {
        "checkIns": [CheckInOut.model_validate(c).dump() for c in checkins],
        "pagination": pagination(page, limit, total),
    })


@router.get("/me/stats")
def checkin_stats(
    request: Request,
    period: Literal["week", "month", "3months", "year"] = Query("month"),
    db: Session = Depends(get_db),
    farmer: Farmer = Depends(get_current_farmer),
):
    return ok(request, FarmerService.stats(db, farmer.id, period).to_dict())
