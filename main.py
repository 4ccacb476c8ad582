# Load .env file FIRST before any other imports that use os.getenv
from dotenv import load_dotenv
load_dotenv()

import logging
import uuid
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from kisan_sahay.api.deps import default_rate_limit
from kisan_sahay.api.routes.admin import router as admin_router
from kisan_sahay.api.routes.auth import router as auth_router
from kisan_sahay.api.routes.checkins import router as checkins_router
from kisan_sahay.api.routes.farmers import router as farmers_router
from kisan_sahay.core.config import settings
from kisan_sahay.core.errors import ApiError, register_exception_handlers
from kisan_sahay.core.responses import ok
from kisan_sahay.db.database import ENGINE_INIT_ERROR_MSG, ping_database
from kisan_sahay.db.session import SessionLocal, init_db
from kisan_sahay.services.alert_service import AlertService
from kisan_sahay.services.notification_service import get_dispatcher
from kisan_sahay.services.reminder_service import ReminderService
from kisan_sahay.utils.i18n import SUPPORTED_LANGUAGES, get_all_translations, is_language_supported

app = FastAPI(title=settings.APP_NAME)

logging.basicConfig(level=logging.INFO)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Retry-After"],
)


@app.middleware("http")
async def _request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


register_exception_handlers(app)

_limited = [Depends(default_rate_limit)]
app.include_router(auth_router, prefix=f"{settings.API_PREFIX}/auth", tags=["auth"], dependencies=_limited)
app.include_router(checkins_router, prefix=f"{settings.API_PREFIX}/checkins", tags=["checkins"], dependencies=_limited)
app.include_router(farmers_router, prefix=f"{settings.API_PREFIX}/farmers", tags=["farmers"], dependencies=_limited)
app.include_router(admin_router, prefix=f"{settings.API_PREFIX}/admin", tags=["admin"], dependencies=_limited)


@app.get("/health")
def health(request: Request):
    database = "ok"
    try:
        ping_database()
    except Exception as exc:
        logging.warning("[health] database ping failed: %s", exc)
        database = ENGINE_INIT_ERROR_MSG or "unavailable"
    return ok(request, {"status": "ok" if database == "ok" else "degraded", "database": database, "env": settings.ENV})


@app.get(f"{settings.API_PREFIX}/i18n/{{lang}}")
def translations(lang: str, request: Request):
    if not is_language_supported(lang):
        raise ApiError.not_found(f"Language '{lang}' is not supported")
    return ok(request, {
        "language": lang,
        "name": SUPPORTED_LANGUAGES[lang],
        "translations": get_all_translations(lang),
    })


# --- Internal Scheduler (APScheduler) ---
scheduler: Optional[BackgroundScheduler] = None


def _run_job(name: str, job) -> None:
    db = SessionLocal()
    try:
        result = job(db)
        logging.info("[scheduler] %s finished: %s", name, result)
    except Exception as exc:  # pragma: no cover
        db.rollback()
        logging.exception("[scheduler] %s failed: %s", name, exc)
    finally:
        db.close()


def _run_weekly_reminders():
    _run_job("weekly reminders", lambda db: ReminderService.send_weekly_checkin_reminders(db, get_dispatcher()).to_dict())


def _run_follow_ups():
    _run_job("follow-ups", lambda db: ReminderService.send_follow_up_reminders(db, get_dispatcher()).to_dict())


def _run_counselor_digest():
    _run_job("counselor digest", lambda db: ReminderService.send_counselor_alerts(db, get_dispatcher()).to_dict())


def _run_alert_reconciliation():
    _run_job("alert reconciliation", AlertService.reconcile_missing_alerts)


@app.on_event("startup")
def _init_database():
    try:
        init_db()
    except Exception as exc:  # pragma: no cover
        logging.exception("[startup] database initialization failed: %s", exc)


@app.on_event("startup")
def _start_scheduler():
    global scheduler
    if not settings.REMINDERS_ENABLED:
        logging.info("[scheduler] reminders disabled; scheduler not started")
        return
    try:
        scheduler = BackgroundScheduler()
        # Weekly: Sunday 18:00
        scheduler.add_job(_run_weekly_reminders, CronTrigger(day_of_week="sun", hour=18, minute=0))
        # Every 2 days: 10:00
        scheduler.add_job(_run_follow_ups, CronTrigger(day="*/2", hour=10, minute=0))
        # Daily: 09:00
        scheduler.add_job(_run_counselor_digest, CronTrigger(hour=9, minute=0))
        # Hourly
        scheduler.add_job(_run_alert_reconciliation, CronTrigger(minute=0))
        scheduler.start()
        logging.info("[scheduler] started (weekly Sun 18:00, follow-ups every 2 days 10:00, digest daily 09:00, reconciliation hourly)")
    except Exception as exc:  # pragma: no cover
        logging.exception("[scheduler] failed to start: %s", exc)


@app.on_event("shutdown")
def _stop_scheduler():
    global scheduler
    if scheduler:
        try:
            scheduler.shutdown(wait=False)
            logging.info("[scheduler] stopped")
        except Exception as exc:
            logging.warning("[scheduler] shutdown error: %s", exc)
        scheduler = None
