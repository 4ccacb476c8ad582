from sqlalchemy.orm import declarative_base

from kisan_sahay.db.database import SessionLocal, engine

Base = declarative_base()

from kisan_sahay.models import admin_user, alert, checkin, farmer, otp_log, refresh_token  # noqa: E402,F401


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
