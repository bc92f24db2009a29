from collections.abc import Generator

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from smart_scheduler.db.session import SessionLocal
from smart_scheduler.services.schedule_engine import ScheduleEngine


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_schedule_engine(request: Request) -> ScheduleEngine:
    engine = getattr(request.app.state, "schedule_engine", None)
    if engine is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Schedule engine is not ready")
    return engine
