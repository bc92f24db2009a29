from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from smart_scheduler.api.deps import get_db
from smart_scheduler.db.bootstrap import find_missing_schema

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready(request: Request, db: Session = Depends(get_db)) -> JSONResponse:
    db_ok = True
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    db_error: str | None = None

    try:
        connection = db.connection()
        connection.execute(text("SELECT 1"))
        missing_tables, missing_columns = find_missing_schema(connection)
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    engine = getattr(request.app.state, "schedule_engine", None)
    schema_ok = not missing_tables and not missing_columns
    ready = db_ok and schema_ok and engine is not None

    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "ok": db_ok,
            "schema_ok": schema_ok,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
            "error": db_error,
        },
        "engine": {
            "ready": engine is not None,
            "state": engine.state.value if engine is not None else None,
            "busy_operation": engine.busy_operation if engine is not None else None,
            "saved_schedules": len(engine.saved) if engine is not None else 0,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
