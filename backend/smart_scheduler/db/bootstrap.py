from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Engine

import smart_scheduler.models  # noqa: F401
from smart_scheduler.db.base import Base
from smart_scheduler.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "saved_schedules": {"id", "name", "description", "payload", "is_published", "position"},
    "reference_collections": {"kind", "payload"},
}


def find_missing_schema(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_required_columns(bind: Engine) -> None:
    with bind.begin() as connection:
        missing_tables, missing_columns = find_missing_schema(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")
    if missing_columns:
        flattened = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flattened)}")


def ensure_runtime_schema_compatibility(bind: Engine | None = None) -> None:
    bind = bind or default_engine
    try:
        Base.metadata.create_all(bind=bind)
        _assert_required_columns(bind)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
