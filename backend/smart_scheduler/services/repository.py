"""Persistence boundary for saved schedules and reference collections.

Repositories are synchronous; the schedule engine calls them from a worker
thread under a timeout. Reads return plain JSON-shaped data, which the engine
re-validates before use.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from threading import Lock
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from smart_scheduler.models.schedule import ReferenceCollection, SavedSchedule
from smart_scheduler.schemas.schedule import Schedule

logger = logging.getLogger(__name__)

REFERENCE_KINDS = ("faculties", "subjects", "classrooms", "constraints")


class ScheduleRepository(Protocol):
    def list_saved(self) -> list[dict]: ...

    def upsert_saved(self, schedule: Schedule) -> None: ...

    def load_reference(self) -> dict[str, list[dict]]: ...

    def store_reference(self, kind: str, items: list[dict]) -> None: ...


def _check_kind(kind: str) -> None:
    if kind not in REFERENCE_KINDS:
        raise ValueError(f"Unknown reference collection {kind!r}")


class InMemoryScheduleRepository:
    def __init__(self) -> None:
        self._saved: dict[str, dict] = {}
        self._reference: dict[str, list[dict]] = {}
        self._lock = Lock()

    def list_saved(self) -> list[dict]:
        with self._lock:
            return [copy.deepcopy(item) for item in self._saved.values()]

    def upsert_saved(self, schedule: Schedule) -> None:
        with self._lock:
            self._saved[schedule.id] = schedule.model_dump(mode="json")

    def load_reference(self) -> dict[str, list[dict]]:
        with self._lock:
            return copy.deepcopy(self._reference)

    def store_reference(self, kind: str, items: list[dict]) -> None:
        _check_kind(kind)
        with self._lock:
            self._reference[kind] = copy.deepcopy(items)


class SqlScheduleRepository:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def list_saved(self) -> list[dict]:
        with self._session_factory() as db:
            rows = db.execute(select(SavedSchedule).order_by(SavedSchedule.position)).scalars()
            return [dict(row.payload) for row in rows]

    def upsert_saved(self, schedule: Schedule) -> None:
        payload = schedule.model_dump(mode="json")
        with self._session_factory() as db:
            record = db.get(SavedSchedule, schedule.id)
            if record is None:
                position = db.execute(select(func.coalesce(func.max(SavedSchedule.position), -1))).scalar_one()
                record = SavedSchedule(id=schedule.id, position=position + 1)
                db.add(record)
            record.name = schedule.name
            record.description = schedule.description
            record.is_published = schedule.isPublished
            record.payload = payload
            db.commit()
        logger.debug("Stored saved schedule %s", schedule.id)

    def load_reference(self) -> dict[str, list[dict]]:
        with self._session_factory() as db:
            rows = db.execute(select(ReferenceCollection)).scalars()
            return {row.kind: list(row.payload) for row in rows if row.kind in REFERENCE_KINDS}

    def store_reference(self, kind: str, items: list[dict]) -> None:
        _check_kind(kind)
        with self._session_factory() as db:
            record = db.get(ReferenceCollection, kind)
            if record is None:
                record = ReferenceCollection(kind=kind)
                db.add(record)
            record.payload = items
            db.commit()
