"""Schedule lifecycle: Empty -> Draft -> Published, with derived state recomputation.

Every mutation builds a new frozen ``Schedule`` and swaps the ``current``
reference, so readers always observe a whole snapshot. Lifecycle operations
(generate, save, load, publish, unpublish, hydrate, reference updates) are
coroutines serialized by one lock; synchronous edits arriving while one of
them is in flight are rejected. A boundary call that times out keeps the
engine busy until its worker thread returns, so calls never interleave.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Callable, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import partial
from typing import Any, TypeVar

from pydantic import ValidationError

from smart_scheduler.core.config import get_settings
from smart_scheduler.core.exceptions import (
    AppError,
    ConflictsPresentError,
    InvalidTargetError,
    LifecycleBusyError,
    LifecycleTimeoutError,
    ResourceNotFoundError,
    SchedulePublishedError,
    ScheduleValidationError,
    UpstreamFailureError,
)
from smart_scheduler.schemas.constraints import Constraint, ConstraintViolation, constraint_list_adapter
from smart_scheduler.schemas.reference import ReferenceCollections
from smart_scheduler.schemas.schedule import AssignmentSet, Schedule, ScheduleState
from smart_scheduler.schemas.timetable import Assignment, AssignmentUpdate, TimeSlot
from smart_scheduler.services.conflict_service import ConflictDetector
from smart_scheduler.services.constraint_service import evaluate_constraints
from smart_scheduler.services.generator import SampleScheduleGenerator, ScheduleGenerator
from smart_scheduler.services.reference_data import ReferenceData
from smart_scheduler.services.repository import InMemoryScheduleRepository, ScheduleRepository
from smart_scheduler.services.stats import StatsCalculator
from smart_scheduler.services.time_model import default_slots

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Cached display names that go stale when the referenced id changes.
_NAME_FIELDS = {
    "facultyId": "facultyName",
    "subjectId": "subjectName",
    "classroomId": "classroomName",
}

# Identity and lifecycle fields carried over when a schedule is re-derived.
_SCHEDULE_FIELDS = {"id", "name", "description", "createdAt", "updatedAt", "isPublished"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validation_error(exc: ValidationError, message: str) -> ScheduleValidationError:
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return ScheduleValidationError(message, details={"errors": errors})


def coerce_assignment(data: Assignment | Mapping[str, Any]) -> Assignment:
    if isinstance(data, Assignment):
        return data
    try:
        return Assignment.model_validate(dict(data))
    except ValidationError as exc:
        raise _validation_error(exc, "Invalid assignment") from exc


class ScheduleEngine:
    def __init__(
        self,
        repository: ScheduleRepository | None = None,
        *,
        generator: ScheduleGenerator | None = None,
        detector: ConflictDetector | None = None,
        calculator: StatsCalculator | None = None,
        reference: ReferenceData | None = None,
        constraints: Iterable[Constraint] = (),
        time_slots: Sequence[TimeSlot] | None = None,
        timeout: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._repository = repository or InMemoryScheduleRepository()
        self._generator = generator or SampleScheduleGenerator()
        self._detector = detector or ConflictDetector()
        self._calculator = calculator or StatsCalculator()
        self._reference = reference or ReferenceData()
        self._constraints: tuple[Constraint, ...] = tuple(constraints)
        self._time_slots: tuple[TimeSlot, ...] = tuple(time_slots) if time_slots is not None else tuple(default_slots())
        self._timeout = get_settings().lifecycle_timeout_seconds if timeout is None else timeout
        self._clock = clock
        self._id_factory = id_factory

        self._current: Schedule | None = None
        self._saved: tuple[Schedule, ...] = ()
        self._lifecycle_lock = asyncio.Lock()
        self._operation: str | None = None
        self._orphaned: asyncio.Future | None = None

    # -- read side -------------------------------------------------------

    @property
    def current(self) -> Schedule | None:
        return self._current

    @property
    def saved(self) -> tuple[Schedule, ...]:
        return self._saved

    @property
    def state(self) -> ScheduleState:
        if self._current is None:
            return ScheduleState.empty
        return self._current.state

    @property
    def reference(self) -> ReferenceData:
        return self._reference

    @property
    def constraints(self) -> tuple[Constraint, ...]:
        return self._constraints

    @property
    def time_slots(self) -> tuple[TimeSlot, ...]:
        return self._time_slots

    @property
    def busy_operation(self) -> str | None:
        return self._operation

    def evaluate_constraints(self) -> list[ConstraintViolation]:
        if self._current is None:
            return []
        return evaluate_constraints(self._current.assignments, self._constraints)

    # -- derived state -----------------------------------------------------

    def _derive(self, schedule_fields: dict[str, Any], assignments: Sequence[Assignment]) -> Schedule:
        conflicts = self._detector.detect(assignments)
        stats = self._calculator.compute(
            assignments,
            faculties=self._reference.faculties,
            subjects=self._reference.subject_requirements,
        )
        stats = stats.model_copy(update={"totalConflicts": len(conflicts)})
        return Schedule(
            **schedule_fields,
            assignments=tuple(assignments),
            conflicts=tuple(conflicts),
            stats=stats,
        )

    def _new_draft(self, name: str, assignments: Sequence[Assignment]) -> Schedule:
        now = self._clock()
        return self._derive(
            {"id": self._id_factory(), "name": name, "createdAt": now, "updatedAt": now, "isPublished": False},
            assignments,
        )

    def _with_assignments(self, schedule: Schedule, assignments: Sequence[Assignment]) -> Schedule:
        fields = schedule.model_dump(include=_SCHEDULE_FIELDS)
        fields["updatedAt"] = self._clock()
        return self._derive(fields, assignments)

    # -- synchronous mutations --------------------------------------------

    def _ensure_mutable(self) -> None:
        if self._operation is not None:
            raise LifecycleBusyError(self._operation)
        if self._current is not None and self._current.isPublished:
            raise SchedulePublishedError(self._current.id)

    def add_assignment(self, assignment: Assignment | Mapping[str, Any]) -> Schedule:
        self._ensure_mutable()
        item = coerce_assignment(assignment)
        if not item.start < item.end:
            raise ScheduleValidationError(f"Assignment {item.id}: end time must be after start time")
        item = self._reference.denormalize(item)

        if self._current is None:
            schedule = self._new_draft("New Schedule", [item])
            logger.info("Created draft schedule %s", schedule.id)
        else:
            if self._current.find_assignment(item.id) is not None:
                raise ScheduleValidationError(
                    f"Assignment {item.id} already exists", details={"assignment_id": item.id}
                )
            schedule = self._with_assignments(self._current, [*self._current.assignments, item])
        self._current = schedule
        return schedule

    def remove_assignment(self, assignment_id: str) -> Schedule | None:
        if self._current is None or self._current.find_assignment(assignment_id) is None:
            logger.debug("Assignment %s not present, nothing to remove", assignment_id)
            return self._current
        self._ensure_mutable()
        remaining = [item for item in self._current.assignments if item.id != assignment_id]
        # An emptied schedule stays a Draft rather than collapsing to Empty.
        self._current = self._with_assignments(self._current, remaining)
        return self._current

    def update_assignment(
        self, assignment_id: str, updates: AssignmentUpdate | Mapping[str, Any]
    ) -> Schedule:
        if self._current is None:
            raise ResourceNotFoundError("Assignment", assignment_id)
        existing = self._current.find_assignment(assignment_id)
        if existing is None:
            raise ResourceNotFoundError("Assignment", assignment_id)
        self._ensure_mutable()

        if isinstance(updates, AssignmentUpdate):
            changes = updates.model_dump(exclude_unset=True)
        else:
            changes = dict(updates)
            if changes.pop("id", assignment_id) != assignment_id:
                raise ScheduleValidationError(
                    "Assignment id cannot be changed", details={"assignment_id": assignment_id}
                )

        merged = existing.model_dump()
        for id_field, name_field in _NAME_FIELDS.items():
            if id_field in changes and changes[id_field] != merged[id_field] and name_field not in changes:
                merged[name_field] = None
        merged.update(changes)
        merged["id"] = assignment_id
        try:
            updated = Assignment.model_validate(merged)
        except ValidationError as exc:
            raise _validation_error(exc, f"Invalid update for assignment {assignment_id}") from exc
        updated = self._reference.denormalize(updated)

        assignments = [updated if item.id == assignment_id else item for item in self._current.assignments]
        self._current = self._with_assignments(self._current, assignments)
        return self._current

    # -- lifecycle operations --------------------------------------------

    @asynccontextmanager
    async def _lifecycle(self, operation: str) -> AsyncIterator[None]:
        await self._lifecycle_lock.acquire()
        self._operation = operation
        self._orphaned = None
        try:
            yield
        finally:
            orphaned, self._orphaned = self._orphaned, None
            if orphaned is not None and not orphaned.done():
                # The boundary call outlived its caller; stay busy until it finishes.
                orphaned.add_done_callback(partial(self._finish_orphaned, operation))
            else:
                self._operation = None
                self._lifecycle_lock.release()

    def _finish_orphaned(self, operation: str, worker: asyncio.Future) -> None:
        if worker.cancelled():
            logger.warning("Abandoned %s call was cancelled", operation)
        elif worker.exception() is not None:
            logger.warning("Abandoned %s call failed: %s", operation, worker.exception())
        else:
            logger.info("Abandoned %s call completed", operation)
        self._operation = None
        self._lifecycle_lock.release()

    async def _call_upstream(
        self, operation: str, func: Callable[..., T], *args: Any, timeout: float | None = None
    ) -> T:
        limit = self._timeout if timeout is None else timeout
        worker = asyncio.ensure_future(asyncio.to_thread(func, *args))
        try:
            return await asyncio.wait_for(asyncio.shield(worker), timeout=limit)
        except asyncio.TimeoutError as exc:
            self._orphaned = worker
            logger.warning("%s timed out after %ss", operation, limit)
            raise LifecycleTimeoutError(operation, limit) from exc
        except asyncio.CancelledError:
            self._orphaned = worker
            raise
        except AppError:
            raise
        except Exception as exc:
            logger.exception("%s failed at the repository boundary", operation)
            raise UpstreamFailureError(operation, exc) from exc

    def _replace_saved(self, schedule: Schedule) -> tuple[Schedule, ...]:
        if any(item.id == schedule.id for item in self._saved):
            return tuple(schedule if item.id == schedule.id else item for item in self._saved)
        return (*self._saved, schedule)

    def _find_saved(self, schedule_id: str) -> Schedule | None:
        return next((item for item in self._saved if item.id == schedule_id), None)

    async def generate_schedule(self, *, timeout: float | None = None) -> Schedule:
        async with self._lifecycle("generate_schedule"):
            produced = await self._call_upstream(
                "generate_schedule", self._generator.generate, self._reference, timeout=timeout
            )
            try:
                checked = AssignmentSet(assignments=[coerce_assignment(item) for item in produced])
            except ValidationError as exc:
                raise _validation_error(exc, "Generated schedule is invalid") from exc
            assignments = [self._reference.denormalize(item) for item in checked.assignments]
            schedule = self._new_draft("Generated Schedule", assignments)
            self._current = schedule
            logger.info(
                "Generated schedule %s with %d assignment(s) and %d conflict(s)",
                schedule.id,
                len(schedule.assignments),
                len(schedule.conflicts),
            )
            return schedule

    async def save_schedule(
        self, name: str, description: str | None = None, *, timeout: float | None = None
    ) -> Schedule:
        async with self._lifecycle("save_schedule"):
            current = self._current
            if current is None:
                raise ResourceNotFoundError("Schedule", "current")
            if not name or not name.strip():
                raise ScheduleValidationError("Schedule name is required")
            snapshot = current.model_copy(
                update={"name": name.strip(), "description": description, "updatedAt": self._clock()}
            )
            await self._call_upstream("save_schedule", self._repository.upsert_saved, snapshot, timeout=timeout)
            self._saved = self._replace_saved(snapshot)
            logger.info("Saved schedule %s as %r", snapshot.id, snapshot.name)
            return snapshot

    async def load_schedule(self, schedule_id: str) -> Schedule:
        async with self._lifecycle("load_schedule"):
            schedule = self._find_saved(schedule_id)
            if schedule is None:
                raise ResourceNotFoundError("Schedule", schedule_id)
            self._current = schedule
            logger.info("Loaded schedule %s", schedule_id)
            return schedule

    async def _set_published(self, schedule_id: str, published: bool, timeout: float | None) -> Schedule:
        current = self._current
        if current is None or current.id != schedule_id:
            raise InvalidTargetError(schedule_id, current.id if current is not None else None)
        if published and current.conflicts:
            raise ConflictsPresentError(schedule_id, len(current.conflicts))

        updated = current.model_copy(update={"isPublished": published, "updatedAt": self._clock()})
        saved = self._find_saved(schedule_id)
        if saved is not None:
            # The saved entry takes the published content but keeps its own name.
            mirror = updated.model_copy(update={"name": saved.name, "description": saved.description})
            operation = "publish_schedule" if published else "unpublish_schedule"
            await self._call_upstream(operation, self._repository.upsert_saved, mirror, timeout=timeout)
            self._saved = self._replace_saved(mirror)
        self._current = updated
        return updated

    async def publish_schedule(self, schedule_id: str, *, timeout: float | None = None) -> Schedule:
        async with self._lifecycle("publish_schedule"):
            schedule = await self._set_published(schedule_id, True, timeout)
            logger.info("Published schedule %s", schedule_id)
            return schedule

    async def unpublish_schedule(self, schedule_id: str, *, timeout: float | None = None) -> Schedule:
        async with self._lifecycle("unpublish_schedule"):
            schedule = await self._set_published(schedule_id, False, timeout)
            logger.info("Schedule %s returned to draft", schedule_id)
            return schedule

    async def set_reference_data(
        self, collections: ReferenceCollections, *, timeout: float | None = None
    ) -> ReferenceData:
        async with self._lifecycle("set_reference_data"):
            await self._call_upstream("set_reference_data", self._store_collections, collections, timeout=timeout)
            self._reference = ReferenceData.from_collections(collections)
            if self._current is not None:
                # Capacities and subject requirements feed the stats.
                self._current = self._derive(
                    self._current.model_dump(include=_SCHEDULE_FIELDS),
                    self._current.assignments,
                )
            return self._reference

    def _store_collections(self, collections: ReferenceCollections) -> None:
        data = collections.model_dump(mode="json")
        for kind in ("faculties", "subjects", "classrooms"):
            self._repository.store_reference(kind, data[kind])

    async def set_constraints(
        self, constraints: Iterable[Constraint], *, timeout: float | None = None
    ) -> tuple[Constraint, ...]:
        items = tuple(constraints)
        async with self._lifecycle("set_constraints"):
            payload = [item.model_dump(mode="json") for item in items]
            await self._call_upstream(
                "set_constraints", self._repository.store_reference, "constraints", payload, timeout=timeout
            )
            self._constraints = items
            return items

    async def hydrate(self, *, timeout: float | None = None) -> int:
        """Re-load saved schedules and reference data persisted by a previous session.

        Persisted data is untrusted: every record is re-validated and its
        conflicts and stats recomputed. Invalid records are skipped. Returns the
        number of saved schedules restored.
        """
        async with self._lifecycle("hydrate"):
            raw_saved = await self._call_upstream("hydrate", self._repository.list_saved, timeout=timeout)
            raw_reference = await self._call_upstream("hydrate", self._repository.load_reference, timeout=timeout)

            reference = self._restore_reference(raw_reference)
            constraints = self._restore_constraints(raw_reference.get("constraints", []))

            self._reference = reference
            self._constraints = constraints
            restored = [schedule for schedule in map(self._restore_schedule, raw_saved) if schedule is not None]
            self._saved = tuple(restored)
            logger.info("Hydrated %d saved schedule(s), skipped %d", len(restored), len(raw_saved) - len(restored))
            return len(restored)

    def _restore_reference(self, raw: Mapping[str, list]) -> ReferenceData:
        try:
            collections = ReferenceCollections.model_validate(
                {kind: raw.get(kind, []) for kind in ("faculties", "subjects", "classrooms")}
            )
        except ValidationError:
            logger.warning("Persisted reference data failed validation; starting with empty reference data")
            return ReferenceData()
        return ReferenceData.from_collections(collections)

    def _restore_constraints(self, raw: list) -> tuple[Constraint, ...]:
        restored: list[Constraint] = []
        for item in raw:
            try:
                restored.extend(constraint_list_adapter.validate_python([item]))
            except ValidationError:
                constraint_id = item.get("id") if isinstance(item, dict) else item
                logger.warning("Skipping invalid persisted constraint %r", constraint_id)
        return tuple(restored)

    def _restore_schedule(self, raw: Any) -> Schedule | None:
        try:
            schedule = Schedule.model_validate(raw)
            AssignmentSet(assignments=list(schedule.assignments))
        except ValidationError:
            schedule_id = raw.get("id") if isinstance(raw, dict) else None
            logger.warning("Skipping invalid persisted schedule %s", schedule_id)
            return None

        fields = schedule.model_dump(include=_SCHEDULE_FIELDS)
        rebuilt = self._derive(fields, schedule.assignments)
        if rebuilt.isPublished and rebuilt.conflicts:
            logger.warning(
                "Persisted schedule %s is published but has conflicts; restoring as draft", rebuilt.id
            )
            rebuilt = rebuilt.model_copy(update={"isPublished": False})
        return rebuilt
