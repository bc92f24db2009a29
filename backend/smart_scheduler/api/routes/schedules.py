from fastapi import APIRouter, Depends, status

from smart_scheduler.api.deps import get_schedule_engine
from smart_scheduler.schemas.conflict import ConflictReport
from smart_scheduler.schemas.schedule import (
    AssignmentSet,
    EngineSnapshot,
    SaveScheduleRequest,
    Schedule,
    ScheduleStats,
)
from smart_scheduler.schemas.timetable import Assignment, AssignmentUpdate, TimeSlot
from smart_scheduler.services.conflict_service import detect_conflicts
from smart_scheduler.services.schedule_engine import ScheduleEngine
from smart_scheduler.services.stats import StatsCalculator

# Handlers are async so engine calls stay on the event loop thread (single writer).
router = APIRouter()


def _snapshot(engine: ScheduleEngine) -> EngineSnapshot:
    return EngineSnapshot(state=engine.state, current=engine.current)


@router.get("/current", response_model=EngineSnapshot)
async def get_current_schedule(engine: ScheduleEngine = Depends(get_schedule_engine)) -> EngineSnapshot:
    return _snapshot(engine)


@router.get("/saved", response_model=list[Schedule])
async def list_saved_schedules(engine: ScheduleEngine = Depends(get_schedule_engine)) -> list[Schedule]:
    return list(engine.saved)


@router.get("/timeslots", response_model=list[TimeSlot])
async def list_time_slots(engine: ScheduleEngine = Depends(get_schedule_engine)) -> list[TimeSlot]:
    return list(engine.time_slots)


@router.post("/assignments", response_model=Schedule, status_code=status.HTTP_201_CREATED)
async def add_assignment(
    payload: Assignment,
    engine: ScheduleEngine = Depends(get_schedule_engine),
) -> Schedule:
    return engine.add_assignment(payload)


@router.patch("/assignments/{assignment_id}", response_model=Schedule)
async def update_assignment(
    assignment_id: str,
    payload: AssignmentUpdate,
    engine: ScheduleEngine = Depends(get_schedule_engine),
) -> Schedule:
    return engine.update_assignment(assignment_id, payload)


@router.delete("/assignments/{assignment_id}", response_model=EngineSnapshot)
async def remove_assignment(
    assignment_id: str,
    engine: ScheduleEngine = Depends(get_schedule_engine),
) -> EngineSnapshot:
    engine.remove_assignment(assignment_id)
    return _snapshot(engine)


@router.post("/generate", response_model=Schedule)
async def generate_schedule(engine: ScheduleEngine = Depends(get_schedule_engine)) -> Schedule:
    return await engine.generate_schedule()


@router.post("/save", response_model=Schedule, status_code=status.HTTP_201_CREATED)
async def save_schedule(
    payload: SaveScheduleRequest,
    engine: ScheduleEngine = Depends(get_schedule_engine),
) -> Schedule:
    return await engine.save_schedule(payload.name, payload.description)


@router.post("/conflicts/detect", response_model=ConflictReport)
async def detect_schedule_conflicts(payload: AssignmentSet) -> ConflictReport:
    conflicts = detect_conflicts(payload.assignments)
    return ConflictReport(conflicts=conflicts, total=len(conflicts))


@router.post("/stats", response_model=ScheduleStats)
async def compute_schedule_stats(
    payload: AssignmentSet,
    engine: ScheduleEngine = Depends(get_schedule_engine),
) -> ScheduleStats:
    reference = engine.reference
    stats = StatsCalculator().compute(
        payload.assignments,
        faculties=reference.faculties,
        subjects=reference.subject_requirements,
    )
    return stats.model_copy(update={"totalConflicts": len(detect_conflicts(payload.assignments))})


@router.post("/{schedule_id}/load", response_model=Schedule)
async def load_schedule(schedule_id: str, engine: ScheduleEngine = Depends(get_schedule_engine)) -> Schedule:
    return await engine.load_schedule(schedule_id)


@router.post("/{schedule_id}/publish", response_model=Schedule)
async def publish_schedule(schedule_id: str, engine: ScheduleEngine = Depends(get_schedule_engine)) -> Schedule:
    return await engine.publish_schedule(schedule_id)


@router.post("/{schedule_id}/unpublish", response_model=Schedule)
async def unpublish_schedule(schedule_id: str, engine: ScheduleEngine = Depends(get_schedule_engine)) -> Schedule:
    return await engine.unpublish_schedule(schedule_id)
