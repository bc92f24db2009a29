from fastapi import APIRouter, Depends

from smart_scheduler.api.deps import get_schedule_engine
from smart_scheduler.schemas.constraints import ConstraintSet, ConstraintViolation
from smart_scheduler.schemas.reference import ReferenceCollections
from smart_scheduler.services.schedule_engine import ScheduleEngine

router = APIRouter()


@router.get("/reference", response_model=ReferenceCollections)
async def get_reference_data(engine: ScheduleEngine = Depends(get_schedule_engine)) -> ReferenceCollections:
    return engine.reference.to_collections()


@router.put("/reference", response_model=ReferenceCollections)
async def replace_reference_data(
    payload: ReferenceCollections,
    engine: ScheduleEngine = Depends(get_schedule_engine),
) -> ReferenceCollections:
    reference = await engine.set_reference_data(payload)
    return reference.to_collections()


@router.get("/constraints", response_model=ConstraintSet)
async def list_constraints(engine: ScheduleEngine = Depends(get_schedule_engine)) -> ConstraintSet:
    return ConstraintSet(constraints=list(engine.constraints))


@router.put("/constraints", response_model=ConstraintSet)
async def replace_constraints(
    payload: ConstraintSet,
    engine: ScheduleEngine = Depends(get_schedule_engine),
) -> ConstraintSet:
    constraints = await engine.set_constraints(payload.constraints)
    return ConstraintSet(constraints=list(constraints))


@router.get("/constraints/violations", response_model=list[ConstraintViolation])
async def list_constraint_violations(
    engine: ScheduleEngine = Depends(get_schedule_engine),
) -> list[ConstraintViolation]:
    return engine.evaluate_constraints()
