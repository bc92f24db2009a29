from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from smart_scheduler.schemas.conflict import Conflict
from smart_scheduler.schemas.timetable import Assignment


class ScheduleState(str, Enum):
    empty = "Empty"
    draft = "Draft"
    published = "Published"


class ScheduleStats(BaseModel):
    totalAssignments: int = 0
    totalConflicts: int = 0
    facultyUtilization: dict[str, float] = Field(default_factory=dict)
    roomUtilization: dict[str, float] = Field(default_factory=dict)
    unassignedHours: float = 0.0
    # False when no subject requirements were supplied and unassignedHours is not meaningful.
    unassignedHoursComputed: bool = False

    model_config = {"frozen": True}


class Schedule(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    assignments: tuple[Assignment, ...] = ()
    conflicts: tuple[Conflict, ...] = ()
    stats: ScheduleStats = Field(default_factory=ScheduleStats)
    createdAt: datetime
    updatedAt: datetime
    isPublished: bool = False

    model_config = {"frozen": True}

    @property
    def state(self) -> ScheduleState:
        return ScheduleState.published if self.isPublished else ScheduleState.draft

    def find_assignment(self, assignment_id: str) -> Assignment | None:
        return next((item for item in self.assignments if item.id == assignment_id), None)


class AssignmentSet(BaseModel):
    assignments: list[Assignment] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "AssignmentSet":
        seen: set[str] = set()
        duplicates: set[str] = set()
        for item in self.assignments:
            if item.id in seen:
                duplicates.add(item.id)
            else:
                seen.add(item.id)
        if duplicates:
            raise ValueError(f"Duplicate assignment id(s): {', '.join(sorted(duplicates))}")
        return self


class SaveScheduleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class EngineSnapshot(BaseModel):
    state: ScheduleState
    current: Schedule | None = None
