from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from smart_scheduler.schemas.timetable import Day, normalize_time, parse_time_to_minutes

ConstraintPriority = Literal["Hard", "Soft"]


class ConstraintBase(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    priority: ConstraintPriority = "Hard"
    enabled: bool = True
    description: str | None = Field(default=None, max_length=500)

    model_config = {"frozen": True}


class _TimeWindowMixin(BaseModel):
    startTime: str
    endTime: str

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_time_order(self):
        if parse_time_to_minutes(self.endTime) <= parse_time_to_minutes(self.startTime):
            raise ValueError("End time must be after start time")
        return self


class FacultyUnavailableConstraint(ConstraintBase, _TimeWindowMixin):
    type: Literal["FacultyUnavailable"] = "FacultyUnavailable"
    facultyId: str = Field(min_length=1, max_length=64)
    day: Day


class SubjectPreferredTimeConstraint(ConstraintBase, _TimeWindowMixin):
    type: Literal["SubjectPreferredTime"] = "SubjectPreferredTime"
    subjectId: str = Field(min_length=1, max_length=64)
    days: tuple[Day, ...] = Field(min_length=1)


class RoomRestrictionConstraint(ConstraintBase):
    type: Literal["RoomRestriction"] = "RoomRestriction"
    subjectId: str = Field(min_length=1, max_length=64)
    allowedClassroomIds: tuple[str, ...] = Field(min_length=1)


class MinimumBreakTimeConstraint(ConstraintBase):
    type: Literal["MinimumBreakTime"] = "MinimumBreakTime"
    # None applies the rule to every faculty member.
    facultyId: str | None = Field(default=None, min_length=1, max_length=64)
    minutes: int = Field(ge=1, le=240)


class MaxConsecutiveClassesConstraint(ConstraintBase):
    type: Literal["MaxConsecutiveClasses"] = "MaxConsecutiveClasses"
    facultyId: str | None = Field(default=None, min_length=1, max_length=64)
    maxConsecutive: int = Field(ge=1, le=12)


class PreferredDayPatternConstraint(ConstraintBase):
    type: Literal["PreferredDayPattern"] = "PreferredDayPattern"
    subjectId: str = Field(min_length=1, max_length=64)
    days: tuple[Day, ...] = Field(min_length=1)


Constraint = Annotated[
    Union[
        FacultyUnavailableConstraint,
        SubjectPreferredTimeConstraint,
        RoomRestrictionConstraint,
        MinimumBreakTimeConstraint,
        MaxConsecutiveClassesConstraint,
        PreferredDayPatternConstraint,
    ],
    Field(discriminator="type"),
]

constraint_list_adapter: TypeAdapter[list[Constraint]] = TypeAdapter(list[Constraint])


class ConstraintSet(BaseModel):
    constraints: list[Constraint] = Field(default_factory=list)


class ConstraintViolation(BaseModel):
    constraintId: str
    type: str
    priority: ConstraintPriority
    message: str
    assignmentIds: tuple[str, ...]

    model_config = {"frozen": True}
