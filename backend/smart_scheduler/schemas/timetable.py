from __future__ import annotations

import re
from enum import Enum
from functools import total_ordering

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")


class Day(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"

    @property
    def order(self) -> int:
        return DAY_ORDER.index(self)


DAY_ORDER: tuple[Day, ...] = tuple(Day)


def split_time(value: str) -> tuple[int, int]:
    """Split ``HH:MM`` into ``(hour, minute)``; raises ``ValueError`` on bad input."""
    if not isinstance(value, str):
        raise ValueError("Time must be a string in HH:MM 24-hour format")
    match = TIME_PATTERN.fullmatch(value)
    if match is None:
        raise ValueError(f"Time {value!r} must be in HH:MM 24-hour format")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23:
        raise ValueError(f"Hour in {value!r} must be between 0 and 23")
    if minute > 59:
        raise ValueError(f"Minute in {value!r} must be between 0 and 59")
    return hour, minute


def parse_time_to_minutes(value: str) -> int:
    hour, minute = split_time(value)
    return hour * 60 + minute


def normalize_time(value: str) -> str:
    hour, minute = split_time(value)
    return f"{hour:02d}:{minute:02d}"


@total_ordering
class TimeOfDay(BaseModel):
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)

    model_config = {"frozen": True}

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    def format(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def __str__(self) -> str:
        return self.format()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TimeOfDay):
            return NotImplemented
        return (self.hour, self.minute) < (other.hour, other.minute)


class TimeSlot(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    day: Day
    startTime: str
    endTime: str

    model_config = {"frozen": True}

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlot":
        if parse_time_to_minutes(self.endTime) <= parse_time_to_minutes(self.startTime):
            raise ValueError("End time must be after start time")
        return self


class Assignment(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    facultyId: str = Field(min_length=1, max_length=64)
    subjectId: str = Field(min_length=1, max_length=64)
    classroomId: str = Field(min_length=1, max_length=64)
    timeSlotId: str | None = Field(default=None, max_length=64)
    day: Day
    startTime: str
    endTime: str
    # Denormalized display names, cached from reference data.
    facultyName: str | None = Field(default=None, max_length=200)
    subjectName: str | None = Field(default=None, max_length=200)
    classroomName: str | None = Field(default=None, max_length=200)

    model_config = {"frozen": True}

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "Assignment":
        if parse_time_to_minutes(self.endTime) <= parse_time_to_minutes(self.startTime):
            raise ValueError(f"Assignment {self.id}: end time must be after start time")
        return self

    @property
    def start(self) -> TimeOfDay:
        hour, minute = split_time(self.startTime)
        return TimeOfDay(hour=hour, minute=minute)

    @property
    def end(self) -> TimeOfDay:
        hour, minute = split_time(self.endTime)
        return TimeOfDay(hour=hour, minute=minute)


class AssignmentUpdate(BaseModel):
    facultyId: str | None = Field(default=None, min_length=1, max_length=64)
    subjectId: str | None = Field(default=None, min_length=1, max_length=64)
    classroomId: str | None = Field(default=None, min_length=1, max_length=64)
    timeSlotId: str | None = Field(default=None, max_length=64)
    day: Day | None = None
    startTime: str | None = None
    endTime: str | None = None
    facultyName: str | None = Field(default=None, max_length=200)
    subjectName: str | None = Field(default=None, max_length=200)
    classroomName: str | None = Field(default=None, max_length=200)

    # The assignment id is immutable, so it is not an accepted field.
    model_config = {"extra": "forbid"}

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_time(value)
