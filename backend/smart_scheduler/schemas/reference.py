from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from smart_scheduler.schemas.timetable import Day, normalize_time, parse_time_to_minutes


class Availability(BaseModel):
    day: Day
    startTime: str
    endTime: str

    model_config = {"frozen": True}

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_window(self) -> "Availability":
        if parse_time_to_minutes(self.endTime) <= parse_time_to_minutes(self.startTime):
            raise ValueError("Availability end time must be after start time")
        return self


class Faculty(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr | None = None
    subjects: tuple[str, ...] = ()
    maxHoursPerDay: float = Field(default=8, ge=0, le=24)
    maxHoursPerWeek: float = Field(default=40, ge=0, le=168)
    availability: tuple[Availability, ...] = ()

    model_config = {"frozen": True}


class Subject(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    totalHours: float = Field(default=0, ge=0)
    sessionsPerWeek: int = Field(default=0, ge=0, le=50)
    sessionDuration: int = Field(default=120, ge=1, le=24 * 60)
    preferredClassroomIds: tuple[str, ...] = ()
    allowConsecutive: bool = True

    model_config = {"frozen": True}

    @property
    def required_weekly_hours(self) -> float:
        return self.sessionsPerWeek * self.sessionDuration / 60


class Classroom(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=100)
    building: str | None = Field(default=None, max_length=200)
    floor: int | None = None
    capacity: int = Field(default=30, ge=0, le=5000)
    resources: tuple[str, ...] = ()

    model_config = {"frozen": True}


class ReferenceCollections(BaseModel):
    faculties: list[Faculty] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    classrooms: list[Classroom] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "ReferenceCollections":
        for label, items in (
            ("faculty", self.faculties),
            ("subject", self.subjects),
            ("classroom", self.classrooms),
        ):
            seen: set[str] = set()
            duplicates: set[str] = set()
            for item in items:
                if item.id in seen:
                    duplicates.add(item.id)
                else:
                    seen.add(item.id)
            if duplicates:
                raise ValueError(f"Duplicate {label} id(s): {', '.join(sorted(duplicates))}")
        return self
