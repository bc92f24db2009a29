from enum import Enum
from typing import Literal

from pydantic import BaseModel

from smart_scheduler.schemas.timetable import Assignment


class ConflictKind(str, Enum):
    faculty_double_booking = "FacultyDoubleBooking"
    classroom_double_booking = "ClassroomDoubleBooking"


class Conflict(BaseModel):
    id: str
    kind: ConflictKind
    message: str
    assignments: tuple[Assignment, Assignment]
    severity: Literal["High", "Medium", "Low"] = "High"

    model_config = {"frozen": True}

    @property
    def assignment_ids(self) -> tuple[str, str]:
        return self.assignments[0].id, self.assignments[1].id


class ConflictReport(BaseModel):
    conflicts: list[Conflict]
    total: int
