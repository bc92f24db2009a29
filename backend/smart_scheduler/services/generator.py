from __future__ import annotations

from typing import Protocol

from smart_scheduler.schemas.timetable import Assignment
from smart_scheduler.services.reference_data import ReferenceData


class ScheduleGenerator(Protocol):
    """Produces a candidate assignment set; a real solver plugs in here."""

    def generate(self, reference: ReferenceData) -> list[Assignment]: ...


SAMPLE_ASSIGNMENTS = (
    {
        "id": "1",
        "facultyId": "faculty1",
        "subjectId": "subject1",
        "classroomId": "classroom1",
        "timeSlotId": "Monday-0900",
        "day": "Monday",
        "startTime": "09:00",
        "endTime": "11:00",
        "facultyName": "Dr. Smith",
        "subjectName": "Introduction to Programming",
        "classroomName": "Room 101",
    },
    {
        "id": "2",
        "facultyId": "faculty2",
        "subjectId": "subject2",
        "classroomId": "classroom2",
        "timeSlotId": "Monday-1100",
        "day": "Monday",
        "startTime": "11:00",
        "endTime": "13:00",
        "facultyName": "Dr. Johnson",
        "subjectName": "Database Management",
        "classroomName": "Room 102",
    },
    {
        "id": "3",
        "facultyId": "faculty1",
        "subjectId": "subject3",
        "classroomId": "classroom1",
        "timeSlotId": "Tuesday-0900",
        "day": "Tuesday",
        "startTime": "09:00",
        "endTime": "11:00",
        "facultyName": "Dr. Smith",
        "subjectName": "Algorithms",
        "classroomName": "Room 101",
    },
)


class SampleScheduleGenerator:
    """Returns a fixed illustrative assignment set."""

    def generate(self, reference: ReferenceData) -> list[Assignment]:
        return [Assignment.model_validate(item) for item in SAMPLE_ASSIGNMENTS]
