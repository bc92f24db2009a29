from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping

from smart_scheduler.core.config import get_settings
from smart_scheduler.schemas.reference import Faculty, Subject
from smart_scheduler.schemas.schedule import ScheduleStats
from smart_scheduler.schemas.timetable import Assignment
from smart_scheduler.services.time_model import duration_minutes


def utilization_percent(booked_hours: float, capacity_hours: float) -> float:
    if capacity_hours <= 0:
        return 100.0 if booked_hours > 0 else 0.0
    return max(0.0, min(100.0, booked_hours / capacity_hours * 100))


class StatsCalculator:
    def __init__(
        self,
        *,
        faculty_capacity_hours: float | None = None,
        room_capacity_hours: float | None = None,
    ) -> None:
        settings = get_settings()
        self.faculty_capacity_hours = (
            settings.faculty_weekly_capacity_hours if faculty_capacity_hours is None else faculty_capacity_hours
        )
        self.room_capacity_hours = (
            settings.room_weekly_capacity_hours if room_capacity_hours is None else room_capacity_hours
        )

    def faculty_capacity(self, faculty_id: str, faculties: Mapping[str, Faculty] | None) -> float:
        faculty = (faculties or {}).get(faculty_id)
        if faculty is not None and faculty.maxHoursPerWeek > 0:
            return faculty.maxHoursPerWeek
        return self.faculty_capacity_hours

    def compute(
        self,
        assignments: Iterable[Assignment],
        *,
        faculties: Mapping[str, Faculty] | None = None,
        subjects: Mapping[str, Subject] | None = None,
    ) -> ScheduleStats:
        """Aggregate booked hours into utilization figures.

        ``totalConflicts`` is left at 0; the caller fills it from the conflict
        detector. ``unassignedHours`` is only computed when subject requirements
        are supplied, otherwise ``unassignedHoursComputed`` stays False.
        """
        faculty_hours: dict[str, float] = defaultdict(float)
        room_hours: dict[str, float] = defaultdict(float)
        subject_hours: dict[str, float] = defaultdict(float)
        total = 0

        for assignment in assignments:
            total += 1
            hours = duration_minutes(assignment.start, assignment.end) / 60
            faculty_hours[assignment.facultyId] += hours
            room_hours[assignment.classroomId] += hours
            subject_hours[assignment.subjectId] += hours

        faculty_utilization = {
            faculty_id: utilization_percent(hours, self.faculty_capacity(faculty_id, faculties))
            for faculty_id, hours in sorted(faculty_hours.items())
        }
        room_utilization = {
            room_id: utilization_percent(hours, self.room_capacity_hours)
            for room_id, hours in sorted(room_hours.items())
        }

        unassigned = 0.0
        computed = subjects is not None
        if subjects is not None:
            for subject_id, subject in subjects.items():
                gap = subject.required_weekly_hours - subject_hours.get(subject_id, 0.0)
                if gap > 0:
                    unassigned += gap

        return ScheduleStats(
            totalAssignments=total,
            totalConflicts=0,
            facultyUtilization=faculty_utilization,
            roomUtilization=room_utilization,
            unassignedHours=round(unassigned, 4),
            unassignedHoursComputed=computed,
        )
