from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import Dict, List, Tuple
from urllib.parse import quote

from smart_scheduler.schemas.conflict import Conflict, ConflictKind
from smart_scheduler.schemas.timetable import Assignment, Day

ResourceKey = Callable[[Assignment], str]


def _id_part(value: str) -> str:
    # Percent-encoded with "-" escaped, so the "-" separators in conflict ids stay unambiguous.
    return quote(value, safe="").replace("-", "%2D")


def _sort_key(assignment: Assignment) -> Tuple[int, str]:
    return assignment.start.minutes, assignment.id


class ConflictDetector:
    """Finds faculty and classroom double bookings in a set of assignments.

    Assignments are bucketed by (resource, day) and each bucket is swept in
    start order while keeping the intervals that are still running. Every new
    assignment is paired with each running interval, so nested overlaps are
    reported and every overlapping pair appears exactly once per resource axis.
    """

    def detect(self, assignments: Iterable[Assignment]) -> List[Conflict]:
        items = list(assignments)
        conflicts: List[Conflict] = []
        conflicts.extend(
            self._detect_for_resource(
                items,
                key=lambda a: a.facultyId,
                kind=ConflictKind.faculty_double_booking,
            )
        )
        conflicts.extend(
            self._detect_for_resource(
                items,
                key=lambda a: a.classroomId,
                kind=ConflictKind.classroom_double_booking,
            )
        )
        return conflicts

    def _detect_for_resource(
        self,
        assignments: Sequence[Assignment],
        *,
        key: ResourceKey,
        kind: ConflictKind,
    ) -> List[Conflict]:
        buckets: Dict[str, Dict[Day, List[Assignment]]] = defaultdict(lambda: defaultdict(list))
        for assignment in assignments:
            buckets[key(assignment)][assignment.day].append(assignment)

        conflicts: List[Conflict] = []
        for resource_id in sorted(buckets):
            by_day = buckets[resource_id]
            for day in sorted(by_day, key=lambda d: d.order):
                day_bookings = by_day[day]
                if len(day_bookings) < 2:
                    continue
                for earlier, later in self._sweep(sorted(day_bookings, key=_sort_key)):
                    conflicts.append(self._build_conflict(kind, resource_id, day, earlier, later))
        return conflicts

    @staticmethod
    def _sweep(ordered: Sequence[Assignment]) -> List[Tuple[Assignment, Assignment]]:
        pairs: List[Tuple[Assignment, Assignment]] = []
        active: List[Assignment] = []
        for current in ordered:
            start = current.start.minutes
            # Intervals ending at or before this start only touch it.
            active = [item for item in active if item.end.minutes > start]
            for running in active:
                pairs.append((running, current))
            active.append(current)
        return pairs

    @staticmethod
    def _build_conflict(
        kind: ConflictKind,
        resource_id: str,
        day: Day,
        earlier: Assignment,
        later: Assignment,
    ) -> Conflict:
        if kind is ConflictKind.faculty_double_booking:
            name = earlier.facultyName or later.facultyName or resource_id
            message = f"Faculty {name} is double-booked on {day.value}"
            prefix = "fac"
        else:
            name = earlier.classroomName or later.classroomName or resource_id
            message = f"Classroom {name} is double-booked on {day.value}"
            prefix = "room"
        message += (
            f": {earlier.startTime}-{earlier.endTime} ({earlier.id})"
            f" overlaps {later.startTime}-{later.endTime} ({later.id})"
        )
        return Conflict(
            id=f"{prefix}-{_id_part(earlier.id)}-{_id_part(later.id)}",
            kind=kind,
            message=message,
            assignments=(earlier, later),
            severity="High",
        )


_default_detector = ConflictDetector()


def detect_conflicts(assignments: Iterable[Assignment]) -> List[Conflict]:
    return _default_detector.detect(assignments)
