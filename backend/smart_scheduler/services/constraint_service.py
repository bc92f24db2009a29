from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence

from smart_scheduler.schemas.constraints import (
    Constraint,
    ConstraintViolation,
    FacultyUnavailableConstraint,
    MaxConsecutiveClassesConstraint,
    MinimumBreakTimeConstraint,
    PreferredDayPatternConstraint,
    RoomRestrictionConstraint,
    SubjectPreferredTimeConstraint,
)
from smart_scheduler.schemas.timetable import Assignment, Day, parse_time_to_minutes
from smart_scheduler.services.time_model import intervals_overlap


def _violation(constraint, message: str, assignments: Sequence[Assignment]) -> ConstraintViolation:
    return ConstraintViolation(
        constraintId=constraint.id,
        type=constraint.type,
        priority=constraint.priority,
        message=message,
        assignmentIds=tuple(item.id for item in assignments),
    )


def _faculty_day_runs(
    assignments: Iterable[Assignment], faculty_id: str | None
) -> list[tuple[str, Day, list[Assignment]]]:
    buckets: dict[tuple[str, Day], list[Assignment]] = defaultdict(list)
    for assignment in assignments:
        if faculty_id is not None and assignment.facultyId != faculty_id:
            continue
        buckets[(assignment.facultyId, assignment.day)].append(assignment)
    ordered = sorted(buckets.items(), key=lambda item: (item[0][0], item[0][1].order))
    return [
        (fid, day, sorted(items, key=lambda a: (a.start.minutes, a.id)))
        for (fid, day), items in ordered
    ]


def _faculty_unavailable(
    constraint: FacultyUnavailableConstraint, assignments: Sequence[Assignment]
) -> list[ConstraintViolation]:
    window_start = parse_time_to_minutes(constraint.startTime)
    window_end = parse_time_to_minutes(constraint.endTime)
    violations = []
    for assignment in assignments:
        if assignment.facultyId != constraint.facultyId or assignment.day != constraint.day:
            continue
        if intervals_overlap(assignment.start.minutes, assignment.end.minutes, window_start, window_end):
            violations.append(
                _violation(
                    constraint,
                    f"Faculty {assignment.facultyName or assignment.facultyId} is unavailable on "
                    f"{constraint.day.value} {constraint.startTime}-{constraint.endTime}",
                    [assignment],
                )
            )
    return violations


def _subject_preferred_time(
    constraint: SubjectPreferredTimeConstraint, assignments: Sequence[Assignment]
) -> list[ConstraintViolation]:
    window_start = parse_time_to_minutes(constraint.startTime)
    window_end = parse_time_to_minutes(constraint.endTime)
    violations = []
    for assignment in assignments:
        if assignment.subjectId != constraint.subjectId:
            continue
        inside = (
            assignment.day in constraint.days
            and assignment.start.minutes >= window_start
            and assignment.end.minutes <= window_end
        )
        if not inside:
            violations.append(
                _violation(
                    constraint,
                    f"Subject {assignment.subjectName or assignment.subjectId} is scheduled outside "
                    f"its preferred time {constraint.startTime}-{constraint.endTime}",
                    [assignment],
                )
            )
    return violations


def _room_restriction(
    constraint: RoomRestrictionConstraint, assignments: Sequence[Assignment]
) -> list[ConstraintViolation]:
    return [
        _violation(
            constraint,
            f"Subject {assignment.subjectName or assignment.subjectId} cannot be held in "
            f"{assignment.classroomName or assignment.classroomId}",
            [assignment],
        )
        for assignment in assignments
        if assignment.subjectId == constraint.subjectId
        and assignment.classroomId not in constraint.allowedClassroomIds
    ]


def _minimum_break(
    constraint: MinimumBreakTimeConstraint, assignments: Sequence[Assignment]
) -> list[ConstraintViolation]:
    violations = []
    for faculty_id, day, ordered in _faculty_day_runs(assignments, constraint.facultyId):
        for current, following in zip(ordered, ordered[1:]):
            gap = following.start.minutes - current.end.minutes
            # Negative gaps are overlaps and are reported as conflicts instead.
            if 0 <= gap < constraint.minutes:
                violations.append(
                    _violation(
                        constraint,
                        f"Faculty {faculty_id} has a {gap} minute break on {day.value}, "
                        f"minimum is {constraint.minutes}",
                        [current, following],
                    )
                )
    return violations


def _max_consecutive(
    constraint: MaxConsecutiveClassesConstraint, assignments: Sequence[Assignment]
) -> list[ConstraintViolation]:
    violations = []
    for faculty_id, day, ordered in _faculty_day_runs(assignments, constraint.facultyId):
        runs: list[list[Assignment]] = []
        for assignment in ordered:
            if runs and runs[-1][-1].end.minutes == assignment.start.minutes:
                runs[-1].append(assignment)
            else:
                runs.append([assignment])
        for run in runs:
            if len(run) > constraint.maxConsecutive:
                violations.append(
                    _violation(
                        constraint,
                        f"Faculty {faculty_id} teaches {len(run)} consecutive classes on {day.value}, "
                        f"maximum is {constraint.maxConsecutive}",
                        run,
                    )
                )
    return violations


def _preferred_day_pattern(
    constraint: PreferredDayPatternConstraint, assignments: Sequence[Assignment]
) -> list[ConstraintViolation]:
    allowed = ", ".join(day.value for day in constraint.days)
    return [
        _violation(
            constraint,
            f"Subject {assignment.subjectName or assignment.subjectId} is scheduled on "
            f"{assignment.day.value}, preferred days are {allowed}",
            [assignment],
        )
        for assignment in assignments
        if assignment.subjectId == constraint.subjectId and assignment.day not in constraint.days
    ]


_HANDLERS = {
    FacultyUnavailableConstraint: _faculty_unavailable,
    SubjectPreferredTimeConstraint: _subject_preferred_time,
    RoomRestrictionConstraint: _room_restriction,
    MinimumBreakTimeConstraint: _minimum_break,
    MaxConsecutiveClassesConstraint: _max_consecutive,
    PreferredDayPatternConstraint: _preferred_day_pattern,
}


def evaluate_constraints(
    assignments: Iterable[Assignment], constraints: Iterable[Constraint]
) -> list[ConstraintViolation]:
    items = list(assignments)
    violations: list[ConstraintViolation] = []
    for constraint in constraints:
        if not constraint.enabled:
            continue
        handler = _HANDLERS.get(type(constraint))
        if handler is None:
            raise TypeError(f"Unsupported constraint type: {type(constraint).__name__}")
        violations.extend(handler(constraint, items))
    return violations
