import pytest
from pydantic import ValidationError

from smart_scheduler.schemas.constraints import (
    FacultyUnavailableConstraint,
    MaxConsecutiveClassesConstraint,
    MinimumBreakTimeConstraint,
    PreferredDayPatternConstraint,
    RoomRestrictionConstraint,
    SubjectPreferredTimeConstraint,
    constraint_list_adapter,
)
from smart_scheduler.schemas.timetable import Assignment
from smart_scheduler.services.constraint_service import evaluate_constraints


def make_assignment(assignment_id, start, end, *, faculty="f1", room="r1", subject="s1", day="Monday"):
    return Assignment(
        id=assignment_id,
        facultyId=faculty,
        subjectId=subject,
        classroomId=room,
        day=day,
        startTime=start,
        endTime=end,
    )


def test_constraints_are_parsed_by_type_tag():
    parsed = constraint_list_adapter.validate_python(
        [
            {"id": "c1", "type": "FacultyUnavailable", "facultyId": "f1", "day": "Monday",
             "startTime": "09:00", "endTime": "10:00"},
            {"id": "c2", "type": "PreferredDayPattern", "subjectId": "s1", "days": ["Monday"], "priority": "Soft"},
        ]
    )
    assert isinstance(parsed[0], FacultyUnavailableConstraint)
    assert isinstance(parsed[1], PreferredDayPatternConstraint)
    assert parsed[1].priority == "Soft"

    with pytest.raises(ValidationError):
        constraint_list_adapter.validate_python([{"id": "c3", "type": "Whatever"}])
    with pytest.raises(ValidationError):
        constraint_list_adapter.validate_python(
            [{"id": "c4", "type": "FacultyUnavailable", "facultyId": "f1", "day": "Monday",
              "startTime": "10:00", "endTime": "09:00"}]
        )


def test_faculty_unavailable_window():
    constraint = FacultyUnavailableConstraint(
        id="away", facultyId="f1", day="Monday", startTime="12:00", endTime="14:00"
    )
    assignments = [
        make_assignment("inside", "13:00", "14:00"),
        make_assignment("touching", "14:00", "15:00"),
        make_assignment("other-day", "13:00", "14:00", day="Tuesday"),
        make_assignment("other-faculty", "13:00", "14:00", faculty="f2"),
    ]
    violations = evaluate_constraints(assignments, [constraint])
    assert [violation.assignmentIds for violation in violations] == [("inside",)]
    assert violations[0].type == "FacultyUnavailable"
    assert violations[0].priority == "Hard"


def test_subject_preferred_time():
    constraint = SubjectPreferredTimeConstraint(
        id="mornings", subjectId="s1", days=("Monday", "Wednesday"), startTime="08:00", endTime="12:00"
    )
    assignments = [
        make_assignment("ok", "09:00", "11:00"),
        make_assignment("late", "11:00", "13:00"),
        make_assignment("wrong-day", "09:00", "10:00", day="Tuesday"),
        make_assignment("other-subject", "15:00", "16:00", subject="s2"),
    ]
    violations = evaluate_constraints(assignments, [constraint])
    assert [violation.assignmentIds[0] for violation in violations] == ["late", "wrong-day"]


def test_room_restriction():
    constraint = RoomRestrictionConstraint(id="labs", subjectId="s1", allowedClassroomIds=("lab-1", "lab-2"))
    assignments = [
        make_assignment("lab", "09:00", "10:00", room="lab-2"),
        make_assignment("lecture-hall", "10:00", "11:00", room="r1"),
    ]
    violations = evaluate_constraints(assignments, [constraint])
    assert [violation.assignmentIds for violation in violations] == [("lecture-hall",)]


def test_minimum_break_time():
    constraint = MinimumBreakTimeConstraint(id="breaks", minutes=15)
    assignments = [
        make_assignment("a", "09:00", "10:00"),
        make_assignment("b", "10:05", "11:00"),
        make_assignment("c", "11:30", "12:00"),
        make_assignment("d", "09:00", "10:00", faculty="f2"),
        make_assignment("e", "10:00", "11:00", faculty="f2"),
    ]
    violations = evaluate_constraints(assignments, [constraint])
    assert [violation.assignmentIds for violation in violations] == [("a", "b"), ("d", "e")]

    scoped = MinimumBreakTimeConstraint(id="f2-breaks", facultyId="f2", minutes=15)
    assert [v.assignmentIds for v in evaluate_constraints(assignments, [scoped])] == [("d", "e")]


def test_overlaps_are_not_reported_as_short_breaks():
    constraint = MinimumBreakTimeConstraint(id="breaks", minutes=15)
    assignments = [make_assignment("a", "09:00", "10:00"), make_assignment("b", "09:30", "10:30")]
    assert evaluate_constraints(assignments, [constraint]) == []


def test_max_consecutive_classes():
    constraint = MaxConsecutiveClassesConstraint(id="stamina", maxConsecutive=2)
    assignments = [
        make_assignment("a", "08:00", "09:00"),
        make_assignment("b", "09:00", "10:00"),
        make_assignment("c", "10:00", "11:00"),
        make_assignment("d", "12:00", "13:00"),
        make_assignment("e", "13:00", "14:00"),
    ]
    violations = evaluate_constraints(assignments, [constraint])
    assert len(violations) == 1
    assert violations[0].assignmentIds == ("a", "b", "c")


def test_preferred_day_pattern_and_disabled_constraints():
    active = PreferredDayPatternConstraint(id="mwf", subjectId="s1", days=("Monday", "Wednesday", "Friday"))
    disabled = PreferredDayPatternConstraint(id="off", subjectId="s1", days=("Sunday",), enabled=False)
    assignments = [
        make_assignment("mon", "09:00", "10:00"),
        make_assignment("tue", "09:00", "10:00", day="Tuesday"),
    ]
    violations = evaluate_constraints(assignments, [active, disabled])
    assert [(v.constraintId, v.assignmentIds) for v in violations] == [("mwf", ("tue",))]
