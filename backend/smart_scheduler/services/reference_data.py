from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from smart_scheduler.schemas.reference import Classroom, Faculty, ReferenceCollections, Subject
from smart_scheduler.schemas.timetable import Assignment


def _index(items) -> Mapping:
    return MappingProxyType({item.id: item for item in items})


@dataclass(frozen=True)
class ReferenceData:
    """Read-only faculty, subject and classroom lookups."""

    faculties: Mapping[str, Faculty] = field(default_factory=lambda: MappingProxyType({}))
    subjects: Mapping[str, Subject] = field(default_factory=lambda: MappingProxyType({}))
    classrooms: Mapping[str, Classroom] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_collections(cls, collections: ReferenceCollections) -> "ReferenceData":
        return cls(
            faculties=_index(collections.faculties),
            subjects=_index(collections.subjects),
            classrooms=_index(collections.classrooms),
        )

    def to_collections(self) -> ReferenceCollections:
        return ReferenceCollections(
            faculties=list(self.faculties.values()),
            subjects=list(self.subjects.values()),
            classrooms=list(self.classrooms.values()),
        )

    @property
    def subject_requirements(self) -> Mapping[str, Subject] | None:
        # Without subjects the unassigned-hours gap cannot be computed.
        return self.subjects or None

    def denormalize(self, assignment: Assignment) -> Assignment:
        """Fill missing display names from reference data; existing names are kept."""
        updates: dict[str, str] = {}
        faculty = self.faculties.get(assignment.facultyId)
        if assignment.facultyName is None and faculty is not None:
            updates["facultyName"] = faculty.name
        subject = self.subjects.get(assignment.subjectId)
        if assignment.subjectName is None and subject is not None:
            updates["subjectName"] = subject.name
        classroom = self.classrooms.get(assignment.classroomId)
        if assignment.classroomName is None and classroom is not None:
            updates["classroomName"] = classroom.name
        if not updates:
            return assignment
        return assignment.model_copy(update=updates)
