"""Seed reference data and one saved sample schedule for Smart Scheduler.

Run:
  PYTHONPATH=backend python scripts/seed_sample_schedule.py
"""

from __future__ import annotations

import asyncio
import os

from smart_scheduler.db.bootstrap import ensure_runtime_schema_compatibility
from smart_scheduler.db.session import SessionLocal
from smart_scheduler.schemas.reference import ReferenceCollections
from smart_scheduler.services.repository import SqlScheduleRepository
from smart_scheduler.services.schedule_engine import ScheduleEngine

SCHEDULE_NAME = os.getenv("SEED_SCHEDULE_NAME", "Sample Schedule").strip() or "Sample Schedule"
PUBLISH = os.getenv("SEED_PUBLISH", "false").strip().lower() in {"1", "true", "yes", "on"}

REFERENCE = {
    "faculties": [
        {
            "id": "faculty1",
            "name": "Dr. Smith",
            "email": "smith@university.edu",
            "subjects": ["subject1", "subject3"],
            "maxHoursPerDay": 6,
            "maxHoursPerWeek": 20,
        },
        {
            "id": "faculty2",
            "name": "Dr. Johnson",
            "email": "johnson@university.edu",
            "subjects": ["subject2"],
            "maxHoursPerDay": 6,
            "maxHoursPerWeek": 18,
        },
    ],
    "subjects": [
        {"id": "subject1", "name": "Introduction to Programming", "sessionsPerWeek": 2, "sessionDuration": 120},
        {"id": "subject2", "name": "Database Management", "sessionsPerWeek": 2, "sessionDuration": 120},
        {"id": "subject3", "name": "Algorithms", "sessionsPerWeek": 1, "sessionDuration": 120},
    ],
    "classrooms": [
        {"id": "classroom1", "name": "Room 101", "building": "Main", "floor": 1, "capacity": 60},
        {"id": "classroom2", "name": "Room 102", "building": "Main", "floor": 1, "capacity": 40},
    ],
}


async def seed() -> None:
    engine = ScheduleEngine(SqlScheduleRepository(SessionLocal))
    await engine.hydrate()
    await engine.set_reference_data(ReferenceCollections.model_validate(REFERENCE))

    generated = await engine.generate_schedule()
    saved = await engine.save_schedule(SCHEDULE_NAME, "Seeded sample timetable")
    if PUBLISH:
        saved = await engine.publish_schedule(saved.id)

    print(f"Seeded schedule {saved.id} ({saved.name})")
    print(f"  assignments: {len(generated.assignments)}")
    print(f"  conflicts:   {len(generated.conflicts)}")
    print(f"  unassigned hours: {saved.stats.unassignedHours:g}")
    print(f"  published: {saved.isPublished}")
    print(f"  saved schedules: {len(engine.saved)}")


def main() -> None:
    ensure_runtime_schema_compatibility()
    asyncio.run(seed())


if __name__ == "__main__":
    main()
