from smart_scheduler.db.session import SessionLocal
from smart_scheduler.models.schedule import ReferenceCollection, SavedSchedule

db = SessionLocal()
try:
    schedules = db.query(SavedSchedule).order_by(SavedSchedule.position).all()
    print(f"Saved Schedules: {len(schedules)}")
    for schedule in schedules:
        state = "Published" if schedule.is_published else "Draft"
        print(f"  - {schedule.name} [{state}] (Updated: {schedule.updated_at})")

    for collection in db.query(ReferenceCollection).order_by(ReferenceCollection.kind).all():
        print(f"{collection.kind}: {len(collection.payload or [])}")
finally:
    db.close()
