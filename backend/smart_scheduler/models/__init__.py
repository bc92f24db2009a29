from smart_scheduler.models.schedule import ReferenceCollection, SavedSchedule  # noqa: F401
