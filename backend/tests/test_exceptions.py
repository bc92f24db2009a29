import pytest

from smart_scheduler.core.exceptions import (
    AppError,
    ConflictsPresentError,
    InvalidTargetError,
    LifecycleBusyError,
    LifecycleTimeoutError,
    ResourceNotFoundError,
    ScheduleValidationError,
    SchedulePublishedError,
    UpstreamFailureError,
)


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}
    assert err.kind == "AppError"


def test_validation_error_structure():
    err = ScheduleValidationError(message="Test error", details={"foo": "bar"})
    assert err.status_code == 422
    assert err.message == "Test error"
    assert err.details == {"foo": "bar"}
    assert isinstance(err, AppError)


@pytest.mark.parametrize(
    ("err", "kind", "status_code"),
    [
        (ResourceNotFoundError("Schedule", "s1"), "NotFound", 404),
        (ConflictsPresentError("s1", 2), "ConflictsPresent", 409),
        (InvalidTargetError("s1", "s2"), "InvalidTarget", 400),
        (SchedulePublishedError("s1"), "SchedulePublished", 409),
        (LifecycleBusyError("save_schedule"), "LifecycleBusy", 409),
        (LifecycleTimeoutError("save_schedule", 2.5), "Timeout", 504),
        (UpstreamFailureError("save_schedule", OSError("disk full")), "UpstreamFailure", 502),
    ],
)
def test_error_kinds_and_status_codes(err, kind, status_code):
    assert err.kind == kind
    assert err.status_code == status_code
    assert isinstance(err, AppError)


def test_error_details_carry_identifiers():
    assert ResourceNotFoundError("Schedule", "s1").details == {"resource_type": "Schedule", "resource_id": "s1"}
    assert ConflictsPresentError("s1", 2).details["conflict_count"] == 2
    assert "2.5 second(s)" in LifecycleTimeoutError("load_schedule", 2.5).message
    assert UpstreamFailureError("load_schedule", OSError("disk full")).details["cause"] == "OSError"
