class AppError(Exception):
    """Base class for all application exceptions."""
    kind = "AppError"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ScheduleValidationError(AppError):
    """Raised for malformed times, inverted intervals or missing ids."""
    kind = "ValidationError"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    kind = "NotFound"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ConflictsPresentError(AppError):
    """Raised when publishing a schedule that still has conflicts."""
    kind = "ConflictsPresent"

    def __init__(self, schedule_id: str, conflict_count: int):
        super().__init__(
            f"Cannot publish schedule {schedule_id} with {conflict_count} conflict(s)",
            status_code=409,
            details={"schedule_id": schedule_id, "conflict_count": conflict_count},
        )


class InvalidTargetError(AppError):
    """Raised when a lifecycle call names a schedule other than the current one."""
    kind = "InvalidTarget"

    def __init__(self, schedule_id: str, current_id: str | None):
        super().__init__(
            f"Schedule {schedule_id} is not the current schedule",
            status_code=400,
            details={"schedule_id": schedule_id, "current_id": current_id},
        )


class SchedulePublishedError(AppError):
    """Raised when mutating a published schedule."""
    kind = "SchedulePublished"

    def __init__(self, schedule_id: str):
        super().__init__(
            f"Schedule {schedule_id} is published; unpublish it before editing",
            status_code=409,
            details={"schedule_id": schedule_id},
        )


class LifecycleBusyError(AppError):
    """Raised when a mutation arrives while a lifecycle operation is in flight."""
    kind = "LifecycleBusy"

    def __init__(self, operation: str | None):
        super().__init__(
            f"Schedule is busy ({operation or 'lifecycle operation'} in progress)",
            status_code=409,
            details={"operation": operation},
        )


class LifecycleTimeoutError(AppError):
    kind = "Timeout"

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            f"{operation} did not complete within {timeout:g} second(s)",
            status_code=504,
            details={"operation": operation, "timeout": timeout},
        )


class UpstreamFailureError(AppError):
    """Raised when the repository boundary or schedule generator fails.

    The underlying exception is chained as ``__cause__``.
    """
    kind = "UpstreamFailure"

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(
            f"{operation} failed: {cause}",
            status_code=502,
            details={"operation": operation, "cause": type(cause).__name__},
        )
