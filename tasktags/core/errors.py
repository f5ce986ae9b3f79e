"""Domain errors raised by the service layer.

The API layer maps each class onto an HTTP status (see ``api/errors.py``).
Duplicate tag names or ids supplied by a caller are not errors at all: they
are de-duplicated silently.
"""


class ServiceError(Exception):
    """Base class for all service-layer errors."""

    code = "SERVICE_ERROR"
    retryable = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ServiceError, LookupError):
    """
    Referenced task or tag does not exist.

    Raised before any write, so nothing has changed when it surfaces.

    Usage:
        raise NotFoundError("Task", 42)
        # "Task with id 42 not found"
    """

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: int | str | list[int]):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with id {resource_id} not found")


class ValidationFailedError(ServiceError, ValueError):
    """Malformed input that got past the request model."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class ReferenceViolationError(ServiceError):
    """
    A write pointed at a row that does not exist (foreign key violation).

    The unit of work has been rolled back. Retrying the same write cannot
    succeed; callers that know which resource was missing turn this into a
    NotFoundError.
    """

    code = "REFERENCE_VIOLATION"


class StorageError(ServiceError):
    """
    Transient persistence failure.

    The unit of work has been rolled back; the caller may retry.
    """

    code = "STORAGE_UNAVAILABLE"
    retryable = True
