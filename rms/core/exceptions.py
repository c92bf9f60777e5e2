"""
Service-wide exception hierarchy.

Services raise these types and never return error tuples. Blueprints register
handlers against them once and get consistent HTTP status codes everywhere.
The HTTP client in ``rms.client.api`` maps error responses back onto the same
types so resident-facing code handles one taxonomy.

Usage:
    from rms.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Resident", resource_id="res-chen")
    raise ValidationError("entrustment_level is required",
                          details={"entrustment_level": "required"})
"""


class NotFoundError(Exception):
    """Raised when a resident, assessment or EPA does not exist.

    Soft-deleted assessments are reported exactly like missing ones.
    Terminal: callers show an explanatory state rather than retrying.

    Args:
        resource: Human-readable entity name (e.g. "Resident", "Assessment").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a submission is missing a required field or holds a bad value.

    Caller-correctable and never retried automatically. Raised before anything
    is persisted. Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Field-level breakdown. Keys are field names; values are
                 error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class StoreUnavailableError(Exception):
    """Raised when the assessment store cannot be reached (transient I/O).

    The only retry-eligible class. The acknowledgment tracker rolls back its
    optimistic state on it instead of retrying. Maps to HTTP 503.
    """

    def __init__(self, message: str = "Assessment store unavailable") -> None:
        super().__init__(message)
