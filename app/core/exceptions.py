from typing import Any, Optional


class ClinicError(Exception):
    """
    Base class for errors raised by the clinic services.

    Rendered by the API as ``{"error": {"code", "message", "details", "request_id"}}``.
    """
    status_code = 400
    code = "error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ClinicError):
    status_code = 422
    code = "validation_error"


class NotFoundError(ClinicError):
    """
    The entity does not exist or belongs to another clinic.

    Both cases produce the same message.
    """
    status_code = 404
    code = "not_found"

    def __init__(self, kind: str, message: Optional[str] = None):
        self.kind = kind
        label = kind.replace("_", " ").capitalize()
        super().__init__(message or f"{label} not found or does not belong to this clinic", details={"kind": kind})


class InvalidTransitionError(ClinicError):
    status_code = 409
    code = "invalid_transition"


class ConcurrencyError(ClinicError):
    status_code = 409
    code = "concurrency_conflict"


class ConflictError(ClinicError):
    """The write is blocked by rows that still depend on the entity."""
    status_code = 409
    code = "conflict"
