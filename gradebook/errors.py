"""Domain exceptions raised by the record layer.

Each exception carries the HTTP status and the uppercase error code the API
renders it with, so repositories never import FastAPI. main.py installs one
handler for the whole RecordError family.
"""


class RecordError(Exception):
    """Base class for every expected, client-facing failure."""

    status_code: int = 400
    code: str = "RECORD_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RecordError):
    """Missing, empty or malformed input."""

    code = "VALIDATION_ERROR"


class InvalidReferenceError(RecordError):
    """A foreign key is malformed or points at no record."""

    code = "INVALID_REFERENCE"


class ConflictError(RecordError):
    """A delete was blocked because dependents still reference the record."""

    code = "CONFLICT"


class NotFoundError(RecordError):
    """No record exists at the requested identifier."""

    status_code = 404
    code = "NOT_FOUND"
