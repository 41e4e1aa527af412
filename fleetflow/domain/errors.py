"""
Typed domain failures.

Every failure carries an HTTP-style ``status_code`` and a machine-readable
``code``; the API layer renders both, nothing else needs to know about HTTP.

Kinds
-----
* ``NotFoundError``        -- referenced entity absent (404)
* ``ValidationError``      -- malformed / out-of-range input (400)
* ``ConflictError``        -- request incompatible with current state (409)
* ``UnprocessableError``   -- well-formed input that breaks a domain rule (422)
* ``DuplicateRecordError`` -- uniqueness constraint violation (409)
"""

from __future__ import annotations


class FleetError(Exception):
    status_code: int = 500
    default_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, code: str | None = None, message: str | None = None):
        self.code = code or self.default_code
        self.message = message or self.code.replace("_", " ").capitalize()
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class NotFoundError(FleetError):
    status_code = 404
    default_code = "NOT_FOUND"


class ValidationError(FleetError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class ConflictError(FleetError):
    status_code = 409
    default_code = "CONFLICT"


class UnprocessableError(FleetError):
    status_code = 422
    default_code = "UNPROCESSABLE"


class DuplicateRecordError(FleetError):
    status_code = 409
    default_code = "DUPLICATE_RECORD"


class InvalidStateTransition(ConflictError):
    """Raised when a trip status change violates the state machine."""

    default_code = "INVALID_TRIP_STATUS"
