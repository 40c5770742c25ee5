"""Domain errors raised by the service layer.

Each error carries a stable machine-readable ``code`` and a human-readable
message.  The API layer maps them to HTTP status codes in one place
(see ``app.main``); services never raise HTTPException themselves.
"""

from __future__ import annotations


class DomainError(Exception):
    code = "DOMAIN_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    code = "NOT_FOUND"


class ConflictError(DomainError):
    code = "CONFLICT"


class InvalidStateError(DomainError):
    code = "INVALID_STATE"


class InvalidInputError(DomainError, ValueError):
    code = "INVALID_INPUT"


class PlanRequiredError(DomainError):
    """The organization's plan tier does not include the requested feature."""

    code = "PLAN_REQUIRED"
