from __future__ import annotations

from typing import Iterable


class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` is the machine-checkable error name returned to API clients,
    ``status_code`` the HTTP status the controller layer maps it to.
    """

    kind = "domain_error"
    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "invalid_input"


InvalidInputError = ValidationError


class NotFoundError(DomainError):
    """Raised when a project, employee or daily record does not exist."""

    kind = "not_found"
    status_code = 404


class OutOfRangeError(DomainError):
    """Raised when a report date falls outside the project window."""

    kind = "out_of_range"


class ConfirmationRequiredError(DomainError):
    """Raised when a destructive wipe is attempted without confirmation."""

    kind = "confirmation_required"


class BoundsViolationError(DomainError):
    """Raised when completed points would leave ``[0, total_points]``."""

    kind = "bounds_violation"

    def __init__(self, methods: Iterable[str]):
        self.methods = list(methods)
        super().__init__(f"Completed points out of range: {', '.join(self.methods)}")


class ConflictError(DomainError):
    """Raised when a concurrent write wins the race on the same record.

    The caller may retry the whole operation.
    """

    kind = "conflict"
    status_code = 409
    retryable = True


class AuthenticationError(DomainError):
    """Raised when the request carries no authenticated actor."""

    kind = "unauthorized"
    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "forbidden"
    status_code = 403
