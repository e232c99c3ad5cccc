"""Custom exception hierarchy for the coin ledger API."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class InsufficientBalanceError(AppError):
    """Raised when a user tries to spend more coins than they have.

    This is an expected, user-facing decline rather than a bug.
    """

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            message=f"Insufficient coins: need {required}, have {available}",
            code="INSUFFICIENT_COINS",
        )

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["coins_needed"] = self.required
        payload["coins_available"] = self.available
        return payload


class UnknownPlanError(AppError):
    """Raised when a plan identifier is absent from the plan catalog."""

    def __init__(self, plan_id: str) -> None:
        self.plan_id = plan_id
        super().__init__(
            message=f"Unknown subscription plan: {plan_id}",
            code="UNKNOWN_PLAN",
            status_code=422,
        )


class PersistenceError(AppError):
    """Raised when the store is unavailable or a write could not be applied."""

    def __init__(self, reason: str = "Database request failed") -> None:
        super().__init__(message=reason, code="PERSISTENCE_FAILURE", status_code=503)


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ForbiddenError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission") -> None:
        super().__init__(message=reason, code="FORBIDDEN", status_code=403)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=422)
