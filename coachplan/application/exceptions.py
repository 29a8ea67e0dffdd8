"""Custom exception hierarchy for plan reconciliation."""

from __future__ import annotations


class ApplicationError(Exception):
    """Base exception for reconciliation failures reported to the caller."""


class InputShapeError(ApplicationError):
    """Raised when a submission is malformed; nothing has been touched."""


class PlanNotFoundError(ApplicationError):
    """Raised when the plan id does not resolve to a persisted plan."""

    def __init__(self, plan_id: str):
        super().__init__(f"Plan not found: {plan_id}")
        self.plan_id = plan_id


class PlanAccessError(ApplicationError):
    """Raised when the calling trainer does not own the plan."""


class PlanConflictError(ApplicationError):
    """Raised when publishing would overlap another published plan."""


class DataAccessError(ApplicationError):
    """Raised when persistence layer calls fail; the transaction is rolled back."""


__all__ = [
    "ApplicationError",
    "InputShapeError",
    "PlanNotFoundError",
    "PlanAccessError",
    "PlanConflictError",
    "DataAccessError",
]
