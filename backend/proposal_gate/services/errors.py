"""Approval engine error taxonomy.

Each error is an `HTTPException` with a fixed status code and a stable
machine-readable `code`, so service functions can raise them directly and
the API error handlers render them without per-route translation.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class ApprovalError(HTTPException):
    """Base class for user-visible approval workflow failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "approval_error"
    default_detail: str = "Approval request failed"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)

    @property
    def reason(self) -> str:
        return str(self.detail)


class NotAuthorized(ApprovalError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_authorized"
    default_detail = "Not an authorized admin"


class AlreadyProcessed(ApprovalError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_processed"
    default_detail = "Already processed"


class GatingViolation(ApprovalError):
    """Role-order precondition not met; `detail` is the reason shown to the approver."""

    status_code = status.HTTP_409_CONFLICT
    code = "gating_violation"
    default_detail = "Earlier approvers must act first"


class NotFound(ApprovalError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class ValidationError(ApprovalError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"
    default_detail = "Invalid request"


class NoActiveApprovers(ApprovalError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "no_active_approvers"
    default_detail = "No active approvers are configured"


class StoreUnavailable(HTTPException):
    """Infrastructure failure reaching the database; safe for the client to retry.

    Kept outside `ApprovalError` so callers can tell a transient store problem
    apart from a workflow decision.
    """

    status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE
    code: str = "store_unavailable"
    default_detail: str = "Approval store unavailable, retry the request"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)
