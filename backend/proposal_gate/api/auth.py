"""Identity endpoint used by the admin dashboard after login."""

from __future__ import annotations

from fastapi import APIRouter, status

from proposal_gate.api.deps import APPROVER_DEP
from proposal_gate.core.auth import AuthContext
from proposal_gate.schemas.approvers import ApproverRead
from proposal_gate.services.errors import NotAuthorized

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/me",
    response_model=ApproverRead,
    summary="Current Approver",
    description="Resolve caller identity from auth headers and return the approver profile.",
    responses={
        status.HTTP_200_OK: {
            "description": "Approver profile of the authenticated caller.",
            "content": {
                "application/json": {
                    "example": {
                        "id": 1,
                        "email": "president@college.edu",
                        "name": "Student Council President",
                        "role": "president",
                        "approval_order": 1,
                        "is_active": True,
                        "department": "Student Council",
                    }
                }
            },
        },
        status.HTTP_403_FORBIDDEN: {
            "description": "Caller is authenticated but is not an active approver.",
            "content": {
                "application/json": {
                    "example": {"detail": "Not an authorized admin", "code": "not_authorized"}
                }
            },
        },
    },
)
async def read_current_approver(auth: AuthContext = APPROVER_DEP) -> ApproverRead:
    """Return the approver profile for the authenticated caller."""
    if auth.approver is None:  # pragma: no cover
        raise NotAuthorized
    return ApproverRead.model_validate(auth.approver, from_attributes=True)
