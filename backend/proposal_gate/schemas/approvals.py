"""Schemas for approval records, decisions, and gate checks."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

if TYPE_CHECKING:
    from proposal_gate.services.approval_records import ApprovalWithApprover

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class ApprovalRead(SQLModel):
    """Approval record joined with its approver's name and role."""

    id: UUID
    proposal_id: UUID
    admin_email: str
    admin_name: str
    admin_role: str
    approval_order: int
    status: str
    comments: str | None = None
    approved_at: datetime | None = Field(
        default=None,
        description="Time the decision was recorded; set for rejections too.",
    )
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: ApprovalWithApprover) -> ApprovalRead:
        approval = row.approval
        return cls(
            id=approval.id,
            proposal_id=approval.proposal_id,
            admin_email=approval.admin_email,
            admin_name=row.approver.name,
            admin_role=row.approver.role,
            approval_order=row.approver.approval_order,
            status=approval.status,
            comments=approval.comments,
            approved_at=approval.decided_at,
            created_at=approval.created_at,
            updated_at=approval.updated_at,
        )


class DecisionPayload(SQLModel):
    """Payload for recording an approver's decision."""

    status: str = Field(description="Either `approved` or `rejected`.", examples=["approved"])
    comments: str | None = None


class GateRead(SQLModel):
    """Whether an approver may act on a proposal right now."""

    allowed: bool
    reason: str | None = None


class PublicApprovalEntry(SQLModel):
    """Per-approver line on the public status page."""

    admin_name: str
    admin_role: str
    status: str
    comments: str | None = None
    approved_at: datetime | None = None


class PublicApprovalStatusRead(SQLModel):
    """Public approval status of a proposal."""

    status: str = Field(examples=["under_consideration"])
    approvals: list[PublicApprovalEntry] = Field(default_factory=list)
    last_updated: datetime
