"""Per-approver decision record for a proposal."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from proposal_gate.core.time import utcnow
from proposal_gate.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class ApprovalStatus(str, Enum):
    """Lifecycle states of one approval record."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


DECISION_STATUSES = frozenset({ApprovalStatus.APPROVED.value, ApprovalStatus.REJECTED.value})


class Approval(QueryModel, table=True):
    """One row per (proposal, approver), created pending at submission time."""

    __tablename__ = "approvals"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint("proposal_id", "admin_email", name="uq_approvals_proposal_admin"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    proposal_id: UUID = Field(foreign_key="proposals.id", index=True, ondelete="CASCADE")
    admin_email: str = Field(foreign_key="approvers.email", index=True)
    status: str = Field(default=ApprovalStatus.PENDING.value, index=True)
    comments: str | None = None
    # Timestamp of the decision, set for rejections as well as approvals.
    decided_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
