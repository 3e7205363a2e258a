"""Proposal model for event and club-formation requests."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field

from proposal_gate.core.time import utcnow
from proposal_gate.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class ProposalType(str, Enum):
    """Kinds of requests routed through the approval chain."""

    EVENT = "event"
    CLUB_FORMATION = "club_formation"


class ProposalStatus(str, Enum):
    """Cached overall status values stored on a proposal."""

    PENDING = "pending"
    UNDER_CONSIDERATION = "under_consideration"
    APPROVED = "approved"
    REJECTED = "rejected"


class Proposal(QueryModel, table=True):
    """Submitted request whose `status` mirrors its approval set."""

    __tablename__ = "proposals"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    proposal_type: str = Field(index=True)
    title: str
    proposer_name: str
    proposer_email: str = Field(index=True)
    payload: dict[str, object] | None = Field(default=None, sa_column=Column(JSON))
    status: str = Field(default=ProposalStatus.PENDING.value, index=True)
    status_override: str | None = None
    status_override_by: str | None = None
    status_override_reason: str | None = None
    status_override_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
