"""Schemas for proposal submission and read payloads."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from pydantic import AnyHttpUrl, Field, model_validator
from sqlmodel import SQLModel

from proposal_gate.models.proposals import ProposalType
from proposal_gate.schemas.approvals import ApprovalRead
from proposal_gate.schemas.common import ClockTime, EmailText, NonEmptyStr

RUNTIME_ANNOTATION_TYPES = (datetime, date, UUID, Decimal)


class ProposalSubmission(SQLModel):
    """Common surface of the per-type submission payloads."""

    proposal_type: ClassVar[ProposalType]

    def title(self) -> str:
        raise NotImplementedError

    def proposer(self) -> tuple[str, str]:
        """Return `(name, email)` of the person submitting the request."""
        raise NotImplementedError

    def details(self) -> dict[str, object]:
        """Type-specific payload stored opaquely on the proposal."""
        raise NotImplementedError


class EventProposalCreate(ProposalSubmission):
    """Payload for submitting a campus event proposal."""

    proposal_type: ClassVar[ProposalType] = ProposalType.EVENT

    event_name: NonEmptyStr
    event_type: NonEmptyStr
    description: NonEmptyStr
    event_date: date
    start_time: ClockTime
    end_time: ClockTime
    venue: NonEmptyStr
    expected_participants: int = Field(gt=0)
    budget_estimate: Decimal | None = Field(default=None, ge=0)
    objectives: str | None = None
    additional_requirements: str | None = None
    organizer_name: NonEmptyStr
    organizer_email: EmailText
    organizer_phone: str | None = None
    pdf_document_url: AnyHttpUrl | None = None

    @model_validator(mode="after")
    def _check_time_window(self) -> EventProposalCreate:
        # Zero-padded HH:MM strings compare in clock order.
        if self.end_time < self.start_time:
            msg = "end_time must not be earlier than start_time"
            raise ValueError(msg)
        return self

    def title(self) -> str:
        return self.event_name

    def proposer(self) -> tuple[str, str]:
        return self.organizer_name, self.organizer_email

    def details(self) -> dict[str, object]:
        return self.model_dump(
            mode="json",
            exclude={"event_name", "organizer_name", "organizer_email"},
        )


class ClubFormationCreate(ProposalSubmission):
    """Payload for requesting recognition of a new club."""

    proposal_type: ClassVar[ProposalType] = ProposalType.CLUB_FORMATION

    club_name: NonEmptyStr
    club_description: NonEmptyStr
    club_objectives: NonEmptyStr
    proposed_by_name: NonEmptyStr
    proposed_by_email: EmailText
    proposed_by_phone: str | None = None
    faculty_advisor: str | None = None
    initial_members: list[str] = Field(default_factory=list)
    proposed_activities: str | None = None
    charter_document_url: AnyHttpUrl | None = None

    def title(self) -> str:
        return self.club_name

    def proposer(self) -> tuple[str, str]:
        return self.proposed_by_name, self.proposed_by_email

    def details(self) -> dict[str, object]:
        return self.model_dump(
            mode="json",
            exclude={"club_name", "proposed_by_name", "proposed_by_email"},
        )


class ProposalRead(SQLModel):
    """Proposal payload returned by read endpoints."""

    id: UUID
    proposal_type: str
    title: str
    proposer_name: str
    proposer_email: str
    payload: dict[str, object] | None = None
    status: str
    status_override: str | None = None
    status_override_by: str | None = None
    status_override_reason: str | None = None
    status_override_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    approvals: list[ApprovalRead] = Field(default_factory=list)


class StatusOverridePayload(SQLModel):
    """Payload for forcing a proposal status outside the approval flow."""

    status: str
    reason: str | None = None
