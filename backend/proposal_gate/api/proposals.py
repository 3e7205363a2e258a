"""Proposal submission, review, and status override endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlmodel import col

from proposal_gate.api.deps import APPROVER_DEP, APPROVER_EMAIL_DEP, SESSION_DEP
from proposal_gate.core.auth import AuthContext
from proposal_gate.db.pagination import paginate
from proposal_gate.models.audit_entries import AuditEntry
from proposal_gate.models.proposals import ProposalType
from proposal_gate.schemas.approvals import ApprovalRead, DecisionPayload, GateRead
from proposal_gate.schemas.audit import AuditEntryRead
from proposal_gate.schemas.pagination import DefaultLimitOffsetPage
from proposal_gate.schemas.proposals import (
    ClubFormationCreate,
    EventProposalCreate,
    ProposalRead,
    StatusOverridePayload,
)
from proposal_gate.services.approval_engine import list_approvals, record_decision
from proposal_gate.services.gating import can_approve
from proposal_gate.services.proposals import (
    clear_status_override,
    create_proposal,
    force_status,
    get_proposal_or_404,
    proposal_list_statement,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from proposal_gate.models.proposals import Proposal

router = APIRouter(prefix="/proposals", tags=["proposals"])
STATUS_FILTER_QUERY = Query(default=None, alias="status")


async def _proposal_to_read(session: AsyncSession, proposal: Proposal) -> ProposalRead:
    model = ProposalRead.model_validate(proposal, from_attributes=True)
    rows = await list_approvals(session, proposal.id)
    model.approvals = [ApprovalRead.from_row(row) for row in rows]
    return model


@router.post("/events", response_model=ProposalRead, status_code=status.HTTP_201_CREATED)
async def submit_event_proposal(
    payload: EventProposalCreate,
    session: AsyncSession = SESSION_DEP,
) -> ProposalRead:
    """Submit an event proposal and open one approval record per active approver."""
    proposal = await create_proposal(session, payload=payload)
    return await _proposal_to_read(session, proposal)


@router.post("/clubs", response_model=ProposalRead, status_code=status.HTTP_201_CREATED)
async def submit_club_formation(
    payload: ClubFormationCreate,
    session: AsyncSession = SESSION_DEP,
) -> ProposalRead:
    """Submit a club formation request."""
    proposal = await create_proposal(session, payload=payload)
    return await _proposal_to_read(session, proposal)


@router.get("", response_model=DefaultLimitOffsetPage[ProposalRead])
async def list_proposals(
    session: AsyncSession = SESSION_DEP,
    _auth: AuthContext = APPROVER_DEP,
    proposal_status: list[str] | None = STATUS_FILTER_QUERY,
    proposal_type: ProposalType | None = None,
    search: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
) -> LimitOffsetPage[ProposalRead]:
    """List proposals, newest first."""
    statement = proposal_list_statement(
        statuses=proposal_status,
        proposal_type=proposal_type.value if proposal_type is not None else None,
        search=search,
        created_from=created_from,
        created_to=created_to,
    )

    def _transform(items: Sequence[Any]) -> Sequence[Any]:
        return [ProposalRead.model_validate(item, from_attributes=True) for item in items]

    return await paginate(session, statement, transformer=_transform)


@router.get("/{proposal_id}", response_model=ProposalRead)
async def get_proposal(
    proposal_id: UUID,
    session: AsyncSession = SESSION_DEP,
    _auth: AuthContext = APPROVER_DEP,
) -> ProposalRead:
    """Get proposal detail with its approval records."""
    proposal = await get_proposal_or_404(session, proposal_id)
    return await _proposal_to_read(session, proposal)


@router.get("/{proposal_id}/approvals", response_model=list[ApprovalRead])
async def get_proposal_approvals(
    proposal_id: UUID,
    session: AsyncSession = SESSION_DEP,
    _auth: AuthContext = APPROVER_DEP,
) -> list[ApprovalRead]:
    """Approval records in approval order, including deactivated approvers' rows."""
    rows = await list_approvals(session, proposal_id)
    return [ApprovalRead.from_row(row) for row in rows]


@router.get("/{proposal_id}/approvals/can-approve", response_model=GateRead)
async def check_can_approve(
    proposal_id: UUID,
    session: AsyncSession = SESSION_DEP,
    email: str = APPROVER_EMAIL_DEP,
    approver_email: str | None = None,
) -> GateRead:
    """Whether the caller (or `approver_email`) may record a decision right now."""
    proposal = await get_proposal_or_404(session, proposal_id)
    result = await can_approve(
        session,
        approver_email=approver_email or email,
        proposal_id=proposal.id,
    )
    return GateRead(allowed=result.allowed, reason=result.reason)


@router.post("/{proposal_id}/approvals/{approver_email}", response_model=ApprovalRead)
async def decide_proposal(
    proposal_id: UUID,
    approver_email: str,
    payload: DecisionPayload,
    session: AsyncSession = SESSION_DEP,
    email: str = APPROVER_EMAIL_DEP,
) -> ApprovalRead:
    """Approve or reject on behalf of the caller's own approval record."""
    await record_decision(
        session,
        proposal_id=proposal_id,
        approver_email=approver_email,
        actor_email=email,
        decision=payload.status,
        comments=payload.comments,
    )
    rows = await list_approvals(session, proposal_id)
    row = next(row for row in rows if row.approval.admin_email == email)
    return ApprovalRead.from_row(row)


@router.post("/{proposal_id}/status", response_model=ProposalRead)
async def override_proposal_status(
    proposal_id: UUID,
    payload: StatusOverridePayload,
    session: AsyncSession = SESSION_DEP,
    email: str = APPROVER_EMAIL_DEP,
) -> ProposalRead:
    """Force a proposal status outside the approval flow."""
    proposal = await force_status(
        session,
        proposal_id=proposal_id,
        actor_email=email,
        status=payload.status,
        reason=payload.reason,
    )
    return await _proposal_to_read(session, proposal)


@router.delete("/{proposal_id}/status", response_model=ProposalRead)
async def clear_proposal_status_override(
    proposal_id: UUID,
    session: AsyncSession = SESSION_DEP,
    email: str = APPROVER_EMAIL_DEP,
) -> ProposalRead:
    """Drop a forced status so the proposal follows its approvals again."""
    proposal = await clear_status_override(session, proposal_id=proposal_id, actor_email=email)
    return await _proposal_to_read(session, proposal)


@router.get("/{proposal_id}/audit", response_model=list[AuditEntryRead])
async def list_proposal_audit(
    proposal_id: UUID,
    session: AsyncSession = SESSION_DEP,
    _auth: AuthContext = APPROVER_DEP,
    action: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[AuditEntryRead]:
    """Audit trail for one proposal, oldest first."""
    await get_proposal_or_404(session, proposal_id)
    query = AuditEntry.objects.filter_by(proposal_id=proposal_id)
    if action is not None:
        query = query.filter(col(AuditEntry.action) == action)
    entries = await (
        query.order_by(col(AuditEntry.created_at).asc()).offset(offset).limit(limit).all(session)
    )
    return [AuditEntryRead.model_validate(e, from_attributes=True) for e in entries]
