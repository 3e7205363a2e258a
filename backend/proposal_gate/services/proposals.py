"""Proposal creation fan-out, cached status maintenance, and status overrides."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, or_
from sqlmodel import col, select

from proposal_gate.core.config import settings
from proposal_gate.core.logging import get_logger
from proposal_gate.core.time import utcnow
from proposal_gate.models.approvals import Approval
from proposal_gate.models.proposals import Proposal, ProposalStatus
from proposal_gate.services.approval_records import load_approvals
from proposal_gate.services.approver_registry import get_approver_by_email, list_active_approvers
from proposal_gate.services.audit import record_audit
from proposal_gate.services.errors import NoActiveApprovers, NotAuthorized, NotFound, ValidationError
from proposal_gate.services.status_aggregator import compute_overall_status

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

    from proposal_gate.schemas.proposals import ProposalSubmission

logger = get_logger(__name__)

OVERRIDE_STATUSES = frozenset(
    {
        ProposalStatus.APPROVED.value,
        ProposalStatus.REJECTED.value,
        ProposalStatus.UNDER_CONSIDERATION.value,
    }
)


async def create_proposal(
    session: AsyncSession,
    *,
    payload: ProposalSubmission,
) -> Proposal:
    """Create a proposal with one pending approval per active approver.

    The approver roster is snapshotted here; later registry changes never
    add or remove rows on existing proposals.
    """
    approvers = await list_active_approvers(session)
    if not approvers:
        raise NoActiveApprovers

    proposer_name, proposer_email = payload.proposer()
    now = utcnow()
    proposal = Proposal(
        proposal_type=payload.proposal_type.value,
        title=payload.title(),
        proposer_name=proposer_name,
        proposer_email=proposer_email,
        payload=payload.details(),
        status=ProposalStatus.PENDING.value,
        created_at=now,
        updated_at=now,
    )
    session.add(proposal)
    await session.flush()

    for approver in approvers:
        session.add(
            Approval(
                proposal_id=proposal.id,
                admin_email=approver.email,
                created_at=now,
                updated_at=now,
            )
        )

    await record_audit(
        session,
        actor_email=proposer_email,
        action="proposal.create",
        proposal_id=proposal.id,
        payload={
            "proposal_type": proposal.proposal_type,
            "approvers": [approver.email for approver in approvers],
        },
        commit=False,
    )
    await session.commit()
    await session.refresh(proposal)
    logger.info(
        "proposal.created proposal_id=%s type=%s approvers=%s",
        proposal.id,
        proposal.proposal_type,
        len(approvers),
    )
    return proposal


async def get_proposal_or_404(session: AsyncSession, proposal_id: UUID) -> Proposal:
    proposal = await Proposal.objects.by_id(proposal_id).first(session)
    if proposal is None:
        raise NotFound("Proposal not found")
    return proposal


async def refresh_proposal_status(session: AsyncSession, proposal: Proposal) -> str:
    """Recompute the cached status; an active override always wins.

    Does not commit.
    """
    if proposal.status_override is not None:
        derived = proposal.status_override
    else:
        rows = await load_approvals(session, proposal.id)
        derived = compute_overall_status(row.status for row in rows)
    if proposal.status != derived:
        logger.info(
            "proposal.status.changed proposal_id=%s from=%s to=%s",
            proposal.id,
            proposal.status,
            derived,
        )
        proposal.status = derived
    proposal.updated_at = utcnow()
    session.add(proposal)
    return derived


async def _require_override_actor(session: AsyncSession, actor_email: str) -> str:
    approver = await get_approver_by_email(session, actor_email)
    if approver is None:
        raise NotAuthorized
    if approver.role not in settings.status_override_roles:
        raise NotAuthorized("Not allowed to override proposal status")
    return approver.email


async def force_status(
    session: AsyncSession,
    *,
    proposal_id: UUID,
    actor_email: str,
    status: str,
    reason: str | None = None,
) -> Proposal:
    """Administratively set a proposal's status, leaving approval rows untouched."""
    if status not in OVERRIDE_STATUSES:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(sorted(OVERRIDE_STATUSES))}",
        )
    actor = await _require_override_actor(session, actor_email)
    proposal = await get_proposal_or_404(session, proposal_id)

    previous = proposal.status
    proposal.status_override = status
    proposal.status_override_by = actor
    proposal.status_override_reason = reason
    proposal.status_override_at = utcnow()
    await refresh_proposal_status(session, proposal)
    await record_audit(
        session,
        actor_email=actor,
        action="proposal.status.force",
        proposal_id=proposal.id,
        payload={"from": previous, "to": status, "reason": reason},
        commit=False,
    )
    await session.commit()
    await session.refresh(proposal)
    return proposal


async def clear_status_override(
    session: AsyncSession,
    *,
    proposal_id: UUID,
    actor_email: str,
) -> Proposal:
    """Drop an override so the status follows the approval set again."""
    actor = await _require_override_actor(session, actor_email)
    proposal = await get_proposal_or_404(session, proposal_id)
    if proposal.status_override is None:
        return proposal

    previous = proposal.status
    proposal.status_override = None
    proposal.status_override_by = None
    proposal.status_override_reason = None
    proposal.status_override_at = None
    derived = await refresh_proposal_status(session, proposal)
    await record_audit(
        session,
        actor_email=actor,
        action="proposal.status.clear_override",
        proposal_id=proposal.id,
        payload={"from": previous, "to": derived},
        commit=False,
    )
    await session.commit()
    await session.refresh(proposal)
    return proposal


def proposal_list_statement(
    *,
    statuses: Sequence[str] | None = None,
    proposal_type: str | None = None,
    search: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
) -> SelectOfScalar[Proposal]:
    """Filtered proposal query, newest first."""
    statement = select(Proposal)
    if statuses:
        statement = statement.where(col(Proposal.status).in_(list(statuses)))
    if proposal_type is not None:
        statement = statement.where(col(Proposal.proposal_type) == proposal_type)
    if search:
        term = f"%{search.strip().lower()}%"
        statement = statement.where(
            or_(
                func.lower(col(Proposal.title)).like(term),
                func.lower(col(Proposal.proposer_name)).like(term),
                func.lower(col(Proposal.proposer_email)).like(term),
            )
        )
    if created_from is not None:
        statement = statement.where(col(Proposal.created_at) >= created_from)
    if created_to is not None:
        statement = statement.where(col(Proposal.created_at) <= created_to)
    return statement.order_by(col(Proposal.created_at).desc())
