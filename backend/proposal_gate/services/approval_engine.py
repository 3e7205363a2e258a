"""Approval decision lifecycle: gate check, atomic write, status refresh, audit."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlmodel import col, select

from proposal_gate.core.logging import get_logger
from proposal_gate.core.time import utcnow
from proposal_gate.models.approvals import DECISION_STATUSES, Approval, ApprovalStatus
from proposal_gate.models.proposals import Proposal
from proposal_gate.services.approval_records import load_approvals
from proposal_gate.services.approver_registry import get_approver_by_email, normalize_email
from proposal_gate.services.audit import record_audit
from proposal_gate.services.errors import (
    AlreadyProcessed,
    ApprovalError,
    GatingViolation,
    NotAuthorized,
    NotFound,
    ValidationError,
)
from proposal_gate.services.gating import (
    REASON_ALREADY_PROCESSED,
    REASON_NO_RECORD,
    REASON_NOT_AUTHORIZED,
    can_approve,
    evaluate_gate,
)
from proposal_gate.services.proposals import get_proposal_or_404, refresh_proposal_status

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from proposal_gate.services.approval_records import ApprovalWithApprover

logger = get_logger(__name__)


def _gate_error(reason: str | None) -> ApprovalError:
    if reason == REASON_NOT_AUTHORIZED:
        return NotAuthorized(reason)
    if reason == REASON_NO_RECORD:
        return NotFound(reason)
    if reason == REASON_ALREADY_PROCESSED:
        return AlreadyProcessed(reason)
    return GatingViolation(reason)


async def record_decision(
    session: AsyncSession,
    *,
    proposal_id: UUID,
    approver_email: str,
    actor_email: str,
    decision: str,
    comments: str | None = None,
) -> Approval:
    """Record an approver's decision on their own approval row.

    The write is a single conditional update guarded by `status = 'pending'`,
    so two concurrent decisions on the same row cannot both succeed. The
    cached proposal status and the audit entry commit in the same
    transaction.
    """
    if decision not in DECISION_STATUSES:
        raise ValidationError("Invalid status. Must be 'approved' or 'rejected'")

    approver_key = normalize_email(approver_email)
    if approver_key is None or approver_key != normalize_email(actor_email):
        raise NotAuthorized("Approvers may only decide on their own approval record")

    proposal = await get_proposal_or_404(session, proposal_id)

    gate = await can_approve(session, approver_email=approver_key, proposal_id=proposal.id)
    if not gate.allowed:
        logger.info(
            "approval.decision.blocked proposal_id=%s approver=%s reason=%s",
            proposal.id,
            approver_key,
            gate.reason,
        )
        raise _gate_error(gate.reason)

    now = utcnow()
    result = await session.execute(
        update(Approval)
        .where(col(Approval.proposal_id) == proposal.id)
        .where(col(Approval.admin_email) == approver_key)
        .where(col(Approval.status) == ApprovalStatus.PENDING.value)
        .values(status=decision, comments=comments, decided_at=now, updated_at=now)
        .execution_options(synchronize_session="evaluate")
    )
    if result.rowcount == 0:
        raise AlreadyProcessed

    await refresh_proposal_status(session, proposal)
    await record_audit(
        session,
        actor_email=approver_key,
        action=f"approval.{'approve' if decision == ApprovalStatus.APPROVED.value else 'reject'}",
        proposal_id=proposal.id,
        payload={"decision": decision, "comments": comments},
        commit=False,
    )
    await session.commit()

    approval = await Approval.objects.filter_by(
        proposal_id=proposal.id,
        admin_email=approver_key,
    ).first(session)
    if approval is None:  # pragma: no cover
        raise NotFound(REASON_NO_RECORD)
    await session.refresh(approval)
    logger.info(
        "approval.decision.recorded proposal_id=%s approver=%s decision=%s proposal_status=%s",
        proposal.id,
        approver_key,
        decision,
        proposal.status,
    )
    return approval


async def list_approvals(session: AsyncSession, proposal_id: UUID) -> list[ApprovalWithApprover]:
    await get_proposal_or_404(session, proposal_id)
    return await load_approvals(session, proposal_id)


async def list_pending_reviews(session: AsyncSession, approver_email: str) -> list[Proposal]:
    """Proposals the approver can act on right now, newest first."""
    approver = await get_approver_by_email(session, approver_email)
    if approver is None:
        raise NotAuthorized
    statement = (
        select(Proposal, Approval)
        .join(Approval, col(Approval.proposal_id) == col(Proposal.id))
        .where(col(Approval.admin_email) == approver.email)
        .where(col(Approval.status) == ApprovalStatus.PENDING.value)
        .order_by(col(Proposal.created_at).desc())
    )
    candidates = (await session.exec(statement)).all()
    actionable: list[Proposal] = []
    for proposal, own in candidates:
        rows = await load_approvals(session, proposal.id)
        if evaluate_gate(approver, own, rows).allowed:
            actionable.append(proposal)
    return actionable
