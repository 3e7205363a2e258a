"""Gating policy: whether an approver may act on a proposal right now.

The approval chain is modelled as tiers. Each tier names the roles it gates
and the roles whose approval rows must all be `approved` before those roles
become eligible. Roles not gated by any tier may act as soon as their own
row is pending.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from proposal_gate.core.logging import get_logger
from proposal_gate.models.approvals import ApprovalStatus
from proposal_gate.models.approvers import ApproverRole
from proposal_gate.services.approval_records import load_approvals
from proposal_gate.services.approver_registry import get_approver_by_email

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from proposal_gate.models.approvals import Approval
    from proposal_gate.models.approvers import Approver
    from proposal_gate.services.approval_records import ApprovalWithApprover

logger = get_logger(__name__)

REASON_NOT_AUTHORIZED = "Not an authorized admin"
REASON_NO_RECORD = "Approval record not found"
REASON_ALREADY_PROCESSED = "Already processed"

CORE_COUNCIL_ROLES = frozenset(
    {
        ApproverRole.PRESIDENT.value,
        ApproverRole.VICE_PRESIDENT.value,
        ApproverRole.TREASURER.value,
    }
)
EXTENDED_CORE_ROLES = CORE_COUNCIL_ROLES | {
    ApproverRole.SA_OFFICE.value,
    ApproverRole.FACULTY_ADVISOR.value,
}


@dataclass(frozen=True)
class GatingTier:
    """Roles in `roles` wait until every row held by a role in `requires` is approved."""

    roles: frozenset[str]
    requires: frozenset[str]
    reason: str


@dataclass(frozen=True)
class GateResult:
    allowed: bool
    reason: str | None = None


DEFAULT_TIERS: tuple[GatingTier, ...] = (
    GatingTier(
        roles=frozenset({ApproverRole.SA_OFFICE.value}),
        requires=CORE_COUNCIL_ROLES,
        reason="Core student council members must approve first",
    ),
    GatingTier(
        roles=frozenset({ApproverRole.FINAL_APPROVER.value}),
        requires=EXTENDED_CORE_ROLES,
        reason="All other members must approve first",
    ),
)


def _tier_satisfied(tier: GatingTier, rows: Iterable[ApprovalWithApprover]) -> bool:
    required = [row for row in rows if row.role in tier.requires]
    # No prerequisite rows at all also keeps the gate closed.
    if not required:
        return False
    return all(row.status == ApprovalStatus.APPROVED.value for row in required)


def evaluate_gate(
    approver: Approver | None,
    own_approval: Approval | None,
    rows: Sequence[ApprovalWithApprover],
    *,
    tiers: Sequence[GatingTier] = DEFAULT_TIERS,
) -> GateResult:
    """Pure gating decision over already-loaded data."""
    if approver is None or not approver.participates:
        return GateResult(allowed=False, reason=REASON_NOT_AUTHORIZED)
    if own_approval is None:
        return GateResult(allowed=False, reason=REASON_NO_RECORD)
    if own_approval.status != ApprovalStatus.PENDING.value:
        return GateResult(allowed=False, reason=REASON_ALREADY_PROCESSED)

    # Only rows of approvers still in the active roster count toward a gate.
    active_rows = [row for row in rows if row.approver.participates]
    for tier in tiers:
        if approver.role in tier.roles and not _tier_satisfied(tier, active_rows):
            return GateResult(allowed=False, reason=tier.reason)
    return GateResult(allowed=True)


async def can_approve(
    session: AsyncSession,
    *,
    approver_email: str,
    proposal_id: UUID,
    tiers: Sequence[GatingTier] = DEFAULT_TIERS,
) -> GateResult:
    """Load the approver and the proposal's approval rows, then evaluate the gate."""
    approver = await get_approver_by_email(session, approver_email)
    if approver is None:
        return GateResult(allowed=False, reason=REASON_NOT_AUTHORIZED)
    rows = await load_approvals(session, proposal_id)
    own = next((row.approval for row in rows if row.approval.admin_email == approver.email), None)
    result = evaluate_gate(approver, own, rows, tiers=tiers)
    logger.debug(
        "approval.gate.evaluated proposal_id=%s role=%s allowed=%s reason=%s",
        proposal_id,
        approver.role,
        result.allowed,
        result.reason,
    )
    return result
