"""Approval rows joined with their approver registry entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlmodel import col, select

from proposal_gate.models.approvals import Approval
from proposal_gate.models.approvers import Approver, ApproverRole

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


@dataclass(frozen=True)
class ApprovalWithApprover:
    """One approval row and the registry entry it belongs to."""

    approval: Approval
    approver: Approver

    @property
    def role(self) -> str:
        return self.approver.role

    @property
    def status(self) -> str:
        return self.approval.status


async def load_approvals(
    session: AsyncSession,
    proposal_id: UUID,
) -> list[ApprovalWithApprover]:
    """All non-developer approval rows for a proposal, in approval order.

    Rows of since-deactivated approvers are included; the set is the
    snapshot taken when the proposal was created.
    """
    statement = (
        select(Approval, Approver)
        .join(Approver, col(Approver.email) == col(Approval.admin_email))
        .where(col(Approval.proposal_id) == proposal_id)
        .where(col(Approver.role) != ApproverRole.DEVELOPER.value)
        .order_by(col(Approver.approval_order).asc(), col(Approver.id).asc())
    )
    rows = (await session.exec(statement)).all()
    return [ApprovalWithApprover(approval=approval, approver=approver) for approval, approver in rows]
