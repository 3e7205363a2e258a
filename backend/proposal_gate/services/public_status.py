"""Unauthenticated approval progress view for proposers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from proposal_gate.core.time import utcnow
from proposal_gate.models.approvals import ApprovalStatus
from proposal_gate.schemas.approvals import PublicApprovalEntry, PublicApprovalStatusRead
from proposal_gate.services.approval_records import load_approvals
from proposal_gate.services.approver_registry import list_active_approvers
from proposal_gate.services.proposals import get_proposal_or_404
from proposal_gate.services.status_aggregator import compute_public_status

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


async def get_public_approval_status(
    session: AsyncSession,
    proposal_id: UUID,
) -> PublicApprovalStatusRead:
    """Summarize approval progress without exposing approver emails.

    The status comes from the proposal's recorded approval rows with the
    public vocabulary, so a single rejection shows as `rejected` even when
    the rejecting approver has since been deactivated. The `approvals` list
    shows every active approver in approval order; approvers without a row
    on this proposal appear as `pending`.
    """
    await get_proposal_or_404(session, proposal_id)
    recorded = await load_approvals(session, proposal_id)
    rows = {row.approval.admin_email: row.approval for row in recorded}

    entries: list[PublicApprovalEntry] = []
    for approver in await list_active_approvers(session):
        approval = rows.get(approver.email)
        if approval is None:
            entries.append(
                PublicApprovalEntry(
                    admin_name=approver.name,
                    admin_role=approver.role,
                    status=ApprovalStatus.PENDING.value,
                )
            )
            continue
        entries.append(
            PublicApprovalEntry(
                admin_name=approver.name,
                admin_role=approver.role,
                status=approval.status,
                comments=approval.comments,
                approved_at=approval.decided_at,
            )
        )

    return PublicApprovalStatusRead(
        status=compute_public_status(row.status for row in recorded),
        approvals=entries,
        last_updated=utcnow(),
    )
