"""Approver registry lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from proposal_gate.models.approvers import Approver, ApproverRole

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession


def normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip().lower()
    return cleaned or None


async def list_active_approvers(session: AsyncSession) -> list[Approver]:
    """Active, non-developer approvers by ascending `approval_order`.

    Ties keep registry insertion order.
    """
    return await (
        Approver.objects.filter(
            col(Approver.is_active).is_(True),
            col(Approver.role) != ApproverRole.DEVELOPER.value,
        )
        .order_by(col(Approver.approval_order).asc(), col(Approver.id).asc())
        .all(session)
    )


async def get_approver_by_email(session: AsyncSession, email: str | None) -> Approver | None:
    """Resolve an email to an approver that participates in approvals, else `None`."""
    normalized = normalize_email(email)
    if normalized is None:
        return None
    approver = await Approver.objects.filter_by(email=normalized).first(session)
    if approver is None or not approver.participates:
        return None
    return approver

