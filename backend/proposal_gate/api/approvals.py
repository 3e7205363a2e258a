"""Reviewer queue endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from proposal_gate.api.deps import APPROVER_EMAIL_DEP, SESSION_DEP
from proposal_gate.schemas.proposals import ProposalRead
from proposal_gate.services.approval_engine import list_pending_reviews

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/approvals", tags=["approvals"])


@router.get("/pending", response_model=list[ProposalRead])
async def list_my_pending_reviews(
    session: AsyncSession = SESSION_DEP,
    email: str = APPROVER_EMAIL_DEP,
) -> list[ProposalRead]:
    """Proposals awaiting the caller's decision that the gating policy lets them act on."""
    proposals = await list_pending_reviews(session, email)
    return [ProposalRead.model_validate(p, from_attributes=True) for p in proposals]
