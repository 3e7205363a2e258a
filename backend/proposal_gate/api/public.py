"""Unauthenticated status page endpoints for proposers."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter

from proposal_gate.api.deps import SESSION_DEP
from proposal_gate.schemas.approvals import PublicApprovalStatusRead
from proposal_gate.services.public_status import get_public_approval_status

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/public", tags=["public"])


@router.get(
    "/proposals/{proposal_id}/approval-status",
    response_model=PublicApprovalStatusRead,
)
async def read_public_approval_status(
    proposal_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> PublicApprovalStatusRead:
    """Approval progress for a proposal, without approver contact details."""
    return await get_public_approval_status(session, proposal_id)
