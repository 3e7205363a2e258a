"""Approver registry read endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from proposal_gate.api.deps import APPROVER_DEP, SESSION_DEP
from proposal_gate.core.auth import AuthContext
from proposal_gate.schemas.approvers import ApproverRead
from proposal_gate.services.approver_registry import list_active_approvers

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/approvers", tags=["approvers"])


@router.get("", response_model=list[ApproverRead])
async def list_approvers(
    session: AsyncSession = SESSION_DEP,
    _auth: AuthContext = APPROVER_DEP,
) -> list[ApproverRead]:
    """List active approvers in approval order."""
    approvers = await list_active_approvers(session)
    return [ApproverRead.model_validate(a, from_attributes=True) for a in approvers]
