"""Schemas for approver registry payloads."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel

from proposal_gate.models.approvers import ApproverRole
from proposal_gate.schemas.common import EmailText, NonEmptyStr


class ApproverRead(SQLModel):
    """Approver registry entry as exposed to the admin dashboard."""

    id: int
    email: str
    name: str
    role: str
    approval_order: int
    is_active: bool
    department: str | None = None


class ApproverSeed(SQLModel):
    """One roster entry accepted by the approver seeding command."""

    email: EmailText
    name: NonEmptyStr
    role: ApproverRole
    approval_order: int = Field(default=0, ge=0)
    is_active: bool = True
    department: str | None = None
    phone: str | None = None
