"""Approver registry model: the roster of people who sign off on proposals."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlmodel import Field

from proposal_gate.core.time import utcnow
from proposal_gate.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class ApproverRole(str, Enum):
    """Standing roles in the approval chain."""

    PRESIDENT = "president"
    VICE_PRESIDENT = "vice_president"
    TREASURER = "treasurer"
    SA_OFFICE = "sa_office"
    FACULTY_ADVISOR = "faculty_advisor"
    FINAL_APPROVER = "final_approver"
    DEVELOPER = "developer"


class Approver(QueryModel, table=True):
    """Authorized approver; `approval_order` drives display and evaluation order."""

    __tablename__ = "approvers"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    name: str
    role: str = Field(index=True)
    approval_order: int = Field(default=0, index=True)
    is_active: bool = Field(default=True, index=True)
    department: str | None = None
    phone: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def participates(self) -> bool:
        """Whether this approver takes part in approval logic at all."""
        return self.is_active and self.role != ApproverRole.DEVELOPER.value
