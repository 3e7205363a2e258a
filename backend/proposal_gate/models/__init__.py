"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from proposal_gate.models.approvals import Approval
from proposal_gate.models.approvers import Approver
from proposal_gate.models.audit_entries import AuditEntry
from proposal_gate.models.proposals import Proposal

__all__ = [
    "Approval",
    "Approver",
    "AuditEntry",
    "Proposal",
]
