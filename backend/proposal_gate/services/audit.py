"""Audit logging service for approval workflow actions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from proposal_gate.core.time import utcnow
from proposal_gate.models.audit_entries import AuditEntry

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


async def record_audit(
    session: AsyncSession,
    *,
    actor_email: str,
    action: str,
    proposal_id: UUID | None = None,
    payload: dict[str, object] | None = None,
    commit: bool = True,
) -> AuditEntry:
    """Create an append-only audit log entry."""
    entry = AuditEntry(
        proposal_id=proposal_id,
        actor_email=actor_email,
        action=action,
        payload=payload,
        created_at=utcnow(),
    )
    session.add(entry)
    if commit:
        await session.commit()
        await session.refresh(entry)
    return entry
