"""Idempotent sync of the approver registry from a roster file."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlmodel import col

from proposal_gate.core.logging import get_logger
from proposal_gate.core.time import utcnow
from proposal_gate.models.approvers import Approver

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlmodel.ext.asyncio.session import AsyncSession

    from proposal_gate.schemas.approvers import ApproverSeed

logger = get_logger(__name__)

_SYNCED_FIELDS = ("name", "role", "approval_order", "is_active", "department", "phone")


@dataclass
class RosterSyncResult:
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deactivated: list[str] = field(default_factory=list)


async def sync_roster(
    session: AsyncSession,
    entries: Sequence[ApproverSeed],
    *,
    deactivate_missing: bool = False,
) -> RosterSyncResult:
    """Create or update approvers by email.

    Approvers are never deleted, since existing approval rows reference them.
    With `deactivate_missing`, active approvers absent from `entries` are
    marked inactive; their rows on existing proposals stay in place.
    """
    result = RosterSyncResult()
    existing = {a.email: a for a in await Approver.objects.all().all(session)}
    now = utcnow()

    for entry in entries:
        values = entry.model_dump()
        values["role"] = entry.role.value
        approver = existing.get(entry.email)
        if approver is None:
            session.add(Approver(**values, created_at=now, updated_at=now))
            result.created.append(entry.email)
            continue
        changed = False
        for key in _SYNCED_FIELDS:
            if getattr(approver, key) != values[key]:
                setattr(approver, key, values[key])
                changed = True
        if changed:
            approver.updated_at = now
            session.add(approver)
            result.updated.append(entry.email)

    if deactivate_missing:
        wanted = {entry.email for entry in entries}
        stale = await Approver.objects.filter(
            col(Approver.is_active).is_(True),
            col(Approver.email).not_in(wanted),
        ).all(session)
        for approver in stale:
            approver.is_active = False
            approver.updated_at = now
            session.add(approver)
            result.deactivated.append(approver.email)

    await session.commit()
    logger.info(
        "approvers.roster.synced created=%s updated=%s deactivated=%s",
        len(result.created),
        len(result.updated),
        len(result.deactivated),
    )
    return result
