"""Overall proposal status derived from per-approver decisions.

Two aggregation rules exist and are intentionally kept apart:

- `compute_overall_status` is the unanimity rule. It drives the cached
  `Proposal.status` and everything the admin dashboard reads. A split
  decision (even a single rejection among approvals) stays `pending`.
- `compute_public_status` is the public status page vocabulary, where any
  rejection is shown as `rejected`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from proposal_gate.models.approvals import ApprovalStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

OverallStatus = Literal["approved", "rejected", "pending"]
PublicStatus = Literal["rejected", "fully_approved", "under_consideration", "pending"]


def compute_overall_status(statuses: Iterable[str]) -> OverallStatus:
    """Return `approved`/`rejected` only when every record agrees, else `pending`.

    An empty input is vacuously `approved`; proposals always carry at least
    one approval row because creation refuses an empty approver roster.
    """
    values = list(statuses)
    if all(value == ApprovalStatus.APPROVED.value for value in values):
        return "approved"
    if all(value == ApprovalStatus.REJECTED.value for value in values):
        return "rejected"
    return "pending"


def compute_public_status(statuses: Iterable[str]) -> PublicStatus:
    """Return the public-page status: any rejection wins, then unanimity."""
    values = list(statuses)
    if any(value == ApprovalStatus.REJECTED.value for value in values):
        return "rejected"
    if values and all(value == ApprovalStatus.APPROVED.value for value in values):
        return "fully_approved"
    if values:
        return "under_consideration"
    return "pending"
