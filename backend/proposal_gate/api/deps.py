"""Reusable FastAPI dependencies for the approval API.

Routers compose these instead of repeating session and approver checks.
"""

from __future__ import annotations

from fastapi import Depends

from proposal_gate.core.auth import AuthContext, get_auth_context, require_approver
from proposal_gate.db.session import get_session

SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)
APPROVER_DEP = Depends(require_approver)


def approver_email(auth: AuthContext = APPROVER_DEP) -> str:
    """Normalized email of the authenticated approver."""
    return auth.email


APPROVER_EMAIL_DEP = Depends(approver_email)
