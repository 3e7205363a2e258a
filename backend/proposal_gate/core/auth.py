"""Approver authentication for JWT and local-token auth modes."""

from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from proposal_gate.core.auth_mode import AuthMode
from proposal_gate.core.config import settings
from proposal_gate.core.logging import get_logger
from proposal_gate.db.session import get_session
from proposal_gate.services.approver_registry import get_approver_by_email, normalize_email
from proposal_gate.services.errors import NotAuthorized

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from proposal_gate.models.approvers import Approver

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
SESSION_DEP = Depends(get_session)
APPROVER_EMAIL_HEADER = "X-Approver-Email"


@dataclass
class AuthContext:
    """Authenticated caller resolved from inbound auth headers.

    `approver` is `None` when the identity is valid but does not belong to an
    active approver.
    """

    email: str
    approver: Approver | None = None


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value:
        return None
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


def _extract_claim_email(claims: dict[str, object]) -> str | None:
    for key in ("email", "sub"):
        value = claims.get(key)
        if isinstance(value, str):
            email = normalize_email(value)
            if email and "@" in email:
                return email
    return None


def _decode_session_token(token: str) -> dict[str, object]:
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            issuer=settings.jwt_issuer or None,
            options={"verify_aud": bool(settings.jwt_audience)},
        )
    except JWTError as exc:
        logger.info("auth.jwt.rejected reason=%s", type(exc).__name__)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc
    return {str(k): v for k, v in claims.items()}


def _resolve_local_email(request: Request, token: str) -> str:
    expected = settings.local_auth_token.strip()
    if not expected or not compare_digest(token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    email = normalize_email(request.headers.get(APPROVER_EMAIL_HEADER))
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {APPROVER_EMAIL_HEADER} header",
        )
    return email


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve the caller identity for the configured auth mode."""
    token = _extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)

    if settings.auth_mode == AuthMode.LOCAL:
        email = _resolve_local_email(request, token)
    else:
        email = _extract_claim_email(_decode_session_token(token))
        if email is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)

    approver = await get_approver_by_email(session, email)
    if approver is None:
        logger.debug("auth.identity.not_approver email=%s", email)
    return AuthContext(email=email, approver=approver)


AUTH_DEP = Depends(get_auth_context)


def require_approver(auth: AuthContext = AUTH_DEP) -> AuthContext:
    """Require the caller to be an active approver."""
    if auth.approver is None:
        raise NotAuthorized
    return auth
