"""FastAPI application entrypoint and router wiring for the approval service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi_pagination import add_pagination

from proposal_gate.api.approvals import router as approvals_router
from proposal_gate.api.approvers import router as approvers_router
from proposal_gate.api.auth import router as auth_router
from proposal_gate.api.proposals import router as proposals_router
from proposal_gate.api.public import router as public_router
from proposal_gate.core.config import settings
from proposal_gate.core.error_handling import install_error_handling
from proposal_gate.core.logging import configure_logging, get_logger
from proposal_gate.db.session import init_db
from proposal_gate.schemas.health import HealthStatusResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "auth",
        "description": "Resolve the calling approver from auth headers.",
    },
    {
        "name": "health",
        "description": "Service liveness/readiness probes used by infrastructure and runtime checks.",
    },
    {
        "name": "approvers",
        "description": "Approver registry listing in approval order.",
    },
    {
        "name": "proposals",
        "description": (
            "Event and club formation submissions, per-approver decisions, gating checks, "
            "status overrides, and audit trail."
        ),
    },
    {
        "name": "approvals",
        "description": "Reviewer queue of proposals the caller can act on now.",
    },
    {
        "name": "public",
        "description": "Unauthenticated approval progress for proposers.",
    },
]

_GENERIC_RESPONSE_DESCRIPTIONS = {"Successful Response", "Validation Error"}
_HTTP_RESPONSE_DESCRIPTIONS = {
    "200": "Request completed successfully.",
    "201": "Resource created successfully.",
    "401": "Authentication is required or token is invalid.",
    "403": "Caller is authenticated but not authorized for this operation.",
    "404": "Requested resource was not found.",
    "409": "Request conflicts with the current resource state.",
    "422": "Request payload failed schema or field validation.",
    "503": "No active approvers are configured.",
}


def _normalize_operation_docs(operation: dict[str, Any]) -> None:
    """Fill in missing descriptions on an operation and its responses."""
    summary = str(operation.get("summary", "")).strip()
    if summary and not str(operation.get("description", "")).strip():
        operation["description"] = f"{summary}."
    responses = operation.get("responses")
    if not isinstance(responses, dict):
        return
    for status_code, response in responses.items():
        if not isinstance(response, dict):
            continue
        existing = str(response.get("description", "")).strip()
        if not existing or existing in _GENERIC_RESPONSE_DESCRIPTIONS:
            response["description"] = _HTTP_RESPONSE_DESCRIPTIONS.get(
                str(status_code),
                "Request processed.",
            )


def _build_custom_openapi(fastapi_app: FastAPI) -> dict[str, Any]:
    if fastapi_app.openapi_schema:
        return fastapi_app.openapi_schema
    openapi_schema = get_openapi(
        title=fastapi_app.title,
        version=fastapi_app.version,
        openapi_version=fastapi_app.openapi_version,
        description=fastapi_app.description,
        routes=fastapi_app.routes,
        tags=fastapi_app.openapi_tags,
        servers=fastapi_app.servers,
    )
    paths = openapi_schema.get("paths")
    if isinstance(paths, dict):
        for path_item in paths.values():
            if not isinstance(path_item, dict):
                continue
            for operation in path_item.values():
                if isinstance(operation, dict):
                    _normalize_operation_docs(operation)
    fastapi_app.openapi_schema = openapi_schema
    return fastapi_app.openapi_schema


class ProposalGateFastAPI(FastAPI):
    """FastAPI application with custom OpenAPI normalization."""

    def openapi(self) -> dict[str, Any]:
        return _build_custom_openapi(self)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize application resources before serving requests."""
    logger.info(
        "app.lifecycle.starting environment=%s auth_mode=%s db_auto_migrate=%s",
        settings.environment,
        settings.auth_mode.value,
        settings.db_auto_migrate,
    )
    await init_db()
    logger.info("app.lifecycle.started")
    try:
        yield
    finally:
        logger.info("app.lifecycle.stopped")


app = ProposalGateFastAPI(
    title="Proposal Gate API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )
    logger.info("app.cors.enabled origins_count=%s", len(origins))
else:
    logger.info("app.cors.disabled")

install_error_handling(app)

_HEALTH_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_200_OK: {
        "description": "Service is alive.",
        "content": {"application/json": {"example": {"ok": True}}},
    }
}


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Check",
    responses=_HEALTH_RESPONSES,
)
def health() -> HealthStatusResponse:
    """Lightweight liveness probe endpoint."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/healthz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Alias Check",
    responses=_HEALTH_RESPONSES,
)
def healthz() -> HealthStatusResponse:
    """Alias liveness probe endpoint for platform compatibility."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/readyz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Readiness Check",
    responses=_HEALTH_RESPONSES,
)
def readyz() -> HealthStatusResponse:
    """Readiness probe endpoint for service orchestration checks."""
    return HealthStatusResponse(ok=True)


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(auth_router)
api_v1.include_router(approvers_router)
api_v1.include_router(proposals_router)
api_v1.include_router(approvals_router)
api_v1.include_router(public_router)
app.include_router(api_v1)

add_pagination(app)
logger.debug("app.routes.registered count=%s", len(app.routes))
