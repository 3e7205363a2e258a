"""Async engine, request sessions, and schema bootstrap for the approval store."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any

from alembic.config import Config
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from proposal_gate import models as _models
from proposal_gate.core.config import settings
from proposal_gate.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Approver, proposal, approval and audit tables must be registered on the metadata.
_MODEL_REGISTRY = _models

BACKEND_ROOT = Path(__file__).resolve().parents[2]
_ASYNC_DRIVERS = {
    "postgres": "postgresql+psycopg",
    "postgresql": "postgresql+psycopg",
    "sqlite": "sqlite+aiosqlite",
}

logger = get_logger(__name__)


def _normalize_database_url(database_url: str) -> str:
    """Pin bare `postgresql://` and `sqlite://` URLs to their async drivers."""
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    return f"{_ASYNC_DRIVERS.get(scheme, scheme)}://{rest}"


def _engine_options(database_url: str) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True}


_database_url = _normalize_database_url(settings.database_url)
async_engine: AsyncEngine = create_async_engine(_database_url, **_engine_options(_database_url))
async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def _alembic_config() -> Config:
    alembic_cfg = Config(str(BACKEND_ROOT / "alembic.ini"))
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations() -> None:
    """Upgrade the approval schema to the latest Alembic revision."""
    from alembic import command

    logger.info("db.migrations.start")
    command.upgrade(_alembic_config(), "head")
    logger.info("db.migrations.complete")


async def init_db() -> None:
    if settings.db_auto_migrate and any((BACKEND_ROOT / "migrations" / "versions").glob("*.py")):
        await asyncio.to_thread(run_migrations)
        return
    if settings.db_auto_migrate:
        logger.warning("db.migrations.missing falling back to create_all")

    async with async_engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session.

    Anything left uncommitted is rolled back when the request ends. Database
    errors are logged and rolled back here, then rendered by the error
    handlers as a retryable `StoreUnavailable`.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except SQLAlchemyError as exc:
            logger.warning("db.session.store_error error=%s", type(exc).__name__)
            await _rollback_quietly(session)
            raise
        finally:
            if session.in_transaction():
                await _rollback_quietly(session)


async def _rollback_quietly(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except SQLAlchemyError:
        logger.exception("db.session.rollback_failed")
