import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from saferplace.core.exceptions import (
    Cancelled, DoesNotExist, Expired,
    ProviderNotFound, TransientStoreFailure,
)
from saferplace.core.incidents import service as incidents
from saferplace.core.incidents.resolution import Resolution
from saferplace.core.incidents.schemas import (
    CommentCreate, Coordinates, IncidentCreate, IncidentRead, Region,
)
from saferplace.core.sessions import service as sessions
from saferplace.db.schema import init_schema
from saferplace.db.session import WRITE_OPTION, create_engine, create_sessionmaker
from saferplace.log import setup_logging
from saferplace.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class Database:
    """
    Incident, review and session store.

    Safe to share between concurrent request handlers: the only state is the
    engine's connection pool. Every public method runs in its own transaction,
    committed on success and rolled back on any error, cancellation or
    expired `timeout` (seconds). Nothing is retried.
    """

    def __init__(self, engine: AsyncEngine, session_ttl_seconds: int | None = None):
        self.engine = engine
        if session_ttl_seconds is None:
            session_ttl_seconds = get_settings().SESSION_TTL_SECONDS
        self.session_ttl_seconds = session_ttl_seconds
        self._sessionmaker = create_sessionmaker(engine)

    async def connect(self) -> "Database":
        try:
            await init_schema(self.engine)
        except SQLAlchemyError as exc:
            raise TransientStoreFailure(f"unable to prepare database: {exc}", operation="connect") from exc
        return self

    async def close(self) -> None:
        await self.engine.dispose()

    async def __aenter__(self) -> "Database":
        return await self.connect()

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @asynccontextmanager
    async def transaction(
        self,
        operation: str,
        entity_id: str | None = None,
        timeout: float | None = None,
        write: bool = False,
    ) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with asyncio.timeout(timeout):
                async with self._sessionmaker() as db:
                    async with db.begin():
                        if write:
                            await db.connection(execution_options={WRITE_OPTION: True})
                        yield db
        except TimeoutError as exc:
            logger.warning("%s %s cancelled: deadline of %ss exceeded", operation, entity_id or "", timeout)
            raise Cancelled("deadline exceeded", operation=operation, entity_id=entity_id) from exc
        except SQLAlchemyError as exc:
            logger.warning("%s %s failed: %s", operation, entity_id or "", exc)
            raise TransientStoreFailure(f"store failure: {exc}", operation=operation, entity_id=entity_id) from exc

    # ── Incidents ─────────────────────────────────────────────────────────────

    async def create_incident(self, data: IncidentCreate, *, timeout: float | None = None) -> None:
        async with self.transaction("create", data.id, timeout, write=True) as db:
            await incidents.create_incident(db, data)

    async def save_review(
        self,
        incident_id: str,
        resolution: Resolution,
        comment: CommentCreate,
        *,
        timeout: float | None = None,
    ) -> None:
        async with self.transaction("review", incident_id, timeout, write=True) as db:
            await incidents.save_review(db, incident_id, resolution, comment)

    async def view_incident(self, incident_id: str, *, timeout: float | None = None) -> IncidentRead:
        async with self.transaction("view", incident_id, timeout) as db:
            return await incidents.view_incident(db, incident_id)

    async def list_without_review(self, *, timeout: float | None = None) -> list[IncidentRead]:
        async with self.transaction("list_without_review", timeout=timeout) as db:
            return await incidents.list_without_review(db)

    async def list_in_radius(
        self, center: Coordinates, radius: float, *, timeout: float | None = None,
    ) -> list[IncidentRead]:
        async with self.transaction("list_in_radius", timeout=timeout) as db:
            return await incidents.list_in_radius(db, center, radius)

    async def list_in_region(
        self, since: datetime | int, region: Region, *, timeout: float | None = None,
    ) -> list[IncidentRead]:
        async with self.transaction("list_in_region", timeout=timeout) as db:
            return await incidents.list_in_region(db, since, region)

    async def alerting_incidents(
        self, since: datetime | int, region: Region, *, timeout: float | None = None,
    ) -> list[IncidentRead]:
        async with self.transaction("alerting_incidents", timeout=timeout) as db:
            return await incidents.alerting_incidents(db, since, region)

    # ── Sessions ──────────────────────────────────────────────────────────────

    async def save_session(self, token: str, *, timeout: float | None = None) -> int:
        async with self.transaction("save_session", timeout=timeout, write=True) as db:
            return await sessions.save_session(db, token, self.session_ttl_seconds)

    async def is_valid_session(self, token: str, *, timeout: float | None = None) -> None:
        async with self.transaction("is_valid_session", timeout=timeout) as db:
            await sessions.is_valid_session(db, token)

    async def authenticate(self, authorization: str, *, timeout: float | None = None) -> bool:
        """True when `authorization` is `Bearer <token>` for a live session."""
        token = sessions.parse_bearer(authorization)
        try:
            await self.is_valid_session(token, timeout=timeout)
        except (DoesNotExist, Expired) as exc:
            logger.info("unable to authenticate: %s", exc)
            return False
        return True


PROVIDERS = ("sql",)


def new_database(settings: Settings | None = None) -> Database:
    """Build the configured store. Call `connect()` (or use `async with`) before first use."""
    settings = settings or get_settings()
    setup_logging(settings.APP_DEBUG)
    if settings.DATABASE_PROVIDER not in PROVIDERS:
        raise ProviderNotFound(f"unknown database provider {settings.DATABASE_PROVIDER!r}", operation="open")

    engine = create_engine(settings.DATABASE_DRIVER, settings.DATABASE_DSN, echo=settings.APP_DEBUG)
    logger.debug("opened %s database using driver %s", settings.DATABASE_PROVIDER, settings.DATABASE_DRIVER)
    return Database(engine, session_ttl_seconds=settings.SESSION_TTL_SECONDS)

