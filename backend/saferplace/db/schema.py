import logging

from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from saferplace.db.base import Base
from saferplace.core.incidents.models import Incident, Comment  # noqa
from saferplace.core.sessions.models import AuthSession  # noqa

logger = logging.getLogger(__name__)


def _create_missing(conn: Connection) -> None:
    Base.metadata.create_all(conn, checkfirst=True)
    # create_all only builds indexes together with their table
    for table in Base.metadata.sorted_tables:
        for index in table.indexes:
            index.create(conn, checkfirst=True)


async def init_schema(engine: AsyncEngine) -> None:
    """Create the incidents, comments and sessions tables and their indexes if absent."""
    async with engine.begin() as conn:
        await conn.run_sync(_create_missing)

    logger.info("database schema ready (%s)", ", ".join(sorted(Base.metadata.tables)))
