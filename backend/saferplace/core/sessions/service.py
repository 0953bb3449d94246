import logging
import time
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from saferplace.core.exceptions import BadAuthorizationFormat, Expired, ProviderNotFound, SessionNotFound
from saferplace.core.sessions.models import AuthSession

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"

_UPSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _redact(token: str) -> str:
    return f"{token[:4]}…" if len(token) > 4 else "…"


async def save_session(db: AsyncSession, token: str, ttl_seconds: int) -> int:
    """Store the token with an expiry `ttl_seconds` from now. Saving it again replaces the expiry."""
    expiry = int(time.time()) + ttl_seconds
    dialect = db.get_bind().dialect.name
    if dialect not in _UPSERTS:
        raise ProviderNotFound(f"no session upsert for dialect {dialect!r}", operation="save_session")

    stmt = _UPSERTS[dialect](AuthSession).values(id=token, expiry=expiry)
    await db.execute(stmt.on_conflict_do_update(
        index_elements=[AuthSession.id],
        set_={"expiry": stmt.excluded.expiry},
    ))
    logger.debug("session %s saved, expires at %d", _redact(token), expiry)
    return expiry


async def is_valid_session(db: AsyncSession, token: str) -> None:
    """Return normally when the session is usable, otherwise raise SessionNotFound or Expired."""
    result = await db.execute(select(AuthSession.expiry).where(AuthSession.id == token))
    expiry = result.scalar_one_or_none()
    if expiry is None:
        raise SessionNotFound("session not found", operation="is_valid_session", entity_id=_redact(token))

    # TODO: delete the row once it is found expired
    if time.time() > expiry:
        raise Expired("session expired", operation="is_valid_session", entity_id=_redact(token))


def parse_bearer(authorization: str) -> str:
    """Extract the token from an `Authorization: Bearer <token>` value."""
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        raise BadAuthorizationFormat("authorization not in 'Bearer <token>' format", operation="authenticate")
    return parts[1]
