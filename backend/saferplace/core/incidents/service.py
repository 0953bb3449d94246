import logging
import uuid
from datetime import datetime, timezone
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from saferplace.core import geo
from saferplace.core.exceptions import AlreadyExists, DoesNotExist
from saferplace.core.incidents.models import Comment, Incident
from saferplace.core.incidents.resolution import PUBLISHED, Resolution
from saferplace.core.incidents.schemas import (
    CommentCreate, CommentRead, Coordinates, IncidentCreate, IncidentRead, Region,
)

logger = logging.getLogger(__name__)

# Region bounds arrive in hundredths of a degree.
REGION_SCALE = 100


def _to_read(incident: Incident, comments: list[Comment] | None = None) -> IncidentRead:
    return IncidentRead(
        id=incident.id,
        timestamp=incident.timestamp,
        description=incident.description,
        coordinates=Coordinates(lat=incident.lat, lon=incident.lon),
        resolution=Resolution.from_label(incident.resolution),
        image_id=incident.image_id,
        comments=[
            CommentRead(
                timestamp=c.timestamp,
                author_id=c.author_id,
                message=c.message,
                resolution=Resolution.from_label(c.resolution),
            )
            for c in comments or []
        ],
    )


def _epoch(since: datetime | int) -> int:
    if isinstance(since, datetime):
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        return int(since.timestamp())
    return int(since)


async def has_incident(db: AsyncSession, incident_id: str) -> bool:
    result = await db.execute(select(Incident.id).where(Incident.id == incident_id))
    return result.scalar_one_or_none() is not None


async def create_incident(db: AsyncSession, data: IncidentCreate) -> None:
    # The primary key is what actually guards against duplicates; this check
    # only gives the common case a clean error before the insert.
    if await has_incident(db, data.id):
        raise AlreadyExists("incident already exists", operation="create", entity_id=data.id)

    db.add(Incident(
        id=data.id,
        timestamp=data.timestamp,
        description=data.description,
        lat=data.coordinates.lat,
        lon=data.coordinates.lon,
        resolution=data.resolution.label,
        image_id=data.image_id,
    ))
    try:
        await db.flush()
    except IntegrityError as exc:
        raise AlreadyExists("incident already exists", operation="create", entity_id=data.id) from exc
    logger.debug("incident %s created", data.id)


async def save_review(
    db: AsyncSession,
    incident_id: str,
    resolution: Resolution,
    comment: CommentCreate,
) -> None:
    """
    Set the incident's resolution and record the comment justifying it.
    Both rows are written in the caller's transaction and commit together.
    """
    if not await has_incident(db, incident_id):
        raise DoesNotExist("incident does not exist", operation="review", entity_id=incident_id)

    await db.execute(
        update(Incident)
        .where(Incident.id == incident_id)
        .values(resolution=resolution.label)
    )
    db.add(Comment(
        id=str(uuid.uuid4()),
        incident_id=incident_id,
        timestamp=comment.timestamp,
        author_id=comment.author_id,
        message=comment.message,
        resolution=resolution.label,
    ))
    await db.flush()
    logger.debug("incident %s reviewed as %s by %s", incident_id, resolution.label, comment.author_id)


async def view_incident(db: AsyncSession, incident_id: str) -> IncidentRead:
    result = await db.execute(select(Incident).where(Incident.id == incident_id))
    incident = result.scalar_one_or_none()
    if incident is None:
        raise DoesNotExist("incident does not exist", operation="view", entity_id=incident_id)

    result = await db.execute(select(Comment).where(Comment.incident_id == incident_id))
    # sorted() is stable, so equal timestamps keep fetch order
    comments = sorted(result.scalars().all(), key=lambda c: c.timestamp)
    return _to_read(incident, comments)


async def list_without_review(db: AsyncSession) -> list[IncidentRead]:
    result = await db.execute(
        select(Incident).where(Incident.resolution == Resolution.UNSPECIFIED.label)
    )
    return [_to_read(i) for i in result.scalars().all()]


async def list_in_radius(db: AsyncSession, center: Coordinates, radius: float) -> list[IncidentRead]:
    """
    Published incidents within `radius` of `center`.

    The store has no geospatial operators, so only the resolution is filtered
    in SQL and the distance is computed here. `radius` uses the unit of
    `geo.distance` (kilometres).
    """
    result = await db.execute(
        select(Incident).where(Incident.resolution.in_([r.label for r in PUBLISHED]))
    )
    return [
        _to_read(i)
        for i in result.scalars().all()
        if geo.distance(center.lat, center.lon, i.lat, i.lon) <= radius
    ]


async def _list_in_region(
    db: AsyncSession,
    resolutions: tuple[Resolution, ...],
    since: datetime | int,
    region: Region,
) -> list[IncidentRead]:
    result = await db.execute(
        select(Incident).where(
            Incident.resolution.in_([r.label for r in resolutions]),
            Incident.timestamp > _epoch(since),
            Incident.lat < region.north / REGION_SCALE,
            Incident.lat >= region.south / REGION_SCALE,
            Incident.lon >= region.west / REGION_SCALE,
            Incident.lon <= region.east / REGION_SCALE,
        )
    )
    return [_to_read(i) for i in result.scalars().all()]


async def list_in_region(db: AsyncSession, since: datetime | int, region: Region) -> list[IncidentRead]:
    return await _list_in_region(db, PUBLISHED, since, region)


async def alerting_incidents(db: AsyncSession, since: datetime | int, region: Region) -> list[IncidentRead]:
    return await _list_in_region(db, (Resolution.ALERTED,), since, region)
