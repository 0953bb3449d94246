import pytest_asyncio

from saferplace.core.incidents.resolution import Resolution
from saferplace.core.incidents.schemas import Coordinates, IncidentCreate
from saferplace.database import Database
from saferplace.db.session import create_engine


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(create_engine("sqlite3", f"file:{tmp_path / 'incidents.db'}"))
    await database.connect()
    yield database
    await database.close()


def make_incident(
    incident_id: str,
    lat: float = 0.0,
    lon: float = 0.0,
    resolution: Resolution = Resolution.UNSPECIFIED,
    timestamp: int = 1_700_000_000,
) -> IncidentCreate:
    return IncidentCreate(
        id=incident_id,
        timestamp=timestamp,
        description=f"incident {incident_id}",
        coordinates=Coordinates(lat=lat, lon=lon),
        resolution=resolution,
        image_id=f"images/{incident_id}.jpg",
    )
