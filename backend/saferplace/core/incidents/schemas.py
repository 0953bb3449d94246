from pydantic import BaseModel, Field

from saferplace.core.incidents.resolution import Resolution


class Coordinates(BaseModel):
    lat: float
    lon: float


class Region(BaseModel):
    """Bounding box in hundredths of a degree."""
    north: int
    south: int
    west: int
    east: int


class CommentCreate(BaseModel):
    timestamp: int
    author_id: str
    message: str


class CommentRead(BaseModel):
    timestamp: int
    author_id: str
    message: str
    resolution: Resolution


class IncidentCreate(BaseModel):
    id: str = Field(..., min_length=1)
    timestamp: int
    description: str | None = None
    coordinates: Coordinates
    resolution: Resolution = Resolution.UNSPECIFIED
    image_id: str = ""


class IncidentRead(BaseModel):
    id: str
    timestamp: int
    description: str | None
    coordinates: Coordinates
    resolution: Resolution
    image_id: str
    comments: list[CommentRead] = []
