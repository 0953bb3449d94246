from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from saferplace.db.base import Base, EpochSeconds


class Incident(Base):
    """
    A reported safety event.
    Only `resolution` changes after creation, and only through a review.
    """
    __tablename__ = "incidents"
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    timestamp: Mapped[int] = mapped_column(EpochSeconds, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    lon: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    resolution: Mapped[str] = mapped_column(String(32), nullable=False)
    image_id: Mapped[str] = mapped_column("image", Text, nullable=False)


class Comment(Base):
    # incident_id is checked by the review transaction, there is no foreign key
    __tablename__ = "comments"
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    incident_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    timestamp: Mapped[int] = mapped_column(EpochSeconds, nullable=False)
    author_id: Mapped[str] = mapped_column("author", Text, nullable=False)
    message: Mapped[str] = mapped_column("comment", Text, nullable=False)
    resolution: Mapped[str] = mapped_column(String(32), nullable=False)
