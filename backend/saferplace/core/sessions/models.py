from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from saferplace.db.base import Base, EpochSeconds


class AuthSession(Base):
    __tablename__ = "sessions"

    # the bearer token itself
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    expiry: Mapped[int] = mapped_column(EpochSeconds, nullable=False)
