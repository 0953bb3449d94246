from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

# epoch seconds; 64-bit everywhere, plain INTEGER on SQLite
EpochSeconds = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass
