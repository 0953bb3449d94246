from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from saferplace.core.exceptions import ProviderNotFound

DRIVERS = {
    "sqlite": "sqlite+aiosqlite",
    "sqlite3": "sqlite+aiosqlite",
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "pgx": "postgresql+asyncpg",
}

# execution option marking a connection whose transaction will write
WRITE_OPTION = "saferplace_write"

# seconds a SQLite writer waits for the lock before failing
SQLITE_BUSY_TIMEOUT = 30.0


def database_url(driver: str, dsn: str) -> str:
    """
    Turn a driver name and data source into an async SQLAlchemy URL.

        database_url("sqlite3", "file:incidents.db") -> "sqlite+aiosqlite:///incidents.db"
        database_url("sqlite3", "file:sp.db?mode=ro") -> "sqlite+aiosqlite:///file:sp.db?mode=ro&uri=true"
        database_url("postgres", "postgres://u:p@db/sp") -> "postgresql+asyncpg://u:p@db/sp"
    """
    dialect = DRIVERS.get(driver.lower())
    if dialect is None:
        raise ProviderNotFound(f"unsupported database driver {driver!r}")

    if "://" in dsn:
        return f"{dialect}://{dsn.split('://', 1)[1]}"

    if dialect.startswith("sqlite"):
        path, _, query = dsn.partition("?")
        if not query:
            return f"{dialect}:///{path.removeprefix('file:')}"
        # options like cache=shared or mode=ro only reach SQLite through a file: URI
        params = [p for p in query.split("&") if p and not p.startswith("uri=")]
        if not path.startswith("file:"):
            path = f"file:{path}"
        return f"{dialect}:///{path}?{'&'.join(params + ['uri=true'])}"

    raise ProviderNotFound(f"cannot build a {driver!r} url from dsn {dsn!r}")


def _enable_sqlite_transactions(engine: AsyncEngine) -> None:
    # pysqlite-style drivers defer BEGIN until the first write; emit it ourselves
    # so reads inside a transaction see one snapshot. Writers take the write lock
    # up front, a deferred read-then-write upgrade deadlocks under concurrency.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def create_engine(driver: str, dsn: str, echo: bool = False) -> AsyncEngine:
    url = make_url(database_url(driver, dsn))
    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(url, echo=echo, connect_args={"timeout": SQLITE_BUSY_TIMEOUT})
        _enable_sqlite_transactions(engine)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )
