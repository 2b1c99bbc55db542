from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import get_settings

settings = get_settings()


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str, **overrides) -> AsyncEngine:
    """Create the async engine for ``database_url``.

    Pool sizing only applies to server databases. SQLite (local runs and
    tests) gets foreign key enforcement turned on per connection.
    """
    url = make_url(database_url)
    options = {"echo": settings.DB_ECHO, "future": True}

    if url.get_backend_name() == "sqlite":
        options.update(overrides)
        engine = create_async_engine(url, **options)
        _enable_sqlite_foreign_keys(engine)
        return engine

    options.update(
        pool_pre_ping=True,  # Test connections before using
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )
    options.update(overrides)
    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


engine = build_engine(settings.DATABASE_URL)

# Create async session factory
AsyncSessionLocal = build_session_factory(engine)
