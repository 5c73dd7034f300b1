from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from typing import AsyncGenerator, Optional

from app.core.config import settings

Base = declarative_base()

# Created on first use so tests can set DATABASE_URL before anything connects
_engine: Optional[AsyncEngine] = None
_async_session_local: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """DATABASE_URL with plain postgresql:// switched to the asyncpg driver"""
    db_url = settings.DATABASE_URL
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://")
    return db_url


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """
    Let SQLAlchemy emit BEGIN itself on SQLite.

    The sqlite3 driver starts transactions lazily, so a SAVEPOINT opened
    before the first INSERT becomes the outer transaction and its RELEASE
    commits. Complaint submission relies on savepoints to redraw a
    registration number, so every SQLite engine gets this hook.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_engine() -> AsyncEngine:
    """
    SQLite (tests, local runs) and development Postgres use NullPool;
    production Postgres uses a pool sized by the DB_POOL_* settings.
    """
    global _engine
    if _engine is None:
        db_url = get_database_url()

        if db_url.startswith("sqlite"):
            _engine = enable_sqlite_savepoints(create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                connect_args={"check_same_thread": False},
                poolclass=NullPool,
            ))
        elif settings.is_dev_mode():
            _engine = create_async_engine(db_url, echo=settings.DB_ECHO, poolclass=NullPool)
        else:
            _engine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,
            )
    return _engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    global _async_session_local
    if _async_session_local is None:
        _async_session_local = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_local


def AsyncSessionLocal():
    """New session outside a request, used by seed_demo_data.py"""
    return get_session_local()()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. Services commit their own mutations; anything
    still pending when the endpoint returns is committed here, and any
    exception rolls the session back.
    """
    async with get_session_local()() as session:
        try:
            yield session
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create the portal tables if they do not exist"""
    import app.models  # noqa: F401  register models on the metadata

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    global _engine, _async_session_local
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_local = None
