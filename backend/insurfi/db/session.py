from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from insurfi.core.config import settings


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves FK enforcement (and ON DELETE CASCADE) off per connection
    if "sqlite" in type(dbapi_connection).__module__:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(uri: str = None, echo: bool = None, pool_size: int = None):
    uri = uri or settings.SQLALCHEMY_DATABASE_URI
    echo = settings.SQL_ECHO if echo is None else echo
    pool_size = settings.DB_POOL_SIZE if pool_size is None else pool_size

    kwargs = {"future": True, "echo": echo}
    if pool_size <= 0:
        kwargs["poolclass"] = NullPool
    elif not uri.startswith("sqlite"):
        kwargs["pool_size"] = pool_size
    return create_async_engine(uri, **kwargs)


def build_sessionmaker(bind):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine()

SessionLocal = build_sessionmaker(engine)


async def get_db():
    async with SessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
