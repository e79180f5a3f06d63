from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from .config import settings


def build_engine(url: str, **kwargs) -> AsyncEngine:
    engine = create_async_engine(url, echo=False, pool_pre_ping=True, **kwargs)
    if engine.dialect.name == "sqlite":
        # problems.user_id relies on ON DELETE SET NULL
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=AsyncSession)


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_sessionmaker(engine)

async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
