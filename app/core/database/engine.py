"""
Database engine configuration and session management.

Current: SQLite (async with aiosqlite)
Future: PostgreSQL (switch to asyncpg and point DATABASE_URL at it)
"""
from collections.abc import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.core import config

# NullPool for SQLite to avoid connection pool issues
engine = create_async_engine(
    config.SQLALCHEMY_DATABASE_URL,
    poolclass=NullPool if config.SQLALCHEMY_DATABASE_URL.startswith("sqlite") else None,
    echo=False,
    future=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Usage in FastAPI routes:
        @router.get("/content/{item_id}")
        async def read_item(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def import_models() -> None:
    """Import every model module so its tables are registered on Base.metadata."""
    from app.features.users.models import User  # noqa: F401
    from app.features.permissions.models import Permission, Role  # noqa: F401
    from app.features.content_types.models import ContentType  # noqa: F401
    from app.features.content.models import ContentItem  # noqa: F401
    from app.features.node_access.models import NodeAccess  # noqa: F401
    from app.features.private.models import PrivateModuleState  # noqa: F401


async def init_db():
    """
    Initialize database tables.
    Called on application startup and by the seed script.
    """
    from app.core.database.base import Base

    import_models()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
