from typing import AsyncGenerator
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from .config import settings

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    future=True
)

# Create session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


# Dependency to get database session
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


def dialect_insert(session: AsyncSession, table):
    """INSERT construct supporting ON CONFLICT for the session's backend.

    Unique-key upserts and insert-if-absent writes are the only concurrency
    primitive used for standup rows, so both supported backends must expose
    ``on_conflict_do_nothing`` / ``on_conflict_do_update``.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Unsupported database dialect: {dialect}")
