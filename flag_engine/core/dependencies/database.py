"""Database dependency for FastAPI route handlers.

Route handlers use ``Depends(get_db_session)``; code outside a request uses
``flag_engine.infra.database.get_async_session`` directly. Both share the
same session factory.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from flag_engine.infra.database import get_async_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency for a request-scoped database session.

    Example:
        @router.get("/feature-flags")
        async def list_flags(session: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with get_async_session() as session:
        yield session
