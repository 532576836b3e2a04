import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def check_database_connection(engine: AsyncEngine, *, include_metadata: bool = True) -> None:
    """Run ``SELECT 1`` against the engine; raises SQLAlchemyError when unreachable."""
    async with engine.connect() as connection:
        await connection.execute(text("SELECT 1"))
        if include_metadata:
            logger.info(
                "database_connected dialect=%s driver=%s",
                engine.dialect.name,
                engine.dialect.driver,
            )
