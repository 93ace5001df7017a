"""Database initialization utilities."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import Base
from app.db.session import engine
from app.models import Professional

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def init_db(session: AsyncSession) -> None:
    """Initialize the database schema and report its state.

    Args:
        session: Database session
    """
    await create_tables()

    result = await session.execute(select(Professional.id).limit(1))
    if result.scalar_one_or_none() is None:
        logger.warning("No professionals configured yet; booking pages will 404")

    logger.info("Database initialization complete")
