import asyncio
import logging

from insurfi.db.session import engine
from insurfi.db.base import Base
# Import all models to register with Base
import insurfi.models.admin  # noqa: F401
import insurfi.models.audit  # noqa: F401
import insurfi.models.claim  # noqa: F401
import insurfi.models.policy  # noqa: F401

logger = logging.getLogger(__name__)


async def init_models(bind=None, drop: bool = False):
    bind = bind or engine
    async with bind.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created.")


if __name__ == "__main__":
    asyncio.run(init_models())
