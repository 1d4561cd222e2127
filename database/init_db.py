"""
Create the database schema from the ORM metadata.

Usage: python -m database.init_db
"""

from __future__ import annotations

import asyncio
import logging
import sys

from database.session import engine, init_models

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def main() -> None:
    try:
        await init_models()
    finally:
        await engine.dispose()
    logger.info("Tables: users, categories, expenses")


if __name__ == "__main__":
    asyncio.run(main())
