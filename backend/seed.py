"""Insert the stock track catalogue into an empty database.

Usage: ``DATABASE_URL=... python seed.py``
"""

import asyncio
import logging
import uuid

from sqlalchemy import select

from laprank import db
from laprank.models import Track
from laprank.schemas import TRACK_LEVELS, TRACK_TYPES

logger = logging.getLogger("seed")

TRACK_COUNT = 200


def track_layout(index: int) -> tuple[str, str]:
    """Level and type of the ``index``-th (0-based) stock track.

    Levels change every 40 tracks and cycle through the non-custom levels;
    types change every 10 tracks.
    """

    stock_levels = [lvl for lvl in TRACK_LEVELS if lvl != "custom"]
    level = stock_levels[(index // 40) % len(stock_levels)]
    type_ = TRACK_TYPES[(index // 10) % len(TRACK_TYPES)]
    return level, type_


async def seed_tracks(session) -> int:
    """Add the stock tracks unless any track exists; return how many were added."""

    existing = (await session.execute(select(Track.id).limit(1))).first()
    if existing:
        logger.info("Tracks already seeded; nothing to do")
        return 0

    for i in range(TRACK_COUNT):
        level, type_ = track_layout(i)
        session.add(Track(id=uuid.uuid4().hex, number=i + 1, level=level, type=type_))
    await session.commit()
    logger.info("Inserted %d tracks", TRACK_COUNT)
    return TRACK_COUNT


async def main():
    await db.create_schema()
    try:
        async with db.AsyncSessionLocal() as session:
            await seed_tracks(session)
    finally:
        await db.dispose_engine()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
