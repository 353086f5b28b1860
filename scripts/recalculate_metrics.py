"""Rebuild the per-user metrics rollup from the learning path tables.

Usage:
    python scripts/recalculate_metrics.py              # every user
    python scripts/recalculate_metrics.py --user-id ID # one user
"""

import argparse
import asyncio
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select

from pathgen.db import base
from pathgen.models import User
from pathgen.services.metrics import MetricsService

logger = logging.getLogger("pathgen.scripts.recalculate_metrics")


async def recalculate(user_id: Optional[UUID] = None) -> int:
    """Recalculate metrics for one user or all users; returns the count."""
    if base.engine is None:
        await base.init_db()

    async with base.AsyncSessionLocal() as session:
        query = select(User.id).order_by(User.created_at)
        if user_id is not None:
            query = query.where(User.id == user_id)
        user_ids = list((await session.execute(query)).scalars().all())
        if user_id is not None and not user_ids:
            logger.warning("No user with id %s", user_id)

        service = MetricsService(session)
        for uid in user_ids:
            metrics = await service.recalculate(uid)
            logger.info(
                "User %s: %d/%d paths, %d/%d modules, %d%%",
                uid,
                metrics.completed_paths,
                metrics.total_paths,
                metrics.completed_modules,
                metrics.total_modules,
                metrics.average_completion_rate,
            )

    await base.close_db()
    return len(user_ids)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--user-id", type=UUID, help="only recalculate this user")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    count = asyncio.run(recalculate(args.user_id))
    logger.info("Recalculated metrics for %d user(s)", count)


if __name__ == "__main__":
    main()
