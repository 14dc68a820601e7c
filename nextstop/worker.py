from __future__ import annotations

import logging
import sys

from nextstop.adapters.persistence import SqliteScheduleRepository
from nextstop.config import Settings, configure_logging
from nextstop.domain.exceptions.schedule import StoreInitError

logger = logging.getLogger(__name__)


def prebuild_schedule(settings: Settings) -> dict[str, int]:
    """Parse the GTFS dataset into the on-disk schedule store.

    A store file that already holds a completed load is left untouched.
    """

    if settings.schedule_db_path == ":memory:":
        raise ValueError("SCHEDULE_DB_PATH must point to a file to prebuild the store")

    repo = SqliteScheduleRepository(
        db_path=settings.schedule_db_path,
        default_mode=settings.schedule_default_mode,
    )
    try:
        repo.initialize(settings.gtfs_data_path)
        return repo.counts()
    finally:
        repo.close()


def main() -> int:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    try:
        counts = prebuild_schedule(settings)
    except (StoreInitError, ValueError) as e:
        logger.error("Schedule prebuild failed: %s", e)
        return 1

    logger.info(
        "Schedule store ready",
        extra={"db_path": settings.schedule_db_path, **counts},
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
