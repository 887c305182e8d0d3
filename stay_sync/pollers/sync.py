import structlog

from stay_sync.config import CALENDAR_FEED_NAME, CALENDAR_FEED_URL, DRY_RUN
from stay_sync.db.engine import engine
from stay_sync.logging_config import setup_logging
from stay_sync.services.calendar_sync import sync_calendar
from stay_sync.services.status import run_status_sweep
from stay_sync.utils.datetime import utc_now

# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """One-shot run: sync the external calendar, then sweep statuses."""
    now = utc_now()

    if CALENDAR_FEED_URL:
        result = sync_calendar(engine, CALENDAR_FEED_NAME, CALENDAR_FEED_URL, now, dry_run=DRY_RUN)
        logger.info(
            "cli_calendar_sync_done",
            succeeded=result.succeeded,
            events=result.event_count,
            skipped=result.skipped,
            reason=result.reason,
        )
    else:
        logger.info("cli_calendar_sync_skipped", reason="no feed url configured")

    if DRY_RUN:
        logger.info("cli_status_sweep_skipped", reason="dry run")
        return

    sweep = run_status_sweep(engine, now)
    logger.info(
        "cli_status_sweep_done",
        promoted=len(sweep.promoted),
        completed=len(sweep.completed),
        skipped=len(sweep.skipped),
    )


if __name__ == "__main__":
    main()
