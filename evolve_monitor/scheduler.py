"""
Scheduler module for Evolve Monitor.

Uses APScheduler to run the jobs at fixed minutes of every hour:
- :02 refresh every category cache
- :03 check auctions
- :05 check subscribed businesses

The minutes are staggered so upstream requests do not burst together.
Can also be run manually via command line.
"""

import logging
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .alerts import RecordingChannel
from .app import MonitoringApp, build_app, seed_subscriptions
from .config import get_app_config
from .models import Category

logger = logging.getLogger(__name__)


def create_scheduler(app: MonitoringApp) -> BlockingScheduler:
    """
    Create and configure the APScheduler.

    Jobs:
    1. refresh_cache: warm every category cache
    2. check_auctions: send auction alerts
    3. check_businesses: send low-products alerts and hourly reports

    Returns:
        Configured BlockingScheduler
    """
    config = get_app_config()
    scheduler = BlockingScheduler()

    scheduler.add_job(
        app.refresh_cache,
        trigger=CronTrigger(minute=config.refresh_minute),
        id="refresh_cache",
        name="Refresh monitoring cache",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.add_job(
        app.check_auctions,
        trigger=CronTrigger(minute=config.auction_minute),
        id="check_auctions",
        name="Send auction alerts",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.add_job(
        app.check_businesses,
        trigger=CronTrigger(minute=config.business_minute),
        id="check_businesses",
        name="Send business alerts",
        replace_existing=True,
        max_instances=1,
    )

    logger.info("Scheduler configured with 3 jobs")
    return scheduler


def start_scheduler(app: MonitoringApp) -> None:
    """Start the scheduler (blocking)."""
    scheduler = create_scheduler(app)

    logger.info("Starting Evolve Monitor scheduler...")
    logger.info("Press Ctrl+C to stop")

    # Warm the caches before the first tick
    try:
        app.refresh_cache()
    except Exception as e:
        logger.error(f"Initial cache refresh failed: {e}")

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def main():
    """CLI entry point for the scheduler."""
    import argparse

    parser = argparse.ArgumentParser(description="Evolve Monitor Scheduler")
    parser.add_argument(
        "--mode",
        choices=["schedule", "once", "list"],
        default="schedule",
        help="Mode to run: schedule (continuous), once (every job once), list (print a category)"
    )
    parser.add_argument(
        "--category",
        choices=[c.value for c in Category],
        default=Category.BUSINESS.value,
        help="Category to print in list mode"
    )
    parser.add_argument(
        "--auction",
        action="append",
        default=[],
        metavar="CHAT_ID:CATEGORIES",
        help="Auction subscription, e.g. 123456:farms,sto (repeatable)"
    )
    parser.add_argument(
        "--business",
        action="append",
        default=[],
        metavar="CHAT_ID:NAME[:hourly][:low]",
        help="Business subscription (repeatable)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log messages instead of sending them to Telegram"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level"
    )

    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    channel = RecordingChannel(echo=True) if args.dry_run else None
    app = build_app(channel=channel)

    try:
        seed_subscriptions(app.registry, args.auction, args.business)
    except ValueError as e:
        parser.error(str(e))

    if args.mode == "schedule":
        start_scheduler(app)
    elif args.mode == "once":
        logger.info("Running every job once...")
        result = app.run_once()
        print(f"Run complete: {result}")
    elif args.mode == "list":
        messages = app.dispatcher.render_listing(Category(args.category))
        if not messages:
            print(f"No {args.category} entries available")
        for message in messages:
            print(message)
            print()


if __name__ == "__main__":
    main()
