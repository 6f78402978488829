"""
Re-drive notifications still pending in the outbox.

Meant for a cron job alongside the API:

    python scripts/retry_notifications.py --limit 200
"""

import argparse

import structlog

from charity_hub.db.engine import engine
from charity_hub.logging_config import setup_logging
from charity_hub.services.notifications import retry_pending_notifications

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--limit", type=int, default=100, help="Maximum rows to attempt")
    args = parser.parse_args()

    logger.info("notification_retry_started", limit=args.limit)
    try:
        summary = retry_pending_notifications(engine, limit=args.limit)
    except Exception:
        logger.exception("notification_retry_failed")
        raise
    logger.info("notification_retry_finished", **summary)


if __name__ == "__main__":
    main()
