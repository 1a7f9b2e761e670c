#!/usr/bin/env python3
"""
Send WhatsApp reminders for confirmed appointments in the reminder window.

Meant to run from cron, e.g. every 30 minutes. Appointments that already got
a reminder are skipped, so overlapping schedules only resend if two sweeps
run at the same moment.

Usage:
    python scripts/run_reminders.py
    python scripts/run_reminders.py --now 2026-10-20T08:00:00-03:00
"""

import argparse
import asyncio
from datetime import datetime

import structlog

from app.database import AsyncSessionLocal, engine
from app.middleware.logging import configure_logging
from app.services.notification_service import NotificationService
from app.services.whatsapp_service import get_whatsapp_client

logger = structlog.get_logger("scripts.run_reminders")


async def run(now: datetime | None = None) -> int:
    """Run one reminder sweep and return the number of reminders dispatched."""
    async with AsyncSessionLocal() as session:
        service = NotificationService(session, get_whatsapp_client())
        dispatched = await service.dispatch_reminders(now)

    await engine.dispose()
    return dispatched


def main() -> None:
    """Parse arguments and run the sweep."""
    parser = argparse.ArgumentParser(description="Send appointment reminders")
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="Reference time in ISO format (defaults to the current time)",
    )
    args = parser.parse_args()

    configure_logging()
    dispatched = asyncio.run(run(args.now))
    logger.info("reminders_dispatched", count=dispatched)


if __name__ == "__main__":
    main()
