#!/usr/bin/env python3
"""
Cancel past appointments that are still scheduled or confirmed.

Usage:
    python scripts/cancel_overdue.py
"""

import asyncio

import structlog

from app.database import AsyncSessionLocal, engine
from app.middleware.logging import configure_logging
from app.services.appointment_service import AppointmentService
from app.services.notification_service import NotificationService
from app.services.whatsapp_service import get_whatsapp_client

logger = structlog.get_logger("scripts.cancel_overdue")


async def run() -> int:
    """Cancel overdue appointments and return how many changed."""
    async with AsyncSessionLocal() as session:
        notifier = NotificationService(session, get_whatsapp_client())
        canceled = await AppointmentService(session, notifier).cancel_overdue()

    await engine.dispose()
    return canceled


if __name__ == "__main__":
    configure_logging()
    count = asyncio.run(run())
    logger.info("overdue_cancellation_finished", count=count)
