# ulasis/app/services/cleanup_manager.py
import asyncio
from datetime import datetime, timezone
from typing import Optional

from ulasis.db.session import LocalSession
from ulasis.app.core.config import settings
from ulasis.app.core.logging import get_logs_writer_logger
from ulasis.app.services.qr_codes import cleanup_expired, cleanup_orphaned_images
from ulasis.app.services.scan_tracking import scan_tracker

logger = get_logs_writer_logger()


async def process_tick(now: Optional[datetime] = None) -> dict:
    """
    One cleanup pass: deactivate expired QR codes, drop images nothing
    points at and forget old entries of the scan cache.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    with LocalSession() as db:
        expired = cleanup_expired(db, now)
        orphaned = cleanup_orphaned_images(db)

    cached = scan_tracker.clean_cache()

    return {
        "qr_codes_expired": expired,
        "images_removed": orphaned,
        "scan_cache_cleared": cached,
        "timestamp": now.isoformat(),
    }


async def run_cleanup_loop(interval: Optional[int] = None):
    """
    Background task: run process_tick every `CLEANUP_INTERVAL` seconds.
    """
    interval = settings.CLEANUP_INTERVAL if interval is None else interval
    logger.info("Cleanup loop started (every %ss)", interval)
    await asyncio.sleep(0.5)

    while True:
        try:
            stats = await process_tick()
            if stats["qr_codes_expired"] or stats["images_removed"]:
                logger.info("Cleanup stats: %s", stats)
        except Exception as e:
            logger.exception("Cleanup tick failed: %s", e)

        await asyncio.sleep(max(1, interval))
