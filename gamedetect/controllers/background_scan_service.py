"""Background scan service.

Periodically asks the detection service for a scan. Most iterations return
the cached list because of the cache TTL.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 300  # 5 minutes
RETRY_INTERVAL = 60


class BackgroundScanService:
    """Background service that keeps the detected games list fresh"""

    def __init__(self, detection_service, interval: float = DEFAULT_INTERVAL,
                 retry_interval: float = RETRY_INTERVAL):
        self.detection_service = detection_service
        self.interval = interval
        self.retry_interval = retry_interval
        self.running = False
        self.task = None
        self.iterations = 0

    async def start(self):
        """Start background scanning"""
        if self.running:
            logger.warning("[Background] Scan service already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._scan_loop())
        logger.info("[Background] Scan service started")

    async def stop(self):
        """Stop background scanning"""
        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        logger.info("[Background] Scan service stopped")

    async def _scan_loop(self):
        """Main loop: scan (cache permitting), then sleep"""
        while self.running:
            try:
                report = await self.detection_service.scan_all_platforms()
                self.iterations += 1
                if report.warnings:
                    logger.warning(f"[Background] {report.summary()}")
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"[Background] Error in scan loop: {e}")
                await asyncio.sleep(self.retry_interval)
