import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import SyncConfig
from core.exceptions import ETLException
from ingestion.runner import SyncRunner

logger = logging.getLogger(__name__)


class SyncScheduler:
    """
    Run the sync on a fixed interval inside one long-lived process.

    Each job builds a fresh SyncRunner, so no state carries over between
    runs. A failed job is logged and the next interval runs as usual.
    """

    def __init__(self, config: SyncConfig, interval_minutes: int = 60):
        self.config = config
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler()
        self.last_result: Optional[dict] = None

    async def run_sync_job(self):
        """Job to run the sync pipeline"""
        logger.info("Scheduler: Starting sync job")
        runner = SyncRunner(self.config)
        try:
            self.last_result = await runner.run()
        except ETLException as e:
            self.last_result = {"status": "failed", "error": e.to_dict()}
            logger.error(
                f"Scheduler: Sync job failed - {e}",
                extra={"error_context": e.to_dict()}
            )
        finally:
            await runner.close()

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_sync_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="sync_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"Sync scheduler started (every {self.interval_minutes} minutes)")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("Sync scheduler stopped")
