import pytest
from unittest.mock import AsyncMock, patch

from core.exceptions import UpsertError
from ingestion.scheduler import SyncScheduler


@pytest.mark.asyncio
async def test_scheduler_initialization(sync_config):
    scheduler = SyncScheduler(sync_config, interval_minutes=15)
    assert scheduler.scheduler is not None
    assert scheduler.interval_minutes == 15
    assert scheduler.last_result is None


@pytest.mark.asyncio
async def test_scheduler_job_execution(sync_config):
    with patch("ingestion.scheduler.SyncRunner") as mock_runner_cls:
        mock_runner = AsyncMock()
        mock_runner.run.return_value = {"status": "success"}
        mock_runner_cls.return_value = mock_runner

        scheduler = SyncScheduler(sync_config)
        await scheduler.run_sync_job()

        mock_runner_cls.assert_called_once_with(sync_config)
        assert mock_runner.run.called
        assert mock_runner.close.called
        assert scheduler.last_result == {"status": "success"}


@pytest.mark.asyncio
async def test_scheduler_job_failure_is_contained(sync_config):
    with patch("ingestion.scheduler.SyncRunner") as mock_runner_cls:
        mock_runner = AsyncMock()
        mock_runner.run.side_effect = UpsertError("Supabase upsert error for sales: 500")
        mock_runner_cls.return_value = mock_runner

        scheduler = SyncScheduler(sync_config)
        await scheduler.run_sync_job()

        assert scheduler.last_result["status"] == "failed"
        assert scheduler.last_result["error"]["error_type"] == "UpsertError"
        assert mock_runner.close.called


@pytest.mark.asyncio
async def test_scheduler_registers_interval_job(sync_config):
    scheduler = SyncScheduler(sync_config, interval_minutes=30)
    scheduler.start()
    try:
        job = scheduler.scheduler.get_job("sync_job")
        assert job is not None
        assert job.trigger.interval.total_seconds() == 30 * 60
    finally:
        scheduler.stop()
