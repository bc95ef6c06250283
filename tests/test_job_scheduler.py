from __future__ import annotations

import pytest

from health_monitor.scheduler import JobScheduler


@pytest.mark.asyncio
async def test_interval_job_lifecycle() -> None:
    async def tick(label: str) -> None:
        return None

    scheduler = JobScheduler()
    scheduler.add_interval_job("health_check", tick, seconds=3600, args=("scheduled",), description="probe")
    await scheduler.start()
    try:
        status = scheduler.get_job_status("health_check")
        assert status is not None
        assert status["type"] == "interval"
        assert status["name"] == "probe"
        assert status["next_run"] is not None

        job = scheduler.scheduler.get_job("health_check")
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.args == ("scheduled",)

        overview = scheduler.get_scheduler_status()
        assert overview["running"] is True
        assert overview["job_count"] == 1
        assert overview["next_run"] is not None

        assert scheduler.remove_job("health_check") is True
        assert scheduler.list_jobs() == []
        assert scheduler.remove_job("health_check") is False
        assert scheduler.get_job_status("health_check") is None
    finally:
        await scheduler.stop()

    assert scheduler.running is False


@pytest.mark.asyncio
async def test_cron_job_and_replacement() -> None:
    async def tick() -> None:
        return None

    scheduler = JobScheduler()
    await scheduler.start()
    try:
        scheduler.add_cron_job("health_check", tick, "*/5 * * * *")
        scheduler.add_cron_job("health_check", tick, "0 * * * *")
        jobs = scheduler.list_jobs()
        assert len(jobs) == 1
        assert jobs[0]["type"] == "cron"
        assert scheduler.jobs["health_check"]["expression"] == "0 * * * *"
    finally:
        await scheduler.stop()


def test_invalid_cron_expression_is_rejected() -> None:
    scheduler = JobScheduler()
    with pytest.raises(ValueError):
        scheduler.add_cron_job("bad", lambda: None, "* * *")
