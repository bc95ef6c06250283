"""Main entry point for the health monitor."""

import asyncio
import logging
import sys
from typing import Optional

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from health_monitor.config import ConfigurationError, HealthCheckConfig, load_config
from health_monitor.counter import FailureCounter
from health_monitor.monitor import HealthMonitor
from health_monitor.probe import safe_url
from health_monitor.scheduler import JobScheduler


CHECK_JOB_ID = "health_check"

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging for the whole process."""
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=numeric_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    # Webhook URLs are secrets; keep httpx request lines out of the logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_http_client(config: HealthCheckConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.request_timeout_seconds)


async def run_scheduled_check(monitor: HealthMonitor) -> None:
    """Scheduler job body: one tick, with configuration errors logged instead of raised."""
    try:
        await monitor.run_check()
    except ConfigurationError as e:
        logger.error("Health check aborted", error=str(e))


def create_app(config: Optional[HealthCheckConfig] = None, *, enable_scheduler: bool = True) -> FastAPI:
    app = FastAPI(title="Health Monitor", version="0.1.0")
    app.state.config = config if config is not None else load_config()
    app.state.counter = FailureCounter()
    app.state.client = None
    app.state.monitor = None
    app.state.scheduler = JobScheduler()

    @app.on_event("startup")
    async def startup_event():
        cfg: HealthCheckConfig = app.state.config
        app.state.client = build_http_client(cfg)
        app.state.monitor = HealthMonitor(cfg, app.state.client, counter=app.state.counter)

        if not cfg.health_check_url:
            logger.warning("HEALTH_CHECK_URL is not set; every tick will be aborted")
        if not cfg.webhook_configured:
            logger.warning("SLACK_WEBHOOK_URL is not set; alerts are disabled")

        if not enable_scheduler:
            return

        scheduler: JobScheduler = app.state.scheduler
        if cfg.check_schedule_cron:
            scheduler.add_cron_job(
                job_id=CHECK_JOB_ID,
                func=run_scheduled_check,
                cron_expression=cfg.check_schedule_cron,
                args=(app.state.monitor,),
                description="Probe health-check URL",
            )
        else:
            scheduler.add_interval_job(
                job_id=CHECK_JOB_ID,
                func=run_scheduled_check,
                seconds=cfg.check_interval_seconds,
                args=(app.state.monitor,),
                description="Probe health-check URL",
            )
        await scheduler.start()
        logger.info("Health monitor started", url=safe_url(cfg.health_check_url or "") or None)

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.scheduler.stop()
        if app.state.client is not None:
            await app.state.client.aclose()
        logger.info("Health monitor stopped")

    @app.get("/")
    async def root():
        """Liveness of the monitor process itself."""
        return {"status": "healthy", "service": "health-monitor"}

    @app.get("/status")
    async def get_status():
        monitor: Optional[HealthMonitor] = app.state.monitor
        if monitor is None:
            return JSONResponse(content={"error": "System not initialized"}, status_code=503)

        return {
            "monitor": monitor.get_status(),
            "scheduler": app.state.scheduler.get_scheduler_status(),
            "jobs": app.state.scheduler.list_jobs(),
        }

    @app.post("/run/check")
    async def trigger_check():
        """Run one tick now, outside the schedule."""
        monitor: Optional[HealthMonitor] = app.state.monitor
        if monitor is None:
            return JSONResponse(content={"error": "System not initialized"}, status_code=503)

        try:
            outcome = await monitor.run_check()
        except ConfigurationError as e:
            return JSONResponse(content={"error": str(e)}, status_code=503)

        return {
            "ok": outcome.ok,
            "reason": outcome.reason,
            "status_code": outcome.status_code,
            "failures": monitor.counter.value,
        }

    return app


async def run_single_check(config: HealthCheckConfig) -> int:
    """Run one tick and map the result to a process exit code."""
    async with build_http_client(config) as client:
        monitor = HealthMonitor(config, client)
        try:
            outcome = await monitor.run_check()
        except ConfigurationError as e:
            logger.error("Health check aborted", error=str(e))
            return 2

    return 0 if outcome.ok else 1


def main():
    """Main entry point with argument handling."""
    try:
        config = load_config()
    except ConfigurationError as e:
        configure_logging()
        logger.error("Could not load configuration", error=str(e))
        sys.exit(2)

    configure_logging(config.log_level)

    if len(sys.argv) < 2:
        logger.info("Starting health monitor web server", host=config.host, port=config.port)
        uvicorn.run(
            create_app(config),
            host=config.host,
            port=config.port,
            reload=False,
            log_level="info",
        )
        return

    command = sys.argv[1]
    if command == "check":
        sys.exit(asyncio.run(run_single_check(config)))

    print(f"Unknown command: {command}")
    print("Available commands: check")
    sys.exit(2)


if __name__ == "__main__":
    main()
