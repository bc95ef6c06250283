"""Failure counting and alerting state machine for a single health-check target."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
import structlog

from .config import HealthCheckConfig
from .counter import FailureCounter
from .notifier import AlertMessage, redact_webhook_response, send_webhook_alert
from .probe import ProbeOutcome, probe_target, safe_url


logger = structlog.get_logger(__name__)


class HealthMonitor:
    """Runs one probe per tick and alerts after consecutive failures.

    States are derived from the counter: healthy at 0, degraded below the
    threshold. Reaching the threshold sends at most one webhook alert and
    resets the counter whether or not the send succeeded.
    """

    def __init__(
        self,
        config: HealthCheckConfig,
        client: httpx.AsyncClient,
        counter: Optional[FailureCounter] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self.client = client
        self.counter = counter if counter is not None else FailureCounter()
        self._sleep = sleep

        # Observability only; none of this feeds back into the state machine
        self.last_outcome: Optional[ProbeOutcome] = None
        self.last_checked_at: Optional[datetime] = None
        self.alerts_attempted = 0
        self.alerts_delivered = 0

    @property
    def state(self) -> str:
        failures = self.counter.value
        if failures == 0:
            return "healthy"
        return f"degraded({failures})"

    async def run_check(self) -> ProbeOutcome:
        """Execute one tick: probe, classify, update the counter, maybe alert.

        Raises:
            ConfigurationError: if no health-check URL is configured. The
                counter is left untouched and nothing is probed.
        """
        url = self.config.require_target_url()

        outcome = await probe_target(self.client, url, user_agent=self.config.user_agent)
        self.last_outcome = outcome
        self.last_checked_at = datetime.now(timezone.utc)

        if outcome.ok:
            if self.counter.value:
                logger.info("Health check recovered", url=safe_url(url), status_code=outcome.status_code)
            self.counter.reset()
            logger.debug("Health check passed", url=safe_url(url), elapsed_ms=outcome.elapsed_ms)
        else:
            logger.warning(
                "Health check failed",
                url=safe_url(url),
                status_code=outcome.status_code,
                error=outcome.error,
            )
            await self.handle_failure()

        return outcome

    async def handle_failure(self) -> None:
        """Count one failure, wait out the throttle delay, then alert at the threshold."""
        failures = self.counter.increment()

        if self.config.failure_delay_seconds > 0:
            await self._sleep(self.config.failure_delay_seconds)

        if failures < self.config.max_failures:
            logger.info("Failure recorded", failures=failures, max_failures=self.config.max_failures)
            return

        try:
            await self._notify(failures)
        finally:
            self.counter.reset()

    async def _notify(self, failures: int) -> None:
        url = self.config.health_check_url or ""
        if not self.config.webhook_configured:
            logger.warning(
                "Failure threshold reached but no webhook is configured; alert skipped",
                failures=failures,
                url=safe_url(url),
            )
            return

        message = AlertMessage(failures=failures, url=url)
        self.alerts_attempted += 1
        ok, details = await send_webhook_alert(
            self.client,
            self.config.slack_webhook_url,
            message,
            text_field=self.config.webhook_text_field,
        )
        if ok:
            self.alerts_delivered += 1
            logger.info("Alert sent", failures=failures, url=safe_url(url))
        else:
            logger.error(
                "Alert delivery failed",
                failures=failures,
                url=safe_url(url),
                response=redact_webhook_response(details),
            )

    def get_status(self) -> Dict[str, Any]:
        outcome = self.last_outcome
        return {
            "state": self.state,
            "failures": self.counter.value,
            "max_failures": self.config.max_failures,
            "target_url": safe_url(self.config.health_check_url or "") or None,
            "webhook_configured": self.config.webhook_configured,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "last_outcome": None
            if outcome is None
            else {
                "ok": outcome.ok,
                "reason": outcome.reason,
                "status_code": outcome.status_code,
                "error": outcome.error,
                "elapsed_ms": outcome.elapsed_ms,
            },
            "alerts_attempted": self.alerts_attempted,
            "alerts_delivered": self.alerts_delivered,
        }
