"""Configuration management for the health monitor."""

import os
from typing import Any, Dict, Optional

import httpx
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


class ConfigurationError(ValueError):
    """Raised when the monitor cannot run with the configuration it was given."""


def check_http_url(value: str) -> None:
    """Raise ValueError unless value is an absolute http(s) URL httpx can send to."""
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as e:
        raise ValueError(f"malformed URL: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError("expected an absolute http(s) URL")


class HealthCheckConfig(BaseModel):
    """Settings for the health monitor process."""

    # Target and notification endpoints
    health_check_url: Optional[str] = Field(default=None, description="URL probed on every tick")
    slack_webhook_url: Optional[str] = Field(default=None, description="Chat webhook that receives alerts")
    webhook_text_field: str = Field(default="text", description="JSON field carrying the alert text")
    user_agent: str = Field(default="health-monitor/0.1", description="User-Agent header sent with probes")

    # Failure handling
    max_failures: int = Field(default=3, ge=1, description="Consecutive failures before alerting")
    failure_delay_seconds: float = Field(default=30.0, ge=0, description="Wait after a failure before evaluating it")
    request_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout for probe and webhook requests")

    # Scheduling settings
    check_interval_seconds: int = Field(default=60, ge=1, description="Seconds between ticks")
    check_schedule_cron: Optional[str] = Field(default=None, description="Cron expression, overrides the interval")

    # Service settings
    log_level: str = Field(default="INFO", description="Logging level")
    host: str = Field(default="0.0.0.0", description="Bind address of the status server")
    port: int = Field(default=8000, description="Port of the status server")

    @field_validator("health_check_url", "slack_webhook_url", "check_schedule_cron", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("health_check_url", "slack_webhook_url")
    @classmethod
    def _http_url_shape(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            check_http_url(value)
        return value

    @property
    def webhook_configured(self) -> bool:
        return bool(self.slack_webhook_url)

    def require_target_url(self) -> str:
        """Return the health-check URL or raise ConfigurationError if it is missing or malformed."""
        if not self.health_check_url:
            raise ConfigurationError("HEALTH_CHECK_URL must be set")
        try:
            check_http_url(self.health_check_url)
        except ValueError as e:
            raise ConfigurationError(f"HEALTH_CHECK_URL is invalid: {e}") from e
        return self.health_check_url


_ENV_OVERRIDES: Dict[str, str] = {
    "health_check_url": "HEALTH_CHECK_URL",
    "slack_webhook_url": "SLACK_WEBHOOK_URL",
    "webhook_text_field": "WEBHOOK_TEXT_FIELD",
    "user_agent": "HEALTH_CHECK_USER_AGENT",
    "max_failures": "MAX_FAILURES",
    "failure_delay_seconds": "FAILURE_DELAY_SECONDS",
    "request_timeout_seconds": "REQUEST_TIMEOUT_SECONDS",
    "check_interval_seconds": "HEALTH_CHECK_INTERVAL",
    "check_schedule_cron": "HEALTH_CHECK_CRON",
    "log_level": "LOG_LEVEL",
    "host": "HOST",
    "port": "PORT",
}


def load_config(config_path: Optional[str] = None) -> HealthCheckConfig:
    """Load configuration from file or environment variables."""
    if config_path is None:
        config_path = os.getenv("HEALTH_MONITOR_CONFIG", "config/health_monitor.yaml")

    config_data: Dict[str, Any] = {}

    # Load from file if exists
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config YAML must be a mapping: {config_path}")

    # Environment wins over the file; pydantic coerces the strings
    for key, env_name in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is not None:
            config_data[key] = value

    try:
        return HealthCheckConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid health monitor configuration: {e}") from e
