"""Periodic health-check monitor with webhook alerting."""

from .config import ConfigurationError, HealthCheckConfig, load_config
from .counter import FailureCounter
from .monitor import HealthMonitor
from .notifier import AlertMessage, send_webhook_alert
from .probe import ProbeOutcome, probe_target

__all__ = [
    "AlertMessage",
    "ConfigurationError",
    "FailureCounter",
    "HealthCheckConfig",
    "HealthMonitor",
    "ProbeOutcome",
    "load_config",
    "probe_target",
    "send_webhook_alert",
]
