"""Scheduler module for triggering monitor ticks."""

from .job_scheduler import JobScheduler

__all__ = ["JobScheduler"]
