"""Consecutive failure counter shared by every tick of the monitor."""

import threading


class FailureCounter:
    """Thread-safe non-negative counter with increment-and-fetch and reset."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def increment(self) -> int:
        """Add one failure and return the new count."""
        with self._lock:
            self._value += 1
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    def __repr__(self) -> str:
        return f"FailureCounter(value={self.value})"
