"""
Core type definitions and protocols.

This module defines shared callback and token protocols used between the
simulator and the run orchestrator without coupling the two.
"""

import threading
from collections.abc import Callable
from typing import Protocol

# Receives the integer completion percentage of the bar loop
ProgressCallback = Callable[[int], None]


class ICancellationToken(Protocol):
    """Protocol for cooperative cancellation checked once per bar."""

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        ...


class CancellationToken:
    """Thread-safe cancellation flag shared by a run and its worker thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()
