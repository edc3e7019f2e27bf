"""
Main-thread dispatcher.

Visual state (the overlay surface) belongs to a single thread. Worker
threads never touch it directly; they post callables here and the owning
thread runs them when it drains the queue.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Optional


class MainThreadDispatcher:
    """Task queue drained by its owning thread."""

    def __init__(self, owner: Optional[threading.Thread] = None):
        self._owner = owner or threading.current_thread()
        self._tasks: "queue.Queue[tuple[Callable[..., Any], tuple]]" = queue.Queue()

    @property
    def owner(self) -> threading.Thread:
        return self._owner

    def claim(self) -> None:
        """Make the calling thread the owner."""
        self._owner = threading.current_thread()

    def is_owner(self) -> bool:
        return threading.current_thread() is self._owner

    def assert_owner(self) -> None:
        if not self.is_owner():
            raise RuntimeError(
                f"Surface state touched from {threading.current_thread().name}, "
                f"owned by {self._owner.name}"
            )

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule fn(*args) on the owning thread. Safe from any thread."""
        self._tasks.put((fn, args))

    @property
    def pending(self) -> int:
        return self._tasks.qsize()

    def drain(self, max_tasks: Optional[int] = None) -> int:
        """Run queued tasks on the owning thread. Returns the number run."""
        self.assert_owner()
        ran = 0
        while max_tasks is None or ran < max_tasks:
            try:
                fn, args = self._tasks.get_nowait()
            except queue.Empty:
                break
            try:
                fn(*args)
            except Exception as e:
                logging.warning(f"Dispatched task error: {e}")
            ran += 1
        return ran
