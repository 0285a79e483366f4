"""Schedulers that decide where binding notifications are delivered."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from src.bindgen.runtime.disposables import EMPTY_DISPOSABLE, ActionDisposable, Disposable

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Protocol for schedulers.

    Implementations:
    - ImmediateScheduler: runs work synchronously on the calling thread
    - ManualScheduler: queues work until ``drain`` is called (UI loops, tests)
    """

    def schedule(self, action: Callable[[], None]) -> Disposable:
        """Schedule an action; disposing the result cancels it if still pending."""
        ...


class ImmediateScheduler:
    """Runs every action synchronously."""

    def schedule(self, action: Callable[[], None]) -> Disposable:
        action()
        return EMPTY_DISPOSABLE


@dataclass
class _ScheduledItem:
    action: Callable[[], None]
    cancelled: bool = False


class ManualScheduler:
    """Queues actions and runs them in order when drained.

    Stands in for a UI thread dispatcher: bindings scheduled on it deliver
    nothing until the owner drains the queue.
    """

    def __init__(self) -> None:
        self._queue: deque[_ScheduledItem] = deque()
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        with self._lock:
            return sum(1 for item in self._queue if not item.cancelled)

    def schedule(self, action: Callable[[], None]) -> Disposable:
        item = _ScheduledItem(action)
        with self._lock:
            self._queue.append(item)
        return ActionDisposable(lambda: setattr(item, "cancelled", True))

    def drain(self) -> int:
        """Run queued actions, including ones queued while draining.

        Returns:
            Number of actions run
        """
        ran = 0
        while True:
            with self._lock:
                if not self._queue:
                    break
                item = self._queue.popleft()
            if item.cancelled:
                continue
            item.action()
            ran += 1
        if ran:
            logger.debug(f"Drained {ran} scheduled action(s)")
        return ran


IMMEDIATE = ImmediateScheduler()
