"""Disposable subscription handles.

Disposal is the only cancellation primitive in the runtime. Every handle is
idempotent: disposing twice is a no-op. Handles are also context managers.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable


class Disposable(ABC):
    """A resource released by calling ``dispose``."""

    @abstractmethod
    def dispose(self) -> None: ...

    @property
    @abstractmethod
    def is_disposed(self) -> bool: ...

    def __enter__(self) -> Disposable:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()


class ActionDisposable(Disposable):
    """Runs an action exactly once on first disposal."""

    def __init__(self, action: Callable[[], None]) -> None:
        self._action: Callable[[], None] | None = action
        self._lock = threading.Lock()

    @property
    def is_disposed(self) -> bool:
        return self._action is None

    def dispose(self) -> None:
        with self._lock:
            action, self._action = self._action, None
        if action is not None:
            action()


class _EmptyDisposable(Disposable):
    @property
    def is_disposed(self) -> bool:
        return True

    def dispose(self) -> None:
        pass


EMPTY_DISPOSABLE: Disposable = _EmptyDisposable()


class CompositeDisposable(Disposable):
    """Disposes every member together.

    Every member is disposed even if one raises. A single failure is
    re-raised as is; several are raised together as an ``ExceptionGroup``.
    Members added after disposal are disposed immediately.
    """

    def __init__(self, *disposables: Disposable) -> None:
        self._disposables: list[Disposable] = list(disposables)
        self._disposed = False
        self._lock = threading.Lock()

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        return len(self._disposables)

    def add(self, disposable: Disposable) -> None:
        with self._lock:
            if not self._disposed:
                self._disposables.append(disposable)
                return
        disposable.dispose()

    def remove(self, disposable: Disposable) -> bool:
        """Remove and dispose a member. Returns False if it was not a member."""
        with self._lock:
            if self._disposed or disposable not in self._disposables:
                return False
            self._disposables.remove(disposable)
        disposable.dispose()
        return True

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            members, self._disposables = self._disposables, []

        errors: list[Exception] = []
        for member in members:
            try:
                member.dispose()
            except Exception as e:
                errors.append(e)
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ExceptionGroup("Errors while disposing composite", errors)


class SerialDisposable(Disposable):
    """Holds one replaceable member; assigning a new one disposes the old."""

    def __init__(self) -> None:
        self._current: Disposable | None = None
        self._disposed = False
        self._lock = threading.Lock()

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def disposable(self) -> Disposable | None:
        return self._current

    @disposable.setter
    def disposable(self, value: Disposable | None) -> None:
        with self._lock:
            disposed = self._disposed
            if not disposed:
                previous, self._current = self._current, value
        if disposed:
            if value is not None:
                value.dispose()
            return
        if previous is not None:
            previous.dispose()

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            current, self._current = self._current, None
        if current is not None:
            current.dispose()
