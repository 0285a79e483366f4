"""Change-notification substrate.

Objects that want their properties observed expose two events:
``property_changing`` (raised before a property is assigned) and
``property_changed`` (raised after). Handlers receive the sender and the
property name; an empty name means every property may have changed.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

PropertyChangeHandler = Callable[[Any, str], None]

_MISSING = object()


class PropertyChangeEvent:
    """Multicast list of property change handlers."""

    def __init__(self) -> None:
        self._handlers: list[PropertyChangeHandler] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._handlers)

    def add(self, handler: PropertyChangeHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def remove(self, handler: PropertyChangeHandler) -> None:
        """Remove one registration of ``handler``; unknown handlers are ignored."""
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def fire(self, sender: Any, property_name: str) -> None:
        """Call every handler registered at the time of the call."""
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            handler(sender, property_name)


@runtime_checkable
class NotifyPropertyChanged(Protocol):
    property_changed: PropertyChangeEvent


@runtime_checkable
class NotifyPropertyChanging(Protocol):
    property_changing: PropertyChangeEvent


class ReactiveObject:
    """Base class whose public attributes raise change notifications.

    Assigning a public attribute raises ``property_changing`` before and
    ``property_changed`` after the assignment, but only when the new value
    differs from the current one. Attributes starting with ``_`` are plain.

    Example:
        class Person(ReactiveObject):
            def __init__(self, name: str = "") -> None:
                super().__init__()
                self.name = name
    """

    _raises_changing = True

    def __init__(self, **values: Any) -> None:
        if self._raises_changing:
            object.__setattr__(self, "property_changing", PropertyChangeEvent())
        object.__setattr__(self, "property_changed", PropertyChangeEvent())
        for name, value in values.items():
            object.__setattr__(self, name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        current = getattr(self, name, _MISSING)
        if current is not _MISSING and (current is value or current == value):
            return
        if self._raises_changing:
            self.property_changing.fire(self, name)
        object.__setattr__(self, name, value)
        self.property_changed.fire(self, name)

    def raise_property_changing(self, property_name: str = "") -> None:
        self.property_changing.fire(self, property_name)

    def raise_property_changed(self, property_name: str = "") -> None:
        """Raise ``property_changed`` manually; ``""`` means every property."""
        self.property_changed.fire(self, property_name)


class ChangedOnlyObject(ReactiveObject):
    """Reactive object that raises after-change notifications only."""

    _raises_changing = False
