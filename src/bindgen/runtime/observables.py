"""Push-based observables and the operators the plan runtime needs.

Only the operators plans use are implemented: property watches, constant
and empty sources, select, switch, distinct-until-changed, skip,
observe-on, combine-latest and merge. Operators that hold state guard it
with a lock and deliver downstream while holding it, so each operator
preserves the order in which its sources emitted.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from operator import attrgetter
from typing import Any

from src.bindgen.runtime.disposables import (
    EMPTY_DISPOSABLE,
    ActionDisposable,
    CompositeDisposable,
    Disposable,
    SerialDisposable,
)
from src.bindgen.runtime.notify import NotifyPropertyChanged, NotifyPropertyChanging, PropertyChangeEvent
from src.bindgen.runtime.schedulers import Scheduler

_MISSING = object()


def _same(a: Any, b: Any) -> bool:
    return a is b or a == b


def _raise(error: Exception) -> None:
    raise error


def _noop(*args: Any) -> None:
    pass


# =============================================================================
# Observer / Observable
# =============================================================================


class Observer:
    """Receives notifications; stops forwarding after completion or error.

    An observer without an error handler re-raises the error to whoever
    delivered it.
    """

    def __init__(
        self,
        on_next: Callable[[Any], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_completed: Callable[[], None] | None = None,
    ) -> None:
        self._on_next = on_next or _noop
        self._on_error = on_error or _raise
        self._on_completed = on_completed or _noop
        self._stopped = False

    def on_next(self, value: Any) -> None:
        if not self._stopped:
            self._on_next(value)

    def on_error(self, error: Exception) -> None:
        if not self._stopped:
            self._stopped = True
            self._on_error(error)

    def on_completed(self) -> None:
        if not self._stopped:
            self._stopped = True
            self._on_completed()


class Observable(ABC):
    """A cold stream of values; every subscription runs the pipeline anew."""

    def subscribe(
        self,
        on_next: Observer | Callable[[Any], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_completed: Callable[[], None] | None = None,
    ) -> Disposable:
        """Subscribe an observer, or callbacks, and return the subscription."""
        if isinstance(on_next, Observer):
            observer = on_next
        else:
            observer = Observer(on_next, on_error, on_completed)
        return self._subscribe(observer)

    @abstractmethod
    def _subscribe(self, observer: Observer) -> Disposable: ...

    def select(self, selector: Callable[[Any], Any]) -> Observable:
        return SelectObservable(self, selector)

    def switch(self) -> Observable:
        """Flatten a stream of streams, following only the latest inner stream."""
        return SwitchObservable(self)

    def distinct_until_changed(self) -> Observable:
        return DistinctUntilChangedObservable(self)

    def skip(self, count: int) -> Observable:
        return SkipObservable(self, count)

    def observe_on(self, scheduler: Scheduler) -> Observable:
        return ObserveOnObservable(self, scheduler)


# =============================================================================
# Sources
# =============================================================================


class PropertyObservable(Observable):
    """Current value of one property, then its value after every change.

    Subscribing attaches the handler first and then emits the initial value.
    Notifications for other property names are ignored; an empty name is
    treated as a change of every property.
    """

    def __init__(
        self,
        source: Any,
        property_name: str,
        getter: Callable[[Any], Any] | None = None,
        distinct: bool = False,
    ) -> None:
        self.source = source
        self.property_name = property_name
        self.getter = getter or attrgetter(property_name)
        self.distinct = distinct
        self._event(source)

    def _event(self, source: Any) -> PropertyChangeEvent:
        if not isinstance(source, NotifyPropertyChanged):
            raise TypeError(f"{type(source).__name__} does not raise property_changed")
        return source.property_changed

    def _subscribe(self, observer: Observer) -> Disposable:
        event = self._event(self.source)
        lock = threading.RLock()
        last = [_MISSING]

        def emit() -> None:
            with lock:
                value = self.getter(self.source)
                if self.distinct:
                    if last[0] is not _MISSING and _same(last[0], value):
                        return
                    last[0] = value
                observer.on_next(value)

        def handler(sender: Any, property_name: str) -> None:
            if property_name and property_name != self.property_name:
                return
            emit()

        event.add(handler)
        emit()
        return ActionDisposable(lambda: event.remove(handler))


class PropertyChangingObservable(PropertyObservable):
    """Like ``PropertyObservable`` but fires before each change with the old value."""

    def _event(self, source: Any) -> PropertyChangeEvent:
        if not isinstance(source, NotifyPropertyChanging):
            raise TypeError(f"{type(source).__name__} does not raise property_changing")
        return source.property_changing


class ReturnObservable(Observable):
    """Emits one value, then completes."""

    def __init__(self, value: Any) -> None:
        self.value = value

    def _subscribe(self, observer: Observer) -> Disposable:
        observer.on_next(self.value)
        observer.on_completed()
        return EMPTY_DISPOSABLE


class EmptyObservable(Observable):
    """Completes immediately without emitting."""

    def _subscribe(self, observer: Observer) -> Disposable:
        observer.on_completed()
        return EMPTY_DISPOSABLE


class DeferObservable(Observable):
    """Builds the real observable with ``factory`` on every subscription."""

    def __init__(self, factory: Callable[[], Observable]) -> None:
        self.factory = factory

    def _subscribe(self, observer: Observer) -> Disposable:
        return self.factory().subscribe(observer)


class Subject(Observable):
    """Observable that is also a hot source: values pushed in reach every subscriber."""

    def __init__(self) -> None:
        self._observers: list[Observer] = []
        self._lock = threading.Lock()

    @property
    def has_observers(self) -> bool:
        return bool(self._observers)

    def _subscribe(self, observer: Observer) -> Disposable:
        with self._lock:
            self._observers.append(observer)

        def remove() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return ActionDisposable(remove)

    def _snapshot(self) -> list[Observer]:
        with self._lock:
            return list(self._observers)

    def on_next(self, value: Any) -> None:
        for observer in self._snapshot():
            observer.on_next(value)

    def on_error(self, error: Exception) -> None:
        for observer in self._snapshot():
            observer.on_error(error)

    def on_completed(self) -> None:
        for observer in self._snapshot():
            observer.on_completed()


# =============================================================================
# Operators
# =============================================================================


class SelectObservable(Observable):
    def __init__(self, source: Observable, selector: Callable[[Any], Any]) -> None:
        self.source = source
        self.selector = selector

    def _subscribe(self, observer: Observer) -> Disposable:
        def on_next(value: Any) -> None:
            try:
                result = self.selector(value)
            except Exception as e:
                observer.on_error(e)
                return
            observer.on_next(result)

        return self.source.subscribe(Observer(on_next, observer.on_error, observer.on_completed))


class SwitchObservable(Observable):
    """Subscribes to each inner observable in turn, disposing the previous one.

    Re-subscription happens under a re-entrant lock. A generation counter
    drops values from any inner subscription that a newer parent value has
    superseded, including one superseded while it was still subscribing.
    Completion of the outer or any inner stream is not forwarded.
    """

    def __init__(self, source: Observable) -> None:
        self.source = source

    def _subscribe(self, observer: Observer) -> Disposable:
        lock = threading.RLock()
        inner = SerialDisposable()
        generation = [0]

        def on_outer(inner_observable: Observable) -> None:
            with lock:
                generation[0] += 1
                current = generation[0]
                inner.disposable = None

                def on_inner(value: Any) -> None:
                    with lock:
                        if generation[0] == current:
                            observer.on_next(value)

                def on_inner_error(error: Exception) -> None:
                    with lock:
                        if generation[0] == current:
                            observer.on_error(error)

                subscription = inner_observable.subscribe(Observer(on_inner, on_inner_error, _noop))
                if generation[0] == current and not inner.is_disposed:
                    inner.disposable = subscription
                    return
            subscription.dispose()

        outer = self.source.subscribe(Observer(on_outer, observer.on_error, _noop))
        return CompositeDisposable(outer, inner)


class DistinctUntilChangedObservable(Observable):
    def __init__(self, source: Observable) -> None:
        self.source = source

    def _subscribe(self, observer: Observer) -> Disposable:
        lock = threading.RLock()
        last = [_MISSING]

        def on_next(value: Any) -> None:
            with lock:
                if last[0] is not _MISSING and _same(last[0], value):
                    return
                last[0] = value
                observer.on_next(value)

        return self.source.subscribe(Observer(on_next, observer.on_error, observer.on_completed))


class SkipObservable(Observable):
    def __init__(self, source: Observable, count: int) -> None:
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.source = source
        self.count = count

    def _subscribe(self, observer: Observer) -> Disposable:
        lock = threading.Lock()
        remaining = [self.count]

        def on_next(value: Any) -> None:
            with lock:
                if remaining[0] > 0:
                    remaining[0] -= 1
                    return
            observer.on_next(value)

        return self.source.subscribe(Observer(on_next, observer.on_error, observer.on_completed))


class ObserveOnObservable(Observable):
    """Delivers every notification through a scheduler.

    Notifications still queued when the subscription is disposed are
    dropped.
    """

    def __init__(self, source: Observable, scheduler: Scheduler) -> None:
        self.source = source
        self.scheduler = scheduler

    def _subscribe(self, observer: Observer) -> Disposable:
        disposed = threading.Event()

        def deliver(action: Callable[[], None]) -> None:
            def run() -> None:
                if not disposed.is_set():
                    action()

            self.scheduler.schedule(run)

        subscription = self.source.subscribe(
            Observer(
                lambda value: deliver(lambda: observer.on_next(value)),
                lambda error: deliver(lambda: observer.on_error(error)),
                lambda: deliver(observer.on_completed),
            )
        )
        return CompositeDisposable(ActionDisposable(disposed.set), subscription)


class CombineLatestObservable(Observable):
    """Aggregates the latest value of every source once each has produced one.

    Completes when every source has completed, or as soon as a source
    completes without ever producing a value.
    """

    def __init__(self, sources: list[Observable], selector: Callable[..., Any]) -> None:
        self.sources = sources
        self.selector = selector

    def _subscribe(self, observer: Observer) -> Disposable:
        lock = threading.RLock()
        count = len(self.sources)
        values: list[Any] = [_MISSING] * count
        completed = [False] * count

        def make_observer(index: int) -> Observer:
            def on_next(value: Any) -> None:
                with lock:
                    values[index] = value
                    if any(v is _MISSING for v in values):
                        return
                    try:
                        result = self.selector(*values)
                    except Exception as e:
                        observer.on_error(e)
                        return
                    observer.on_next(result)

            def on_error(error: Exception) -> None:
                with lock:
                    observer.on_error(error)

            def on_completed() -> None:
                with lock:
                    completed[index] = True
                    if all(completed) or values[index] is _MISSING:
                        observer.on_completed()

            return Observer(on_next, on_error, on_completed)

        composite = CompositeDisposable()
        for i, source in enumerate(self.sources):
            composite.add(source.subscribe(make_observer(i)))
        return composite


class MergeObservable(Observable):
    """Forwards values from every source in arrival order; completion is not forwarded."""

    def __init__(self, sources: list[Observable]) -> None:
        self.sources = sources

    def _subscribe(self, observer: Observer) -> Disposable:
        lock = threading.RLock()

        def on_next(value: Any) -> None:
            with lock:
                observer.on_next(value)

        def on_error(error: Exception) -> None:
            with lock:
                observer.on_error(error)

        composite = CompositeDisposable()
        for source in self.sources:
            composite.add(source.subscribe(Observer(on_next, on_error, _noop)))
        return composite


def _as_tuple(*values: Any) -> tuple:
    return values


def combine_latest(
    sources: Iterable[Observable],
    selector: Callable[..., Any] | None = None,
) -> Observable:
    """Combine sources; the default aggregate is a tuple of their values in order."""
    return CombineLatestObservable(list(sources), selector or _as_tuple)


def merge(sources: Iterable[Observable]) -> Observable:
    return MergeObservable(list(sources))
