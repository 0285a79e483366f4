"""Change records and binding handles produced by the runtime."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, NamedTuple, TypeVar

from src.bindgen.plan import BindingOrigin
from src.bindgen.runtime.disposables import Disposable

if TYPE_CHECKING:
    from src.bindgen.runtime.observables import Observable

S = TypeVar("S")
V = TypeVar("V")


@dataclass(frozen=True)
class ObservedChange(Generic[S, V]):
    """A value together with the object and property path it was read from.

    ``property_name`` is the dotted path the value was read through, e.g.
    ``address.city``, rather than left empty.
    """

    sender: S
    property_name: str | None
    value: V


class TaggedChange(NamedTuple):
    """A value flowing through a tagged binding and the side it came from."""

    value: Any
    origin: BindingOrigin


class BindingDirection(str, Enum):
    ONE_WAY = "one_way"
    TWO_WAY = "two_way"


class ReactiveBinding(Disposable):
    """Live binding: its change stream plus the subscription keeping it alive.

    ``changed`` is cold; subscribing to it observes the binding's values
    without affecting the binding itself.
    """

    def __init__(
        self,
        target: Any,
        changed: Observable,
        direction: BindingDirection,
        subscription: Disposable,
    ) -> None:
        self.target = target
        self.changed = changed
        self.direction = direction
        self._subscription = subscription

    @property
    def is_disposed(self) -> bool:
        return self._subscription.is_disposed

    def dispose(self) -> None:
        self._subscription.dispose()
