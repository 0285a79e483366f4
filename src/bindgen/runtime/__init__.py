"""Plan runtime: observables, disposables and dispatch for generated units."""

from .changes import BindingDirection, ObservedChange, ReactiveBinding, TaggedChange
from .dispatcher import CallerInfo, GeneratedBindings
from .disposables import (
    EMPTY_DISPOSABLE,
    ActionDisposable,
    CompositeDisposable,
    Disposable,
    SerialDisposable,
)
from .materializer import PlanMaterializer, bind, materialize
from .notify import (
    ChangedOnlyObject,
    NotifyPropertyChanged,
    NotifyPropertyChanging,
    PropertyChangeEvent,
    ReactiveObject,
)
from .observables import (
    EmptyObservable,
    Observable,
    Observer,
    PropertyChangingObservable,
    PropertyObservable,
    ReturnObservable,
    Subject,
    combine_latest,
    merge,
)
from .schedulers import IMMEDIATE, ImmediateScheduler, ManualScheduler, Scheduler

__all__ = [
    "ActionDisposable",
    "BindingDirection",
    "CallerInfo",
    "ChangedOnlyObject",
    "CompositeDisposable",
    "Disposable",
    "EMPTY_DISPOSABLE",
    "EmptyObservable",
    "GeneratedBindings",
    "IMMEDIATE",
    "ImmediateScheduler",
    "ManualScheduler",
    "NotifyPropertyChanged",
    "NotifyPropertyChanging",
    "Observable",
    "ObservedChange",
    "Observer",
    "PlanMaterializer",
    "PropertyChangeEvent",
    "PropertyChangingObservable",
    "PropertyObservable",
    "ReactiveBinding",
    "ReactiveObject",
    "ReturnObservable",
    "Scheduler",
    "SerialDisposable",
    "Subject",
    "TaggedChange",
    "bind",
    "combine_latest",
    "materialize",
    "merge",
]
