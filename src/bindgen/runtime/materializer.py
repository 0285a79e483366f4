"""PlanMaterializer visitor: turns synthesized plans into live observables.

The materializer plays the role of generated code. Every property access it
performs goes through an ``attrgetter`` built from the plan's segment
names; nothing is looked up by reflection on the observed objects.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from operator import attrgetter
from typing import TYPE_CHECKING, Any

from src.bindgen.errors import BindgenError
from src.bindgen.ir import ObservationMode, PropertyPath, PropertyPathSegment
from src.bindgen.plan import BindingMode, BindingPlan, PipelinePlan
from src.bindgen.registries.defaults import default_value_for
from src.bindgen.runtime.changes import (
    BindingDirection,
    ObservedChange,
    ReactiveBinding,
    TaggedChange,
)
from src.bindgen.runtime.disposables import CompositeDisposable, Disposable
from src.bindgen.runtime.observables import (
    DeferObservable,
    EmptyObservable,
    Observable,
    PropertyChangingObservable,
    PropertyObservable,
    ReturnObservable,
    combine_latest,
    merge,
)
from src.bindgen.visitors.base import PlanVisitor

if TYPE_CHECKING:
    from src.bindgen.plan import (
        ChainHop,
        ChainSwitchStage,
        CombineLatestStage,
        ConstantReturnStage,
        DistinctFilterStage,
        MergeStage,
        ObserveOnStage,
        SelectStage,
        SkipStage,
        Stage,
        SwitchLatestInnerStage,
        TagStage,
        WatchStage,
        WrapObservedChangeStage,
    )

logger = logging.getLogger(__name__)


def watch(
    source: Any,
    segment: PropertyPathSegment,
    mode: ObservationMode,
    distinct: bool = False,
) -> Observable:
    """Observable of one property on ``source`` for the given notification mode."""
    getter = attrgetter(segment.property_name)
    match mode:
        case ObservationMode.AFTER_CHANGE:
            return PropertyObservable(source, segment.property_name, getter, distinct)
        case ObservationMode.BEFORE_CHANGE:
            return PropertyChangingObservable(source, segment.property_name, getter, distinct)
    raise BindgenError(f"Unknown observation mode: {mode}")


def read_path(root: Any, segments: tuple[PropertyPathSegment, ...]) -> Any:
    """Read a path null-safely; a ``None`` parent yields the leaf type's default."""
    value = root
    for segment in segments:
        if value is None:
            return default_value_for(segments[-1].property_type)
        value = getattr(value, segment.property_name)
    return value


def path_setter(path: PropertyPath) -> Callable[[Any, Any], None]:
    """Return a function assigning a value to ``path`` on a root object.

    The write is skipped when an intermediate parent is ``None``.
    """
    parents = path.segments[:-1]
    leaf = path.leaf.property_name
    parent_getter = attrgetter(".".join(s.property_name for s in parents)) if parents else None

    def set_value(root: Any, value: Any) -> None:
        parent = parent_getter(root) if parent_getter else root
        if parent is None:
            logger.debug(f"Skipped write to {path.dotted}: parent is None")
            return
        setattr(parent, leaf, value)

    return set_value


class PlanMaterializer(PlanVisitor[Observable]):
    """Visitor that builds an observable for a plan against one root object.

    Usage:
        materializer = PlanMaterializer(view_model, {"selector": str.upper})
        stream = materializer.visit_plan(plan)
        subscription = stream.subscribe(print)
    """

    def __init__(self, root: Any, arguments: Mapping[str, Any] | None = None) -> None:
        self.root = root
        self.arguments = dict(arguments or {})

    def argument(self, name: str) -> Any:
        if name not in self.arguments:
            raise BindgenError(f"Plan requires runtime argument '{name}'")
        return self.arguments[name]

    def visit_default(self, stage: Stage, upstream: Observable | None) -> Observable:
        raise BindgenError(f"Unsupported plan stage: {type(stage).__name__}")

    # Source stages

    def visit_WatchStage(self, stage: WatchStage, upstream: Observable | None) -> Observable:
        return watch(self.root, stage.segment, stage.mode, stage.suppress_duplicates)

    def visit_ConstantReturnStage(
        self, stage: ConstantReturnStage, upstream: Observable | None
    ) -> Observable:
        root = self.root
        return DeferObservable(lambda: ReturnObservable(read_path(root, stage.segments)))

    def combine_latest(self, original: CombineLatestStage, children: list[Observable]) -> Observable:
        selector = self.argument("selector") if original.aggregate == "selector" else None
        return combine_latest(children, selector)

    def combine_merge(self, original: MergeStage, children: list[Observable]) -> Observable:
        return merge(children)

    # Operator stages

    def visit_ChainSwitchStage(self, stage: ChainSwitchStage, upstream: Observable) -> Observable:
        current = upstream
        for hop in stage.hops:
            current = current.select(_hop_factory(hop, stage.mode)).switch()
        return current

    def visit_SelectStage(self, stage: SelectStage, upstream: Observable) -> Observable:
        return upstream.select(self.argument(stage.parameter))

    def visit_WrapObservedChangeStage(
        self, stage: WrapObservedChangeStage, upstream: Observable
    ) -> Observable:
        root = self.root
        return upstream.select(lambda value: ObservedChange(root, stage.property_name, value))

    def visit_SwitchLatestInnerStage(
        self, stage: SwitchLatestInnerStage, upstream: Observable
    ) -> Observable:
        return upstream.select(lambda inner: EmptyObservable() if inner is None else inner).switch()

    def visit_DistinctFilterStage(self, stage: DistinctFilterStage, upstream: Observable) -> Observable:
        return upstream.distinct_until_changed()

    def visit_SkipStage(self, stage: SkipStage, upstream: Observable) -> Observable:
        return upstream.skip(stage.count)

    def visit_TagStage(self, stage: TagStage, upstream: Observable) -> Observable:
        return upstream.select(lambda value: TaggedChange(value, stage.origin))

    def visit_ObserveOnStage(self, stage: ObserveOnStage, upstream: Observable) -> Observable:
        scheduler = self.argument(stage.parameter)
        if scheduler is None:
            return upstream
        return upstream.observe_on(scheduler)


def _hop_factory(hop: ChainHop, mode: ObservationMode) -> Callable[[Any], Observable]:
    segment = hop.segment
    getter = attrgetter(segment.property_name)
    absent = default_value_for(segment.property_type)

    def hop_stream(parent: Any) -> Observable:
        if parent is None:
            return ReturnObservable(absent)
        if hop.observable:
            return watch(parent, segment, mode)
        return ReturnObservable(getter(parent))

    return hop_stream


def materialize(plan: PipelinePlan, root: Any, arguments: Mapping[str, Any] | None = None) -> Observable:
    """Build the observable for a pipeline plan."""
    return PlanMaterializer(root, arguments).visit_plan(plan)


def bind(
    plan: BindingPlan,
    source: Any,
    target: Any,
    arguments: Mapping[str, Any] | None = None,
) -> Disposable:
    """Wire a binding plan between a source and a target object.

    One-way and tagged plans return a ``ReactiveBinding``; two-way plans
    return a ``CompositeDisposable`` of both directions. The forward
    direction is subscribed first, so the target's initial emission, which
    the backward direction skips, already reflects the source value.

    Args:
        plan: Plan produced by the binding composer
        source: Object the source path is read from
        target: Object the target path is written to
        arguments: Runtime parameters the plan names

    Returns:
        Disposable that tears down every subscription of the binding
    """
    source_side = PlanMaterializer(source, arguments)
    forward = source_side.visit_stages(plan.forward, source_side.visit_plan(plan.source))
    set_target = path_setter(plan.target_path)

    if plan.mode == BindingMode.ONE_WAY:
        subscription = forward.subscribe(lambda value: set_target(target, value))
        return ReactiveBinding(target, forward, BindingDirection.ONE_WAY, subscription)

    if plan.target is None or plan.source_path is None:
        raise BindgenError(f"{plan.mode.value} binding plan has no target pipeline")
    target_side = PlanMaterializer(target, arguments)
    backward = target_side.visit_stages(plan.backward, target_side.visit_plan(plan.target))
    set_source = path_setter(plan.source_path)

    forward_subscription = forward.subscribe(lambda value: set_target(target, value))
    backward_subscription = backward.subscribe(lambda value: set_source(source, value))
    subscription = CompositeDisposable(forward_subscription, backward_subscription)

    if plan.tag_and_merge:
        changed = merge(
            [
                source_side.visit(plan.source_tag, forward),
                target_side.visit(plan.target_tag, backward),
            ]
        )
        return ReactiveBinding(target, changed, BindingDirection.TWO_WAY, subscription)
    return subscription
