"""Binding composition.

Turns call sites into plans for every call kind. Observation kinds delegate
to the pipeline synthesizer; binding kinds build a source and (for two-way
kinds) a target pipeline and describe how values flow between them.
"""

from __future__ import annotations

from src.bindgen.compiler.pipeline_synthesizer import PipelineSynthesizer
from src.bindgen.ir import CallSite, ObservationMode
from src.bindgen.plan import (
    BindingMode,
    BindingOrigin,
    BindingPlan,
    MergeStage,
    ObserveOnStage,
    PipelinePlan,
    SelectStage,
    SkipStage,
    Stage,
    SwitchLatestInnerStage,
    TagStage,
    WrapObservedChangeStage,
)


class BindingComposer:
    """Composes observation and binding plans for call sites.

    Usage:
        composer = BindingComposer(PipelineSynthesizer(capabilities, ctx))
        plan = composer.compose_two_way(call_site)
    """

    def __init__(self, synthesizer: PipelineSynthesizer) -> None:
        self.synthesizer = synthesizer

    # =========================================================================
    # Observation kinds
    # =========================================================================

    def compose_observation(self, call_site: CallSite) -> PipelinePlan:
        """Plain value observation (``when_changed``/``when_changing``/``when_any_value``)."""
        return self.synthesizer.synthesize(call_site)

    def compose_observed_change(self, call_site: CallSite) -> PipelinePlan:
        """Observation whose values reach the selector as ``ObservedChange`` records.

        Each path's value is wrapped with the path it came from. With several
        paths each input is wrapped inside the combine-latest, so the
        selector receives one record per path.
        """
        mode = call_site.observation_mode
        plans = [
            self.synthesizer.observe_path(
                path, call_site.owner_type, mode, call_site.location
            ).then(WrapObservedChangeStage(property_name=path.dotted))
            for path in call_site.property_paths
        ]
        if len(plans) == 1:
            return plans[0].then(SelectStage(parameter="selector"))
        return self.synthesizer.combine(plans, use_selector=True)

    def compose_observable_of_observable(self, call_site: CallSite) -> PipelinePlan:
        """Observe properties that hold streams and flatten them.

        Each single-segment path is watched; a ``None`` value becomes an empty
        stream and the latest inner stream is followed. One path yields the
        switched stream; several paths are merged, or combined with the
        selector when one is given.
        """
        plans = [
            self.synthesizer.observe_path(
                path, call_site.owner_type, ObservationMode.AFTER_CHANGE, call_site.location
            ).then(SwitchLatestInnerStage())
            for path in call_site.property_paths
        ]
        if len(plans) == 1:
            return plans[0]
        if call_site.flags.has_selector:
            return self.synthesizer.combine(plans, use_selector=True)
        return PipelinePlan(stages=(MergeStage(inputs=tuple(plans)),))

    # =========================================================================
    # Binding kinds
    # =========================================================================

    def compose_one_way(self, call_site: CallSite) -> BindingPlan:
        """Source value flows into the target property.

        Stages: source pipeline, optional ``Select(converter)``, optional
        ``ObserveOn(scheduler)``. The materialized binding exposes the final
        stream as ``ReactiveBinding.changed``.
        """
        forward: list[Stage] = []
        if call_site.flags.has_conversion:
            forward.append(SelectStage(parameter="converter"))
        if call_site.flags.has_scheduler:
            forward.append(ObserveOnStage())
        return BindingPlan(
            mode=BindingMode.ONE_WAY,
            source=self._source_plan(call_site),
            forward=tuple(forward),
            target_path=call_site.target_path,
        )

    def compose_two_way(self, call_site: CallSite) -> BindingPlan:
        """Source and target pipelines write into each other.

        The backward direction always skips the target's first emission, its
        initial value, which would otherwise echo the value just written by
        the forward direction back into the source.
        """
        return self._two_way(call_site, BindingMode.TWO_WAY)

    def compose_tagged(self, call_site: CallSite) -> BindingPlan:
        """Two-way binding whose change stream says which side each value came from."""
        return self._two_way(call_site, BindingMode.TAGGED).model_copy(
            update={
                "source_tag": TagStage(origin=BindingOrigin.SOURCE),
                "target_tag": TagStage(origin=BindingOrigin.TARGET),
            }
        )

    def _two_way(self, call_site: CallSite, mode: BindingMode) -> BindingPlan:
        forward: list[Stage] = []
        backward: list[Stage] = [SkipStage(count=1)]
        if call_site.flags.has_conversion:
            forward.append(SelectStage(parameter="source_to_target"))
            backward.append(SelectStage(parameter="target_to_source"))
        if call_site.flags.has_scheduler:
            forward.append(ObserveOnStage())
            backward.append(ObserveOnStage())
        return BindingPlan(
            mode=mode,
            source=self._source_plan(call_site),
            forward=tuple(forward),
            target_path=call_site.target_path,
            target=self._target_plan(call_site),
            backward=tuple(backward),
            source_path=call_site.source_path,
        )

    def _source_plan(self, call_site: CallSite) -> PipelinePlan:
        return self.synthesizer.observe_path(
            call_site.source_path, call_site.owner_type, location=call_site.location
        )

    def _target_plan(self, call_site: CallSite) -> PipelinePlan:
        return self.synthesizer.observe_path(
            call_site.target_path, call_site.target_type or "", location=call_site.location
        )
