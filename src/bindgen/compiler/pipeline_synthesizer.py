"""Pipeline synthesis for observation call sites.

Builds one plan per property path and composes them:

- a single segment on a notifying type is watched directly;
- a deep path watches its root and switches to a fresh subscription on each
  hop whenever the parent value changes, substituting the hop type's default
  value when the parent is ``None``;
- a type that raises no notifications is read once instead of watched, and
  the degradation is reported as a diagnostic;
- several paths are combined into one stream with combine-latest.
"""

from __future__ import annotations

import logging

from src.bindgen.compiler.context import (
    NO_BEFORE_CHANGE_SUPPORT,
    NO_OBSERVABLE_PROPERTIES,
    CompilationContext,
)
from src.bindgen.ir import (
    CallKind,
    CallSite,
    CapabilityTable,
    ObservationMode,
    PropertyPath,
    SourceLocation,
)
from src.bindgen.plan import (
    ChainHop,
    ChainSwitchStage,
    CombineLatestStage,
    ConstantReturnStage,
    DistinctFilterStage,
    PipelinePlan,
    SelectStage,
    WatchStage,
)

logger = logging.getLogger(__name__)


class PipelineSynthesizer:
    """Synthesizes observation pipelines from typed property paths.

    Usage:
        synthesizer = PipelineSynthesizer(capabilities, ctx)
        plan = synthesizer.synthesize(call_site)
    """

    def __init__(
        self,
        capabilities: CapabilityTable,
        ctx: CompilationContext | None = None,
    ) -> None:
        self.capabilities = capabilities
        self.ctx = ctx or CompilationContext(kind=CallKind.WHEN_CHANGED)

    def synthesize(self, call_site: CallSite) -> PipelinePlan:
        """Build the full pipeline for an observation call site.

        Args:
            call_site: A ``when_changed``, ``when_changing`` or
                ``when_any_value`` call site

        Returns:
            Plan producing the observed value, the selector's result, or a
            tuple of every path's value
        """
        mode = call_site.observation_mode
        plans = [
            self.observe_path(path, call_site.owner_type, mode, call_site.location)
            for path in call_site.property_paths
        ]
        if len(plans) == 1:
            plan = plans[0]
            if call_site.flags.has_selector:
                plan = plan.then(SelectStage(parameter="selector"))
            return plan
        return self.combine(plans, use_selector=call_site.flags.has_selector)

    def observe_path(
        self,
        path: PropertyPath,
        owner_type: str,
        mode: ObservationMode = ObservationMode.AFTER_CHANGE,
        location: SourceLocation | None = None,
    ) -> PipelinePlan:
        """Build the pipeline that observes one property path.

        Args:
            path: Root-first property path
            owner_type: Type the path is evaluated on
            mode: Before-change or after-change notifications
            location: Call site location, used for diagnostics

        Returns:
            Plan whose output is the path's leaf value
        """
        root = path.root
        observable_root = self._can_watch(owner_type, mode, location)

        if len(path) == 1:
            if not observable_root:
                return PipelinePlan(stages=(ConstantReturnStage(segments=path.segments),))
            return PipelinePlan(
                stages=(
                    WatchStage(
                        segment=root,
                        mode=mode,
                        suppress_duplicates=mode == ObservationMode.AFTER_CHANGE,
                    ),
                )
            )

        if observable_root:
            source = WatchStage(segment=root, mode=mode)
        else:
            source = ConstantReturnStage(segments=(root,))

        hops = tuple(
            ChainHop(
                segment=segment,
                observable=self._can_watch(segment.declaring_type, mode, location),
            )
            for segment in path.segments[1:]
        )
        stages = [source, ChainSwitchStage(hops=hops, mode=mode)]
        # Before-change chains carry no distinct filter.
        if mode == ObservationMode.AFTER_CHANGE:
            stages.append(DistinctFilterStage())
        logger.debug(
            f"Synthesized {len(path)}-segment chain {path.dotted} on {owner_type} ({mode.value})"
        )
        return PipelinePlan(stages=tuple(stages))

    def combine(self, plans: list[PipelinePlan], use_selector: bool = False) -> PipelinePlan:
        """Combine per-path plans into a single combine-latest plan."""
        return PipelinePlan(
            stages=(
                CombineLatestStage(
                    inputs=tuple(plans),
                    aggregate="selector" if use_selector else "tuple",
                ),
            )
        )

    def _can_watch(
        self,
        type_name: str,
        mode: ObservationMode,
        location: SourceLocation | None,
    ) -> bool:
        """Check a type's capability and report a degraded observation."""
        if self.capabilities.supports(type_name, mode):
            return True
        if mode == ObservationMode.BEFORE_CHANGE and self.capabilities.supports(
            type_name, ObservationMode.AFTER_CHANGE
        ):
            self.ctx.add_diagnostic(
                NO_BEFORE_CHANGE_SUPPORT,
                f"Type '{type_name}' does not raise before-change notifications; "
                "the value is read once instead of observed",
                location,
            )
        else:
            self.ctx.add_diagnostic(
                NO_OBSERVABLE_PROPERTIES,
                f"Type '{type_name}' raises no {mode.value.replace('_', '-')} notifications; "
                "the value is read once instead of observed",
                location,
            )
        return False

