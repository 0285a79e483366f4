"""ParameterCollector visitor for deriving a plan's runtime parameters.

Selectors, converters and schedulers are not part of a plan; the plan names
them and the caller supplies them when the generated entry point runs. This
visitor finds every name a plan refers to, in the order the entry point
accepts them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.bindgen.plan import BindingPlan, PipelinePlan
from src.bindgen.visitors.base import PlanVisitor

if TYPE_CHECKING:
    from src.bindgen.plan import CombineLatestStage, MergeStage, ObserveOnStage, SelectStage, Stage

# Order extra parameters appear in generated signatures
PARAMETER_ORDER = (
    "selector",
    "converter",
    "source_to_target",
    "target_to_source",
    "scheduler",
)


class ParameterCollector(PlanVisitor[None]):
    """Visitor that collects runtime parameter names from plans.

    Usage:
        collector = ParameterCollector()
        collector.collect(plan)  # ("selector",)
    """

    def __init__(self) -> None:
        self.names: set[str] = set()

    def collect(self, plan: PipelinePlan | BindingPlan) -> tuple[str, ...]:
        """Return the parameters a plan needs, in signature order."""
        self.names = set()
        if isinstance(plan, BindingPlan):
            self.visit_plan(plan.source)
            self.visit_stages(plan.forward, None)
            if plan.target is not None:
                self.visit_plan(plan.target)
            self.visit_stages(plan.backward, None)
        else:
            self.visit_plan(plan)
        return _ordered(self.names)

    def visit_default(self, stage: Stage, upstream: None) -> None:
        return None

    def visit_SelectStage(self, stage: SelectStage, upstream: None) -> None:
        self.names.add(stage.parameter)

    def visit_ObserveOnStage(self, stage: ObserveOnStage, upstream: None) -> None:
        self.names.add(stage.parameter)

    def combine_latest(self, original: CombineLatestStage, children: list[None]) -> None:
        if original.aggregate == "selector":
            self.names.add("selector")

    def combine_merge(self, original: MergeStage, children: list[None]) -> None:
        return None


def _ordered(names: set[str]) -> tuple[str, ...]:
    known = [n for n in PARAMETER_ORDER if n in names]
    extra = sorted(n for n in names if n not in PARAMETER_ORDER)
    return tuple(known + extra)


def collect_parameters(plan: PipelinePlan | BindingPlan) -> tuple[str, ...]:
    """Convenience wrapper around ``ParameterCollector().collect``."""
    return ParameterCollector().collect(plan)
