"""Tests for PlanVisitor base class and ParameterCollector."""

from src.bindgen.plan import (
    CombineLatestStage,
    DistinctFilterStage,
    MergeStage,
    ObserveOnStage,
    PipelinePlan,
    SelectStage,
    WatchStage,
)
from src.bindgen.visitors import ParameterCollector, PlanVisitor, collect_parameters
from tests.binding_models import AGE, NAME


class CountingVisitor(PlanVisitor[int]):
    """Test visitor that counts stages."""

    def visit_default(self, stage, upstream) -> int:
        return (upstream or 0) + 1

    def combine_latest(self, original, children: list[int]) -> int:
        return 1 + sum(children)

    def combine_merge(self, original, children: list[int]) -> int:
        return 1 + sum(children)


def _watch(path):
    return PipelinePlan(stages=(WatchStage(segment=path.root),))


def test_counts_linear_plan():
    """Stages are folded left to right."""
    plan = PipelinePlan(stages=(WatchStage(segment=NAME.root), DistinctFilterStage()))
    assert CountingVisitor().visit_plan(plan) == 2


def test_counts_nested_inputs():
    """Composite stages visit their nested plans."""
    plan = PipelinePlan(
        stages=(
            CombineLatestStage(inputs=(_watch(NAME), _watch(AGE))),
            SelectStage(parameter="selector"),
        )
    )
    assert CountingVisitor().visit_plan(plan) == 4


def test_merge_inputs():
    plan = PipelinePlan(stages=(MergeStage(inputs=(_watch(NAME), _watch(AGE), _watch(NAME))),))
    assert CountingVisitor().visit_plan(plan) == 4


class TestParameterCollector:
    """Runtime parameters named by plans."""

    def test_no_parameters(self):
        assert collect_parameters(_watch(NAME)) == ()

    def test_selector_aggregate(self):
        plan = PipelinePlan(
            stages=(CombineLatestStage(inputs=(_watch(NAME), _watch(AGE)), aggregate="selector"),)
        )
        assert collect_parameters(plan) == ("selector",)

    def test_signature_order(self):
        """Parameters come back in signature order regardless of stage order."""
        plan = _watch(NAME).then(ObserveOnStage(), SelectStage(parameter="converter"))
        assert collect_parameters(plan) == ("converter", "scheduler")

    def test_collector_is_reusable(self):
        collector = ParameterCollector()
        collector.collect(_watch(NAME).then(SelectStage(parameter="selector")))
        assert collector.collect(_watch(NAME)) == ()
