"""Tests for PipelineSynthesizer plan shapes."""

from src.bindgen.compiler.context import NO_BEFORE_CHANGE_SUPPORT, NO_OBSERVABLE_PROPERTIES
from src.bindgen.ir import CallKind, ObservationMode, PropertyPath
from src.bindgen.plan import (
    ChainSwitchStage,
    CombineLatestStage,
    ConstantReturnStage,
    DistinctFilterStage,
    SelectStage,
    WatchStage,
)
from tests.binding_models import (
    ADDRESS_CITY,
    AGE,
    COUNTER_COUNT,
    NAME,
    PLAIN_ADDRESS_CITY,
    PLAIN_VALUE,
    make_call_site,
)


class TestObservePath:
    """Single-path plans."""

    def test_single_segment_watch(self, synthesizer):
        """A notifying owner gets a duplicate-suppressing watch."""
        plan = synthesizer.observe_path(NAME, "Person")

        assert len(plan.stages) == 1
        stage = plan.stages[0]
        assert isinstance(stage, WatchStage)
        assert stage.segment.property_name == "name"
        assert stage.mode == ObservationMode.AFTER_CHANGE
        assert stage.suppress_duplicates is True
        assert not plan.degraded

    def test_single_segment_before_change_keeps_duplicates(self, synthesizer):
        """Before-change watches do not suppress duplicates."""
        plan = synthesizer.observe_path(NAME, "Person", ObservationMode.BEFORE_CHANGE)
        assert plan.stages[0].mode == ObservationMode.BEFORE_CHANGE
        assert plan.stages[0].suppress_duplicates is False

    def test_single_segment_without_capability(self, synthesizer, ctx):
        """A non-notifying owner is read once and reported."""
        plan = synthesizer.observe_path(PLAIN_VALUE, "Plain")

        assert isinstance(plan.stages[0], ConstantReturnStage)
        assert plan.degraded
        assert [d.code for d in ctx.diagnostics] == [NO_OBSERVABLE_PROPERTIES]
        assert "Plain" in ctx.diagnostics[0].message

    def test_deep_chain_after_change(self, synthesizer):
        """Deep paths watch the root, switch per hop, then filter duplicates."""
        plan = synthesizer.observe_path(ADDRESS_CITY, "Person")

        watch, chain, distinct = plan.stages
        assert isinstance(watch, WatchStage)
        assert watch.segment.property_name == "address"
        assert watch.suppress_duplicates is False
        assert isinstance(chain, ChainSwitchStage)
        assert [h.segment.property_name for h in chain.hops] == ["city"]
        assert all(h.observable for h in chain.hops)
        assert isinstance(distinct, DistinctFilterStage)

    def test_deep_chain_before_change_has_no_filter(self, synthesizer):
        """Before-change chains end with the switch."""
        plan = synthesizer.observe_path(ADDRESS_CITY, "Person", ObservationMode.BEFORE_CHANGE)
        assert [type(s) for s in plan.stages] == [WatchStage, ChainSwitchStage]

    def test_deep_chain_with_plain_root(self, synthesizer, ctx):
        """A non-notifying root is read once but notifying hops are still watched."""
        plan = synthesizer.observe_path(PLAIN_ADDRESS_CITY, "Plain")

        assert isinstance(plan.stages[0], ConstantReturnStage)
        assert plan.stages[1].hops[0].observable is True
        assert len(ctx.diagnostics) == 1

    def test_deep_chain_hop_without_capability(self, synthesizer, ctx):
        """A hop whose declaring type is not notifying is read per parent."""
        path = PropertyPath.build("Person", ("address", "Plain | None"), ("value", "int"))
        plan = synthesizer.observe_path(path, "Person")

        assert plan.stages[1].hops[0].observable is False
        assert plan.degraded
        assert [d.code for d in ctx.diagnostics] == [NO_OBSERVABLE_PROPERTIES]

    def test_missing_before_change_support(self, synthesizer, ctx):
        """An after-change-only type observed before change reports BIND004."""
        plan = synthesizer.observe_path(COUNTER_COUNT, "Counter", ObservationMode.BEFORE_CHANGE)

        assert isinstance(plan.stages[0], ConstantReturnStage)
        assert [d.code for d in ctx.diagnostics] == [NO_BEFORE_CHANGE_SUPPORT]


class TestSynthesize:
    """Whole call-site plans."""

    def test_selector_on_single_path(self, synthesizer):
        """A selector is applied after the path's pipeline."""
        site = make_call_site(CallKind.WHEN_CHANGED, "Person", NAME, has_selector=True)
        plan = synthesizer.synthesize(site)

        assert isinstance(plan.stages[-1], SelectStage)
        assert plan.stages[-1].parameter == "selector"

    def test_multi_path_default_tuple(self, synthesizer):
        """Several paths combine into a tuple aggregate."""
        site = make_call_site(CallKind.WHEN_CHANGED, "Person", NAME, AGE, result_type="tuple")
        plan = synthesizer.synthesize(site)

        (stage,) = plan.stages
        assert isinstance(stage, CombineLatestStage)
        assert stage.aggregate == "tuple"
        assert [p.stages[0].segment.property_name for p in stage.inputs] == ["name", "age"]

    def test_multi_path_selector(self, synthesizer):
        """A selector becomes the combine-latest aggregate."""
        site = make_call_site(
            CallKind.WHEN_ANY_VALUE, "Person", NAME, AGE, result_type="str", has_selector=True
        )
        plan = synthesizer.synthesize(site)
        assert plan.stages[0].aggregate == "selector"

    def test_when_changing_uses_before_change(self, synthesizer):
        """when_changing call sites observe before-change notifications."""
        site = make_call_site(CallKind.WHEN_CHANGING, "Person", NAME)
        plan = synthesizer.synthesize(site)
        assert plan.stages[0].mode == ObservationMode.BEFORE_CHANGE

    def test_plan_round_trips_through_json(self, synthesizer):
        """Plans are plain data and survive JSON serialization."""
        site = make_call_site(CallKind.WHEN_CHANGED, "Person", ADDRESS_CITY, AGE, result_type="tuple")
        plan = synthesizer.synthesize(site)

        restored = type(plan).model_validate_json(plan.model_dump_json())

        assert restored == plan
