"""Tests for PlanMaterializer: plans running against live objects."""

import pytest

from src.bindgen.compiler import BindingComposer
from src.bindgen.errors import BindgenError
from src.bindgen.ir import CallKind, ObservationMode
from src.bindgen.plan import BindingOrigin
from src.bindgen.runtime.changes import ObservedChange, ReactiveBinding, TaggedChange
from src.bindgen.runtime.disposables import CompositeDisposable
from src.bindgen.runtime.materializer import (
    PlanMaterializer,
    bind,
    materialize,
    path_setter,
    read_path,
)
from src.bindgen.runtime.observables import Subject
from src.bindgen.runtime.schedulers import ManualScheduler
from tests.binding_models import (
    ADDRESS_CITY,
    ADDRESS_ZIP,
    AGE,
    FEED_ALERTS,
    FEED_MESSAGES,
    NAME,
    PLAIN_VALUE,
    VIEW_TEXT,
    Address,
    Feed,
    Person,
    Plain,
    View,
    binding_site,
    make_call_site,
)


@pytest.fixture
def composer(synthesizer):
    return BindingComposer(synthesizer)


def _collect(observable):
    values = []
    subscription = observable.subscribe(values.append)
    return values, subscription


class TestDeepChains:
    """Deep property chains re-subscribe as parents change."""

    def test_follows_new_parent_and_drops_old(self, synthesizer):
        """X on subscribe, Y after replacing the parent, nothing from the old parent."""
        a1 = Address(city="X")
        person = Person(address=a1)
        values, _ = _collect(materialize(synthesizer.observe_path(ADDRESS_CITY, "Person"), person))

        a2 = Address(city="Y")
        person.address = a2
        a1.city = "Z"
        a2.city = "W"

        assert values == ["X", "Y", "W"]
        assert len(a1.property_changed) == 0

    def test_null_parent_yields_default(self, synthesizer):
        """A None parent yields the leaf type's default instead of failing."""
        person = Person(address=None)
        values, _ = _collect(materialize(synthesizer.observe_path(ADDRESS_ZIP, "Person"), person))

        person.address = Address(zip_code=12345)
        person.address = None

        assert values == [0, 12345, 0]

    def test_null_parent_reference_leaf_is_none(self, synthesizer):
        person = Person(address=None)
        values, _ = _collect(materialize(synthesizer.observe_path(ADDRESS_CITY, "Person"), person))
        assert values == [None]

    def test_same_leaf_value_from_new_parent_is_suppressed(self, synthesizer):
        """After-change chains filter a repeated leaf value."""
        person = Person(address=Address(city="X"))
        values, _ = _collect(materialize(synthesizer.observe_path(ADDRESS_CITY, "Person"), person))

        person.address = Address(city="X")

        assert values == ["X"]

    def test_before_change_chain_keeps_repeats(self, synthesizer):
        """Before-change chains emit the value about to change, without filtering."""
        person = Person(address=Address(city="X"))
        plan = synthesizer.observe_path(ADDRESS_CITY, "Person", ObservationMode.BEFORE_CHANGE)
        values, _ = _collect(materialize(plan, person))

        person.address.city = "Y"

        assert values == ["X", "X"]

    def test_dispose_tears_down_every_hop(self, synthesizer):
        address = Address(city="X")
        person = Person(address=address)
        _, subscription = _collect(materialize(synthesizer.observe_path(ADDRESS_CITY, "Person"), person))

        subscription.dispose()

        assert len(person.property_changed) == 0
        assert len(address.property_changed) == 0


class TestObservation:
    """Plain, combined and degraded observation."""

    def test_combine_default_tuple(self, synthesizer):
        """Name/Age combine into tuples once both have values."""
        person = Person(name="Ada", age=36)
        site = make_call_site(CallKind.WHEN_CHANGED, "Person", NAME, AGE, result_type="tuple")
        values, _ = _collect(materialize(synthesizer.synthesize(site), person))

        person.age = 37
        person.name = "Grace"

        assert values == [("Ada", 36), ("Ada", 37), ("Grace", 37)]

    def test_selector_argument(self, synthesizer):
        person = Person(name="ada")
        site = make_call_site(CallKind.WHEN_CHANGED, "Person", NAME, has_selector=True)
        values, _ = _collect(materialize(synthesizer.synthesize(site), person, {"selector": str.upper}))
        assert values == ["ADA"]

    def test_missing_argument_raises(self, synthesizer):
        site = make_call_site(CallKind.WHEN_CHANGED, "Person", NAME, has_selector=True)
        with pytest.raises(BindgenError, match="selector"):
            materialize(synthesizer.synthesize(site), Person())

    def test_degraded_reads_once_at_subscription(self, synthesizer):
        """A non-notifying owner yields its value at subscription time only."""
        plain = Plain(value=1)
        observable = materialize(synthesizer.observe_path(PLAIN_VALUE, "Plain"), plain)
        plain.value = 2

        values, _ = _collect(observable)
        plain.value = 3

        assert values == [2]

    def test_observed_change_wrapping(self, composer):
        person = Person(name="Ada")
        site = make_call_site(CallKind.WHEN_ANY, "Person", NAME, has_selector=True)
        values, _ = _collect(materialize(composer.compose_observed_change(site), person, {"selector": lambda c: c}))

        assert values == [ObservedChange(person, "name", "Ada")]

    def test_observed_change_names_dotted_path(self, composer):
        """Deep paths report the full dotted path with the root as sender."""
        person = Person(address=Address(city="Oslo"))
        site = make_call_site(CallKind.WHEN_ANY, "Person", ADDRESS_CITY, has_selector=True)
        values, _ = _collect(materialize(composer.compose_observed_change(site), person, {"selector": lambda c: c}))

        assert values == [ObservedChange(person, "address.city", "Oslo")]

    def test_observed_change_multi_path(self, composer):
        person = Person(name="Ada", age=36)
        site = make_call_site(CallKind.WHEN_ANY, "Person", NAME, AGE, has_selector=True)
        plan = composer.compose_observed_change(site)
        selector = lambda name, age: f"{name.property_name}={name.value},{age.property_name}={age.value}"  # noqa: E731

        values, _ = _collect(materialize(plan, person, {"selector": selector}))

        assert values == ["name=Ada,age=36"]

    def test_unknown_stage_raises(self):
        """Stages without a visit method are rejected."""
        with pytest.raises(BindgenError, match="Unsupported plan stage"):
            PlanMaterializer(Person()).visit(object(), None)


class TestObservableOfObservable:
    """Streams held in properties."""

    def _site(self, *paths, **flags):
        return make_call_site(
            CallKind.WHEN_ANY_OBSERVABLE,
            "Feed",
            *paths,
            result_type="str",
            inner_types=("str",) * len(paths),
            **flags,
        )

    def test_switches_to_latest_stream(self, composer):
        first, second = Subject(), Subject()
        feed = Feed(messages=first)
        values, _ = _collect(materialize(composer.compose_observable_of_observable(self._site(FEED_MESSAGES)), feed))

        first.on_next("a")
        feed.messages = second
        first.on_next("stale")
        second.on_next("b")

        assert values == ["a", "b"]

    def test_null_stream_is_empty(self, composer):
        feed = Feed(messages=None)
        values, _ = _collect(materialize(composer.compose_observable_of_observable(self._site(FEED_MESSAGES)), feed))

        stream = Subject()
        feed.messages = stream
        stream.on_next("hello")

        assert values == ["hello"]

    def test_merges_several_streams(self, composer):
        messages, alerts = Subject(), Subject()
        feed = Feed(messages=messages, alerts=alerts)
        plan = composer.compose_observable_of_observable(self._site(FEED_MESSAGES, FEED_ALERTS))
        values, _ = _collect(materialize(plan, feed))

        messages.on_next("m")
        alerts.on_next("a")

        assert values == ["m", "a"]

    def test_combines_with_selector(self, composer):
        messages, alerts = Subject(), Subject()
        feed = Feed(messages=messages, alerts=alerts)
        plan = composer.compose_observable_of_observable(
            self._site(FEED_MESSAGES, FEED_ALERTS, has_selector=True)
        )
        values, _ = _collect(materialize(plan, feed, {"selector": lambda m, a: m + a}))

        messages.on_next("m")
        alerts.on_next("a")

        assert values == ["ma"]


class TestBindings:
    """Binding plans wired between two objects."""

    def test_one_way(self, composer):
        person, view = Person(name="Ada"), View()
        binding = bind(composer.compose_one_way(binding_site(CallKind.ONE_WAY_BIND, NAME, VIEW_TEXT)), person, view)

        person.name = "Grace"

        assert isinstance(binding, ReactiveBinding)
        assert view.text == "Grace"
        binding.dispose()
        person.name = "Linus"
        assert view.text == "Grace"

    def test_one_way_converter_and_scheduler(self, composer):
        scheduler = ManualScheduler()
        person, view = Person(age=36), View()
        site = binding_site(CallKind.BIND_ONE_WAY, AGE, VIEW_TEXT, has_conversion=True, has_scheduler=True)
        bind(composer.compose_one_way(site), person, view, {"converter": str, "scheduler": scheduler})

        assert view.text == ""
        scheduler.drain()
        assert view.text == "36"

    def test_two_way_no_echo(self, composer):
        """Initial sync writes the target once and never writes back."""
        person, view = Person(name="Ada"), View(text="stale")
        source_writes = []
        person.property_changed.add(lambda s, n: source_writes.append(n))

        binding = bind(composer.compose_two_way(binding_site(CallKind.BIND_TWO_WAY, NAME, VIEW_TEXT)), person, view)

        assert isinstance(binding, CompositeDisposable)
        assert view.text == "Ada"
        assert source_writes == []

        view.text = "Grace"
        assert person.name == "Grace"
        person.name = "Linus"
        assert view.text == "Linus"

    def test_two_way_conversions(self, composer):
        person, view = Person(age=36), View()
        site = binding_site(CallKind.BIND_TWO_WAY, AGE, VIEW_TEXT, has_conversion=True)
        bind(
            composer.compose_two_way(site),
            person,
            view,
            {"source_to_target": str, "target_to_source": int},
        )

        view.text = "40"

        assert person.age == 40
        assert view.text == "40"

    def test_tagged_change_stream(self, composer):
        person, view = Person(name="Ada"), View()
        binding = bind(composer.compose_tagged(binding_site(CallKind.BIND, NAME, VIEW_TEXT)), person, view)
        changes, _ = _collect(binding.changed)

        view.text = "Grace"

        assert changes[0] == TaggedChange("Ada", BindingOrigin.SOURCE)
        assert TaggedChange("Grace", BindingOrigin.TARGET) in changes
        assert person.name == "Grace"


def test_read_path_and_setter():
    person = Person(address=Address(city="X"))
    assert read_path(person, ADDRESS_CITY.segments) == "X"

    path_setter(ADDRESS_CITY)(person, "Y")
    assert person.address.city == "Y"

    person.address = None
    path_setter(ADDRESS_CITY)(person, "Z")
    assert read_path(person, ADDRESS_CITY.segments) is None
