"""Tests for disposable handles."""

import pytest

from src.bindgen.runtime.disposables import (
    EMPTY_DISPOSABLE,
    ActionDisposable,
    CompositeDisposable,
    SerialDisposable,
)


def test_action_disposable_runs_once():
    """The action runs on first disposal only."""
    calls = []
    disposable = ActionDisposable(lambda: calls.append(1))

    disposable.dispose()
    disposable.dispose()

    assert calls == [1]
    assert disposable.is_disposed


def test_context_manager_disposes():
    """Leaving the with block disposes."""
    calls = []
    with ActionDisposable(lambda: calls.append(1)):
        assert calls == []
    assert calls == [1]


def test_empty_disposable_is_noop():
    EMPTY_DISPOSABLE.dispose()
    assert EMPTY_DISPOSABLE.is_disposed


class TestCompositeDisposable:
    """Composite disposal."""

    def test_disposes_all_members(self):
        """Every member is disposed, once."""
        calls = []
        composite = CompositeDisposable(
            ActionDisposable(lambda: calls.append("a")),
            ActionDisposable(lambda: calls.append("b")),
        )

        composite.dispose()
        composite.dispose()

        assert calls == ["a", "b"]

    def test_add_after_dispose_disposes_immediately(self):
        """Late members do not leak."""
        calls = []
        composite = CompositeDisposable()
        composite.dispose()

        composite.add(ActionDisposable(lambda: calls.append("late")))

        assert calls == ["late"]

    def test_single_failure_reraised_after_all_members(self):
        """A failing member does not stop the others; its error is re-raised."""
        calls = []

        def boom():
            raise RuntimeError("boom")

        composite = CompositeDisposable(
            ActionDisposable(boom),
            ActionDisposable(lambda: calls.append("after")),
        )

        with pytest.raises(RuntimeError, match="boom"):
            composite.dispose()
        assert calls == ["after"]

    def test_several_failures_raise_group(self):
        """Several failures are raised together."""

        def fail(message):
            def action():
                raise ValueError(message)

            return ActionDisposable(action)

        composite = CompositeDisposable(fail("one"), fail("two"))

        with pytest.raises(ExceptionGroup) as info:
            composite.dispose()
        assert [str(e) for e in info.value.exceptions] == ["one", "two"]

    def test_remove_disposes_member(self):
        calls = []
        member = ActionDisposable(lambda: calls.append("m"))
        composite = CompositeDisposable(member)

        assert composite.remove(member) is True
        assert calls == ["m"]
        assert len(composite) == 0
        assert composite.remove(member) is False


class TestSerialDisposable:
    """Replaceable single member."""

    def test_replacing_disposes_previous(self):
        calls = []
        serial = SerialDisposable()
        serial.disposable = ActionDisposable(lambda: calls.append("first"))
        serial.disposable = ActionDisposable(lambda: calls.append("second"))

        assert calls == ["first"]
        serial.dispose()
        assert calls == ["first", "second"]

    def test_assign_after_dispose_disposes_value(self):
        calls = []
        serial = SerialDisposable()
        serial.dispose()

        serial.disposable = ActionDisposable(lambda: calls.append("late"))

        assert calls == ["late"]
        assert serial.disposable is None
