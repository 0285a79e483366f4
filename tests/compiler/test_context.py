"""Tests for CompilationContext."""

import logging

from src.bindgen.compiler.context import (
    DUPLICATE_METHOD_NAME,
    NO_OBSERVABLE_PROPERTIES,
    CompilationContext,
)
from src.bindgen.ir import CallKind, SourceLocation
from src.bindgen.plan import ConstantReturnStage, PipelinePlan, SynthesizedMethod
from tests.binding_models import AGE, NAME, make_call_site


def _method(name, path, line):
    call_site = make_call_site(CallKind.WHEN_CHANGED, "Person", path, line=line)
    plan = PipelinePlan(stages=(ConstantReturnStage(segments=path.segments),))
    return SynthesizedMethod(name=name, call_site=call_site, plan=plan)


def test_add_method_first_wins(bindgen_logs):
    """Adding the same name twice keeps the first and records a diagnostic."""
    ctx = CompilationContext(kind=CallKind.WHEN_CHANGED)
    first = _method("__when_changed_A", NAME, 10)
    second = _method("__when_changed_A", AGE, 20)

    assert ctx.add_method(first) is True
    assert ctx.add_method(second) is False

    assert ctx.methods == {"__when_changed_A": first}
    assert [d.code for d in ctx.diagnostics] == [DUPLICATE_METHOD_NAME]
    assert any(r.levelno == logging.WARNING for r in bindgen_logs.records)


def test_add_diagnostic_deduplicates():
    """The same diagnostic is recorded once."""
    ctx = CompilationContext(kind=CallKind.WHEN_CHANGED)
    location = SourceLocation(file_path="a.py", line=1)

    ctx.add_diagnostic(NO_OBSERVABLE_PROPERTIES, "Type 'Plain' ...", location)
    ctx.add_diagnostic(NO_OBSERVABLE_PROPERTIES, "Type 'Plain' ...", location)

    assert len(ctx.diagnostics) == 1


def test_empty_context():
    """Fresh context has empty collections."""
    ctx = CompilationContext(kind=CallKind.BIND)

    assert ctx.methods == {}
    assert ctx.entry_points == []
    assert ctx.diagnostics == []


def test_to_unit_freezes_contents():
    """to_unit copies everything accumulated."""
    ctx = CompilationContext(kind=CallKind.WHEN_CHANGED)
    ctx.add_method(_method("__when_changed_A", NAME, 10))

    unit = ctx.to_unit()

    assert unit.kind == CallKind.WHEN_CHANGED
    assert list(unit.methods) == ["__when_changed_A"]
    assert unit.entry_points == ()
