"""Runtime dispatch through a generated unit's entry points.

``GeneratedBindings`` stands in for the emitted public methods: given the
caller's captured argument texts or position, it walks an entry point's
cases in order and runs the first matching synthesized method.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from src.bindgen.errors import BindgenError, UnresolvedDispatchError
from src.bindgen.ir import CallKind
from src.bindgen.plan import BindingPlan, EntryPoint, GeneratedUnit, SynthesizedMethod
from src.bindgen.runtime.disposables import Disposable
from src.bindgen.runtime.materializer import bind, materialize
from src.bindgen.runtime.observables import Observable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerInfo:
    """What an entry point knows about its caller.

    ``expression_texts`` holds the captured argument expressions when the
    caller can supply them; otherwise ``None`` and only position is known.
    """

    file_path: str = ""
    line: int = 0
    expression_texts: tuple[str, ...] | None = None


class GeneratedBindings:
    """Runs the entry points of one generated unit.

    Example:
        bindings = GeneratedBindings(units[CallKind.WHEN_CHANGED])
        stream = bindings.observe(0, person, caller=CallerInfo("app/main.py", 10))
    """

    def __init__(self, unit: GeneratedUnit) -> None:
        self.unit = unit

    @property
    def kind(self) -> CallKind:
        return self.unit.kind

    @property
    def entry_points(self) -> tuple[EntryPoint, ...]:
        return self.unit.entry_points

    def entry_point(self, entry_point: EntryPoint | int) -> EntryPoint:
        if isinstance(entry_point, EntryPoint):
            return entry_point
        return self.unit.entry_points[entry_point]

    def resolve(self, entry_point: EntryPoint | int, caller: CallerInfo) -> SynthesizedMethod:
        """Return the method of the first case matching the caller.

        Raises:
            UnresolvedDispatchError: If no case matches
        """
        entry = self.entry_point(entry_point)
        for case in entry.cases:
            if case.rule.matches(caller.expression_texts, caller.file_path, caller.line):
                return self.unit.methods[case.method_name]
        logger.error(
            f"No {entry.name} dispatch case matched {caller.file_path}:{caller.line} "
            f"among {len(entry.cases)} case(s)"
        )
        raise UnresolvedDispatchError(entry.name, caller.file_path, caller.line)

    def invoke(
        self,
        entry_point: EntryPoint | int,
        *args: Any,
        caller: CallerInfo,
    ) -> Observable | Disposable:
        """Call an entry point.

        Observation kinds take ``(root, *extra)``; binding kinds take
        ``(source, target, *extra)``. Extra arguments are forwarded unchanged
        to the matched method, in the entry point's parameter order.

        Raises:
            TypeError: If the argument count does not fit the entry point
            UnresolvedDispatchError: If no case matches the caller
        """
        entry = self.entry_point(entry_point)
        fixed = 2 if entry.kind.is_binding else 1
        expected = fixed + len(entry.signature.extra_parameters)
        if len(args) != expected:
            raise TypeError(
                f"{entry.name} takes {expected} argument(s) "
                f"({', '.join(entry.signature.extra_parameters) or 'no extras'}), got {len(args)}"
            )
        method = self.resolve(entry, caller)
        arguments = dict(zip(method.parameters, args[fixed:]))
        if isinstance(method.plan, BindingPlan):
            return bind(method.plan, args[0], args[1], arguments)
        return materialize(method.plan, args[0], arguments)

    def observe(self, entry_point: EntryPoint | int, root: Any, *extra: Any, caller: CallerInfo) -> Observable:
        """Invoke an observation entry point."""
        if self.kind.is_binding:
            raise BindgenError(f"{self.kind.value} entry points bind; use bind()")
        return self.invoke(entry_point, root, *extra, caller=caller)

    def bind(
        self,
        entry_point: EntryPoint | int,
        source: Any,
        target: Any,
        *extra: Any,
        caller: CallerInfo,
    ) -> Disposable:
        """Invoke a binding entry point."""
        if not self.kind.is_binding:
            raise BindgenError(f"{self.kind.value} entry points observe; use observe()")
        return self.invoke(entry_point, source, target, *extra, caller=caller)
