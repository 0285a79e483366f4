"""Call kind registry.

Maps each call kind to the method-name prefix of its generated code and the
composer operation that synthesizes one call site's plan.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.bindgen.errors import BindgenError
from src.bindgen.ir import CallKind, CallSite
from src.bindgen.plan import BindingPlan, PipelinePlan

if TYPE_CHECKING:
    from src.bindgen.compiler.binding_composer import BindingComposer

# Type alias for plan builder functions
PlanBuilder = Callable[["BindingComposer", CallSite], PipelinePlan | BindingPlan]


@dataclass(frozen=True)
class CallKindSpec:
    """How one call kind is compiled."""

    kind: CallKind
    method_prefix: str
    build: PlanBuilder


# Registry mapping call kinds to their prefix and plan builder
CALL_KIND_SPECS: dict[CallKind, CallKindSpec] = {
    CallKind.WHEN_CHANGED: CallKindSpec(
        CallKind.WHEN_CHANGED, "when_changed", lambda c, cs: c.compose_observation(cs)
    ),
    CallKind.WHEN_CHANGING: CallKindSpec(
        CallKind.WHEN_CHANGING, "when_changing", lambda c, cs: c.compose_observation(cs)
    ),
    CallKind.WHEN_ANY_VALUE: CallKindSpec(
        CallKind.WHEN_ANY_VALUE, "when_any_value", lambda c, cs: c.compose_observation(cs)
    ),
    CallKind.WHEN_ANY: CallKindSpec(
        CallKind.WHEN_ANY, "when_any", lambda c, cs: c.compose_observed_change(cs)
    ),
    CallKind.WHEN_ANY_OBSERVABLE: CallKindSpec(
        CallKind.WHEN_ANY_OBSERVABLE,
        "when_any_observable",
        lambda c, cs: c.compose_observable_of_observable(cs),
    ),
    CallKind.BIND_ONE_WAY: CallKindSpec(
        CallKind.BIND_ONE_WAY, "bind_one_way", lambda c, cs: c.compose_one_way(cs)
    ),
    CallKind.ONE_WAY_BIND: CallKindSpec(
        CallKind.ONE_WAY_BIND, "one_way_bind", lambda c, cs: c.compose_one_way(cs)
    ),
    CallKind.BIND_TWO_WAY: CallKindSpec(
        CallKind.BIND_TWO_WAY, "bind_two_way", lambda c, cs: c.compose_two_way(cs)
    ),
    CallKind.BIND: CallKindSpec(CallKind.BIND, "bind", lambda c, cs: c.compose_tagged(cs)),
}


def get_call_kind_spec(kind: CallKind) -> CallKindSpec:
    """Look up the registry entry for a call kind.

    Raises:
        BindgenError: If the kind has no registered spec
    """
    spec = CALL_KIND_SPECS.get(kind)
    if spec is None:
        raise BindgenError(f"Unknown call kind: {kind}")
    return spec
