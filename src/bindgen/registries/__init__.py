"""Registry modules for declarative mappings."""

from .call_kinds import (
    CALL_KIND_SPECS,
    CallKindSpec,
    get_call_kind_spec,
)
from .defaults import (
    DEFAULT_VALUES,
    default_value_for,
)

__all__ = [
    "CALL_KIND_SPECS",
    "CallKindSpec",
    "get_call_kind_spec",
    "DEFAULT_VALUES",
    "default_value_for",
]
