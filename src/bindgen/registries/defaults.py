"""Default-value registry.

Maps leaf type names to the value a deep chain yields when an intermediate
parent is ``None``. Unlisted reference types yield ``None``.
"""

from __future__ import annotations

from typing import Any

from src.bindgen.ir import is_optional_type

DEFAULT_VALUES: dict[str, Any] = {
    "int": 0,
    "float": 0.0,
    "bool": False,
    "complex": 0j,
}


def default_value_for(type_name: str) -> Any:
    """Return the absent value for a property type.

    Optional types always give ``None``, e.g. ``int | None``.
    """
    if is_optional_type(type_name):
        return None
    return DEFAULT_VALUES.get(type_name.strip())
