"""Call-site IR consumed by the binding compiler.

The extraction stage resolves every observe/bind call it finds in user code
into a ``CallSite``: the owner type, one or more typed property paths, the
source location and the literal argument texts. These models are the
compiler's whole input, together with a ``CapabilityTable`` describing which
types raise change notifications.

All models are frozen: they are produced once per compilation pass and only
ever read afterwards.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class CallKind(str, Enum):
    """Observe/bind API a call site was written against."""

    WHEN_CHANGED = "when_changed"
    WHEN_CHANGING = "when_changing"
    WHEN_ANY_VALUE = "when_any_value"
    WHEN_ANY = "when_any"
    WHEN_ANY_OBSERVABLE = "when_any_observable"
    BIND_ONE_WAY = "bind_one_way"
    ONE_WAY_BIND = "one_way_bind"
    BIND_TWO_WAY = "bind_two_way"
    BIND = "bind"

    @property
    def is_binding(self) -> bool:
        """True for kinds that take a source and a target path."""
        return self in (
            CallKind.BIND_ONE_WAY,
            CallKind.ONE_WAY_BIND,
            CallKind.BIND_TWO_WAY,
            CallKind.BIND,
        )

    @property
    def is_two_way(self) -> bool:
        return self in (CallKind.BIND_TWO_WAY, CallKind.BIND)


class ObservationMode(str, Enum):
    """Which notification a watch subscribes to."""

    AFTER_CHANGE = "after_change"
    BEFORE_CHANGE = "before_change"


# =============================================================================
# Type names
# =============================================================================

_OPTIONAL_WRAPPER = re.compile(r"^(?:typing\.)?Optional\[(?P<inner>.+)\]$")


def is_optional_type(type_name: str) -> bool:
    """Return True if a type name admits ``None`` (``T | None`` or ``Optional[T]``)."""
    name = type_name.strip()
    if _OPTIONAL_WRAPPER.match(name):
        return True
    parts = [p.strip() for p in name.split("|")]
    return len(parts) > 1 and "None" in parts


def strip_optional(type_name: str) -> str:
    """Remove an optional wrapper from a type name.

    Examples:
        >>> strip_optional("Address | None")
        'Address'
        >>> strip_optional("Optional[int]")
        'int'
    """
    name = type_name.strip()
    match = _OPTIONAL_WRAPPER.match(name)
    if match:
        return match.group("inner").strip()
    parts = [p.strip() for p in name.split("|")]
    if len(parts) > 1 and "None" in parts:
        return " | ".join(p for p in parts if p != "None")
    return name


# =============================================================================
# Paths and locations
# =============================================================================


class PropertyPathSegment(BaseModel):
    """One typed property access in a path."""

    model_config = ConfigDict(frozen=True)

    property_name: str = Field(min_length=1)
    property_type: str
    declaring_type: str


class PropertyPath(BaseModel):
    """Root-first sequence of property accesses, e.g. ``x.address.city``.

    A path is never empty; pydantic rejects an empty ``segments`` tuple.
    """

    model_config = ConfigDict(frozen=True)

    segments: tuple[PropertyPathSegment, ...] = Field(min_length=1)

    @classmethod
    def build(cls, owner_type: str, *steps: tuple[str, str]) -> PropertyPath:
        """Build a path from ``(property_name, property_type)`` steps.

        Each segment's declaring type is the previous segment's property type
        with any optional wrapper removed.

        Args:
            owner_type: Type that declares the first property
            *steps: ``(name, type)`` pairs, root first

        Returns:
            The resolved path
        """
        segments = []
        declaring = strip_optional(owner_type)
        for name, type_name in steps:
            segments.append(
                PropertyPathSegment(
                    property_name=name, property_type=type_name, declaring_type=declaring
                )
            )
            declaring = strip_optional(type_name)
        return cls(segments=tuple(segments))

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def root(self) -> PropertyPathSegment:
        return self.segments[0]

    @property
    def leaf(self) -> PropertyPathSegment:
        return self.segments[-1]

    @property
    def leaf_type(self) -> str:
        return self.leaf.property_type

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(s.property_name for s in self.segments)

    @property
    def dotted(self) -> str:
        """Dotted rendering of the path, e.g. ``address.city``."""
        return ".".join(self.names)


class SourceLocation(BaseModel):
    """File and line of a call site as recorded by the extraction stage."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    line: int = Field(ge=0)


# =============================================================================
# Call sites
# =============================================================================


class CallSiteFlags(BaseModel):
    """Optional features requested at a call site."""

    model_config = ConfigDict(frozen=True)

    has_selector: bool = False
    has_conversion: bool = False
    has_scheduler: bool = False
    is_before_change: bool = False

    @property
    def bits(self) -> int:
        """Flags packed into an int, used as part of the grouping key."""
        return (
            int(self.has_selector)
            | int(self.has_conversion) << 1
            | int(self.has_scheduler) << 2
            | int(self.is_before_change) << 3
        )


class CallSite(BaseModel):
    """A single resolved observe/bind invocation.

    For binding kinds ``property_paths`` is ``(source_path, target_path)``,
    ``owner_type`` is the source type and ``target_type`` the target type.
    For observable-of-observable calls ``inner_types`` lists the element type
    of each observed stream.
    """

    model_config = ConfigDict(frozen=True)

    kind: CallKind
    owner_type: str
    property_paths: tuple[PropertyPath, ...]
    result_type: str
    flags: CallSiteFlags = Field(default_factory=CallSiteFlags)
    location: SourceLocation
    expression_texts: tuple[str, ...] = ()
    target_type: str | None = None
    inner_types: tuple[str, ...] = ()

    @property
    def source_path(self) -> PropertyPath:
        return self.property_paths[0]

    @property
    def target_path(self) -> PropertyPath:
        return self.property_paths[1]

    @property
    def leaf_types(self) -> tuple[str, ...]:
        return tuple(p.leaf_type for p in self.property_paths)

    @property
    def observation_mode(self) -> ObservationMode:
        if self.flags.is_before_change:
            return ObservationMode.BEFORE_CHANGE
        return ObservationMode.AFTER_CHANGE

    @property
    def discriminator(self) -> str:
        """Text mixed into the stable name so same-line calls stay distinct.

        Observation kinds join every argument text; bindings join the source
        and target texts. Both come down to the same ``|`` join.
        """
        return "|".join(self.expression_texts)


# =============================================================================
# Capabilities
# =============================================================================


class TypeCapability(BaseModel):
    """Change notifications a type can raise."""

    model_config = ConfigDict(frozen=True)

    supports_after_change: bool = False
    supports_before_change: bool = False

    def supports(self, mode: ObservationMode) -> bool:
        match mode:
            case ObservationMode.AFTER_CHANGE:
                return self.supports_after_change
            case ObservationMode.BEFORE_CHANGE:
                return self.supports_before_change


class CapabilityTable(BaseModel):
    """Pre-resolved, read-only map of type name to notification capability.

    A type with no entry raises no notifications at all.
    """

    model_config = ConfigDict(frozen=True)

    types: dict[str, TypeCapability] = Field(default_factory=dict)

    def lookup(self, type_name: str) -> TypeCapability | None:
        return self.types.get(strip_optional(type_name))

    def supports(self, type_name: str, mode: ObservationMode) -> bool:
        capability = self.lookup(type_name)
        return capability is not None and capability.supports(mode)
