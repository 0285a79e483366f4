"""Type-signature grouping.

Call sites that share a parameter shape share one generated entry point.
Grouping is order-preserving so that generated output is reproducible.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from src.bindgen.ir import CallSite


@dataclass(frozen=True)
class SignatureKey:
    """Everything that determines an entry point's parameter shape."""

    owner_type: str
    result_type: str
    arity: int
    leaf_types: tuple[str, ...]
    flag_bits: int
    target_type: str | None = None
    inner_types: tuple[str, ...] = ()


@dataclass
class TypeSignatureGroup:
    """Call sites sharing a signature key, in discovery order."""

    key: SignatureKey
    members: list[CallSite] = field(default_factory=list)

    @property
    def representative(self) -> CallSite:
        """First-seen member; defines the entry point's signature."""
        return self.members[0]


def signature_key(call_site: CallSite) -> SignatureKey:
    return SignatureKey(
        owner_type=call_site.owner_type,
        result_type=call_site.result_type,
        arity=len(call_site.property_paths),
        leaf_types=call_site.leaf_types,
        flag_bits=call_site.flags.bits,
        target_type=call_site.target_type,
        inner_types=call_site.inner_types,
    )


def group_by_signature(call_sites: Iterable[CallSite]) -> list[TypeSignatureGroup]:
    """Partition call sites into signature groups.

    Groups appear in the order their first member was seen and members keep
    their input order.

    Args:
        call_sites: Call sites of a single call kind

    Returns:
        List of groups, each with at least one member
    """
    groups: dict[SignatureKey, TypeSignatureGroup] = {}
    for call_site in call_sites:
        key = signature_key(call_site)
        group = groups.get(key)
        if group is None:
            group = groups[key] = TypeSignatureGroup(key=key)
        group.members.append(call_site)
    return list(groups.values())
