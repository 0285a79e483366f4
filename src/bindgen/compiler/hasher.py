"""Stable identifier hashing.

Generated method names must be identical across runs, machines and
interpreter processes, so Python's salted ``hash()`` is never used here.
Strings are hashed with 32-bit FNV-1a over their UTF-16 code units and the
components are folded with a 31-multiplier into a wrapping 64-bit
accumulator.
"""

from __future__ import annotations

import struct

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_SEED = 17
_MULTIPLIER = 31

_MASK_32 = 0xFFFF_FFFF
_MASK_64 = 0xFFFF_FFFF_FFFF_FFFF
_POSITIVE_63 = 0x7FFF_FFFF_FFFF_FFFF


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >> (bits - 1):
        return value - (1 << bits)
    return value


def stable_string_hash(value: str | None) -> int:
    """Hash a string to a signed 32-bit int with FNV-1a over UTF-16 code units.

    Characters outside the BMP contribute both surrogate units.

    Args:
        value: String to hash; ``None`` hashes to 0

    Returns:
        Signed 32-bit hash
    """
    if value is None:
        return 0
    acc = _FNV_OFFSET_BASIS
    for (unit,) in struct.iter_unpack("<H", value.encode("utf-16-le")):
        acc = ((acc ^ unit) * _FNV_PRIME) & _MASK_32
    return _to_signed(acc, 32)


def compute_stable_suffix(
    owner_type: str,
    file_path: str,
    line: int,
    discriminator: str = "",
) -> str:
    """Compute the 16-hex-digit suffix of a generated method name.

    Args:
        owner_type: Fully qualified owner type of the call site
        file_path: Source file recorded for the call site
        line: Source line recorded for the call site
        discriminator: Extra text separating calls on the same line

    Returns:
        Non-negative 64-bit value rendered as 16 uppercase hex digits
    """
    acc = _SEED
    for component in (
        stable_string_hash(owner_type),
        stable_string_hash(file_path),
        line,
        stable_string_hash(discriminator),
    ):
        acc = _to_signed(acc * _MULTIPLIER + component, 64)
    return f"{acc & _POSITIVE_63:016X}"


def generate_method_name(
    prefix: str,
    owner_type: str,
    file_path: str,
    line: int,
    discriminator: str = "",
) -> str:
    """Return the generated method name ``__{prefix}_{suffix}``."""
    return f"__{prefix}_{compute_stable_suffix(owner_type, file_path, line, discriminator)}"
