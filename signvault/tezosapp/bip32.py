"""BIP32 derivation paths."""

from __future__ import annotations

import re
from typing import Iterable

BIP32H = 1 << 31
"""Bit set on path elements that use hardened derivation."""

_DIGITS = re.compile(r"[0-9]+")


class BIP32(tuple):
    """A BIP32 derivation path as a tuple of 32-bit indices."""

    def __new__(cls, elements: Iterable[int] = ()) -> "BIP32":
        items = tuple(int(e) for e in elements)
        for e in items:
            if not 0 <= e < 1 << 32:
                raise ValueError(f"BIP32 element out of range: {e}")
        return super().__new__(cls, items)

    def __add__(self, other: Iterable[int]) -> "BIP32":
        return BIP32(tuple(self) + tuple(other))

    def to_bytes(self) -> bytes:
        """Serialize as a length byte followed by big-endian 32-bit indices."""
        out = bytearray([len(self) & 0xFF])
        for p in self:
            out += p.to_bytes(4, "big")
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes) -> "BIP32":
        """Parse the serialized form produced by to_bytes."""
        if not data:
            raise ValueError("empty BIP32 data")
        count = data[0]
        if len(data) < 1 + 4 * count:
            raise ValueError("BIP32 data is too short")
        return cls(
            int.from_bytes(data[1 + 4 * i:5 + 4 * i], "big") for i in range(count)
        )

    @classmethod
    def parse(cls, src: str) -> "BIP32":
        """Parse a path such as ``m/44'/1729'/0'``; ``'`` or ``h`` marks hardening."""
        parts = src.split("/")
        if parts[0] == "m":
            parts = parts[1:]
        result = []
        for part in parts:
            hardened = 0
            if part.endswith(("'", "h")):
                hardened = BIP32H
                part = part[:-1]
            if not _DIGITS.fullmatch(part):
                raise ValueError(f"invalid BIP32 element: {part!r}")
            value = int(part)
            if value >= 1 << 32:
                raise ValueError(f"BIP32 element out of range: {part}")
            result.append(value | hardened)
        return cls(result)

    def __str__(self) -> str:
        return "/".join(
            f"{p & ~BIP32H}'" if p & BIP32H else str(p) for p in self
        )

    def __repr__(self) -> str:
        return f"BIP32({str(self)!r})"