"""Scalars of the secp256k1 group and their wire encodings."""

from __future__ import annotations

import json
from dataclasses import dataclass

CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SCALAR_SIZE = 32


def scalar_from_bytes(data: bytes) -> int | None:
    """Read 32 big-endian bytes as a scalar; None if not below the group order."""
    if len(data) != SCALAR_SIZE:
        raise ValueError(f"scalar must be {SCALAR_SIZE} bytes, got {len(data)}")
    value = int.from_bytes(data, "big")
    return value if value < CURVE_ORDER else None


def scalar_from_non_biased(data: bytes) -> int:
    """Read a hash output as a scalar, failing if it lies outside the field."""
    value = scalar_from_bytes(data)
    if value is None:
        raise ValueError("Derived epsilon value falls outside of the field")
    return value


@dataclass(frozen=True)
class SerializableScalar:
    scalar: int

    def __post_init__(self) -> None:
        if isinstance(self.scalar, bool) or not isinstance(self.scalar, int):
            raise TypeError("scalar must be an integer")
        if not 0 <= self.scalar < CURVE_ORDER:
            raise ValueError("Scalar bytes are not in the k256 field")

    def _bytes(self) -> bytes:
        return self.scalar.to_bytes(SCALAR_SIZE, "big")

    def to_borsh(self) -> bytes:
        return self._bytes()

    @classmethod
    def from_borsh(cls, data: bytes) -> SerializableScalar:
        if len(data) != SCALAR_SIZE:
            raise ValueError(f"expected {SCALAR_SIZE} bytes, got {len(data)}")
        value = scalar_from_bytes(bytes(data))
        if value is None:
            raise ValueError("Scalar bytes are not in the k256 field")
        return cls(value)

    def to_json(self) -> str:
        return json.dumps({"scalar": self._bytes().hex().upper()})

    @classmethod
    def from_json(cls, text: str | bytes) -> SerializableScalar:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid scalar JSON: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("scalar"), str):
            raise ValueError("expected an object with a hex string `scalar`")
        hex_text = data["scalar"]
        if len(hex_text) != 2 * SCALAR_SIZE:
            raise ValueError("scalar hex must encode 32 bytes")
        try:
            raw = bytes.fromhex(hex_text)
        except ValueError as exc:
            raise ValueError("scalar is not valid hex") from exc
        return cls.from_borsh(raw)