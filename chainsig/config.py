"""Contract configuration with typed fields and room for unknown extra entries."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, ClassVar

MAX_EXPECTED_PARTICIPANTS = 32
NETWORK_MULTIPLIER = 128

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1


def secs_to_ms(secs: int) -> int:
    return secs * 1000


def min_to_ms(minutes: int) -> int:
    return minutes * 60 * 1000


def hours_to_ms(hours: int) -> int:
    return hours * 60 * 60 * 1000


def _mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _uint(data: dict, key: str, limit: int) -> int:
    try:
        value = data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= limit:
        raise ValueError(f"invalid value for `{key}`: {value!r}")
    return value


def _section(data: dict, key: str) -> dict:
    try:
        value = data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None
    return _mapping(value, key)


def _extras(data: dict, known: tuple[str, ...]) -> dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in data.items() if k not in known}


def _with_extras(other: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(other)
    merged.update(fields)
    return merged


@dataclass
class TripleConfig:
    min_triples: int = 1024
    max_triples: int = 1024 * MAX_EXPECTED_PARTICIPANTS * NETWORK_MULTIPLIER
    generation_timeout: int = min_to_ms(10)
    other: dict[str, Any] = field(default_factory=dict)

    _FIELDS: ClassVar[tuple[str, ...]] = (
        "min_triples",
        "max_triples",
        "generation_timeout",
    )

    def to_dict(self) -> dict[str, Any]:
        return _with_extras(
            self.other,
            {
                "min_triples": self.min_triples,
                "max_triples": self.max_triples,
                "generation_timeout": self.generation_timeout,
            },
        )

    @classmethod
    def from_dict(cls, data: dict) -> TripleConfig:
        data = _mapping(data, "triple")
        return cls(
            min_triples=_uint(data, "min_triples", _U32_MAX),
            max_triples=_uint(data, "max_triples", _U32_MAX),
            generation_timeout=_uint(data, "generation_timeout", _U64_MAX),
            other=_extras(data, cls._FIELDS),
        )


@dataclass
class PresignatureConfig:
    min_presignatures: int = 512
    max_presignatures: int = 512 * MAX_EXPECTED_PARTICIPANTS * NETWORK_MULTIPLIER
    generation_timeout: int = secs_to_ms(45)
    other: dict[str, Any] = field(default_factory=dict)

    _FIELDS: ClassVar[tuple[str, ...]] = (
        "min_presignatures",
        "max_presignatures",
        "generation_timeout",
    )

    def to_dict(self) -> dict[str, Any]:
        return _with_extras(
            self.other,
            {
                "min_presignatures": self.min_presignatures,
                "max_presignatures": self.max_presignatures,
                "generation_timeout": self.generation_timeout,
            },
        )

    @classmethod
    def from_dict(cls, data: dict) -> PresignatureConfig:
        data = _mapping(data, "presignature")
        return cls(
            min_presignatures=_uint(data, "min_presignatures", _U32_MAX),
            max_presignatures=_uint(data, "max_presignatures", _U32_MAX),
            generation_timeout=_uint(data, "generation_timeout", _U64_MAX),
            other=_extras(data, cls._FIELDS),
        )


@dataclass
class SignatureConfig:
    generation_timeout: int = secs_to_ms(45)
    generation_timeout_total: int = secs_to_ms(200)
    garbage_timeout: int = hours_to_ms(24)
    other: dict[str, Any] = field(default_factory=dict)

    _FIELDS: ClassVar[tuple[str, ...]] = (
        "generation_timeout",
        "generation_timeout_total",
        "garbage_timeout",
    )

    def to_dict(self) -> dict[str, Any]:
        return _with_extras(
            self.other,
            {
                "generation_timeout": self.generation_timeout,
                "generation_timeout_total": self.generation_timeout_total,
                "garbage_timeout": self.garbage_timeout,
            },
        )

    @classmethod
    def from_dict(cls, data: dict) -> SignatureConfig:
        data = _mapping(data, "signature")
        return cls(
            generation_timeout=_uint(data, "generation_timeout", _U64_MAX),
            generation_timeout_total=_uint(data, "generation_timeout_total", _U64_MAX),
            garbage_timeout=_uint(data, "garbage_timeout", _U64_MAX),
            other=_extras(data, cls._FIELDS),
        )


@dataclass
class ProtocolConfig:
    message_timeout: int = min_to_ms(5)
    garbage_timeout: int = hours_to_ms(2)
    max_concurrent_introduction: int = 2
    max_concurrent_generation: int = 2 * MAX_EXPECTED_PARTICIPANTS
    triple: TripleConfig = field(default_factory=TripleConfig)
    presignature: PresignatureConfig = field(default_factory=PresignatureConfig)
    signature: SignatureConfig = field(default_factory=SignatureConfig)
    other: dict[str, Any] = field(default_factory=dict)

    _FIELDS: ClassVar[tuple[str, ...]] = (
        "message_timeout",
        "garbage_timeout",
        "max_concurrent_introduction",
        "max_concurrent_generation",
        "triple",
        "presignature",
        "signature",
    )

    def to_dict(self) -> dict[str, Any]:
        return _with_extras(
            self.other,
            {
                "message_timeout": self.message_timeout,
                "garbage_timeout": self.garbage_timeout,
                "max_concurrent_introduction": self.max_concurrent_introduction,
                "max_concurrent_generation": self.max_concurrent_generation,
                "triple": self.triple.to_dict(),
                "presignature": self.presignature.to_dict(),
                "signature": self.signature.to_dict(),
            },
        )

    @classmethod
    def from_dict(cls, data: dict) -> ProtocolConfig:
        data = _mapping(data, "protocol")
        return cls(
            message_timeout=_uint(data, "message_timeout", _U64_MAX),
            garbage_timeout=_uint(data, "garbage_timeout", _U64_MAX),
            max_concurrent_introduction=_uint(
                data, "max_concurrent_introduction", _U32_MAX
            ),
            max_concurrent_generation=_uint(data, "max_concurrent_generation", _U32_MAX),
            triple=TripleConfig.from_dict(_section(data, "triple")),
            presignature=PresignatureConfig.from_dict(_section(data, "presignature")),
            signature=SignatureConfig.from_dict(_section(data, "signature")),
            other=_extras(data, cls._FIELDS),
        )


@dataclass
class Config:
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    other: dict[str, Any] = field(default_factory=dict)

    _FIELDS: ClassVar[tuple[str, ...]] = ("protocol",)

    def to_dict(self) -> dict[str, Any]:
        return _with_extras(self.other, {"protocol": self.protocol.to_dict()})

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        data = _mapping(data, "config")
        return cls(
            protocol=ProtocolConfig.from_dict(_section(data, "protocol")),
            other=_extras(data, cls._FIELDS),
        )

    def get(self, key: str) -> Any | None:
        """Return the JSON value stored under ``key``, or None if absent."""
        if key == "protocol":
            return self.protocol.to_dict()
        if key not in self.other:
            return None
        return copy.deepcopy(self.other[key])

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str | bytes) -> Config:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid config JSON: {exc}") from exc
        return cls.from_dict(data)