"""Node-side configuration: contract settings with the node's local overrides."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from chainsig.config import ProtocolConfig

logger = logging.getLogger(__name__)

_CIPHER_PK_SIZE = 32


def merge(base: Any, new: Any) -> Any:
    """Merge ``new`` into ``base``: objects merge key by key, anything else is replaced.

    Neither argument is modified; the merged value is returned.
    """
    if isinstance(base, dict) and isinstance(new, dict):
        merged = {k: copy.deepcopy(v) for k, v in base.items() if k not in new}
        for key, value in new.items():
            merged[key] = merge(base.get(key), value)
        return merged
    return copy.deepcopy(new)


@dataclass
class OverrideConfig:
    """Partial protocol settings that this node wants to override."""

    entries: Any = field(default_factory=dict)

    @classmethod
    def from_str(cls, text: str) -> OverrideConfig:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid override config JSON: {exc}") from exc
        if not isinstance(data, dict) or "entries" not in data:
            raise ValueError("missing field `entries`")
        return cls(entries=data["entries"])

    def to_json(self) -> str:
        return json.dumps({"entries": self.entries}, separators=(",", ":"))


@dataclass
class NetworkConfig:
    """Keys this node uses to talk to its peers."""

    sign_sk: str | None = None
    cipher_pk: bytes = bytes(_CIPHER_PK_SIZE)

    def __post_init__(self) -> None:
        self.cipher_pk = bytes(self.cipher_pk)
        if len(self.cipher_pk) != _CIPHER_PK_SIZE:
            raise ValueError(f"cipher_pk must be {_CIPHER_PK_SIZE} bytes")


@dataclass
class LocalConfig:
    """Configuration known only to this node."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    over: OverrideConfig = field(default_factory=OverrideConfig)


@dataclass
class NodeConfig:
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    local: LocalConfig = field(default_factory=LocalConfig)

    @classmethod
    def from_local(cls, local: LocalConfig) -> NodeConfig:
        """Start from default protocol settings with the local overrides applied."""
        protocol = ProtocolConfig()
        entries = local.over.entries
        if isinstance(entries, dict) and entries:
            protocol = ProtocolConfig.from_dict(merge(protocol.to_dict(), entries))
        return cls(protocol=protocol, local=local)

    @classmethod
    def try_from_contract(
        cls, contract: dict[str, Any], original: NodeConfig
    ) -> NodeConfig | None:
        """Build from the contract's config, keeping the original's local settings.

        Returns None when the contract config has no usable protocol section.
        """
        if "protocol" not in contract:
            logger.warning("unable to find protocol in contract config")
            return None
        merged = merge(contract["protocol"], original.local.over.entries)
        try:
            protocol = ProtocolConfig.from_dict(merged)
        except ValueError:
            logger.warning("unable to parse protocol in contract config")
            return None
        return cls(protocol=protocol, local=copy.deepcopy(original.local))