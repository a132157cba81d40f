"""Proposals to change the contract's code or configuration, and their votes."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Union

from chainsig.config import Config
from chainsig.errors import ContractError, ConversionError, InvalidParameters

STORAGE_BYTE_COST = 10**19
_U128_MAX = 2**128 - 1

# Fixed estimates of the in-memory size of an update entry and of one account id.
_UPDATE_ENTRY_SIZE = 96
_ACCOUNT_ID_SIZE = 16
# Assume a high max of participant votes per update entry.
_MAX_VOTES_PER_ENTRY = 128


def _config_json(config: Config) -> bytes:
    return json.dumps(config.to_dict(), separators=(",", ":")).encode()


def bytes_used(code: bytes | None, config: Config | None) -> int:
    """Estimate the storage a proposal with this code and config occupies."""
    used = _UPDATE_ENTRY_SIZE + _MAX_VOTES_PER_ENTRY * _ACCOUNT_ID_SIZE
    if config is not None:
        used += len(_config_json(config))
    if code is not None:
        used += len(code)
    return used


def required_deposit(used_bytes: int) -> int:
    """Deposit in yoctoNEAR needed to store ``used_bytes``, saturating at u128."""
    if used_bytes < 0:
        raise ValueError("byte count cannot be negative")
    return min(STORAGE_BYTE_COST * used_bytes, _U128_MAX)


@dataclass(frozen=True)
class ConfigUpdate:
    config: Config


@dataclass(frozen=True)
class ContractUpdate:
    code: bytes


Update = Union[ConfigUpdate, ContractUpdate]


@dataclass
class ProposeUpdateArgs:
    code: bytes | None = None
    config: Config | None = None


@dataclass(frozen=True)
class FunctionCall:
    method_name: str
    args: bytes
    deposit: int
    gas: int


@dataclass(frozen=True)
class DeployContract:
    code: bytes


PromiseAction = Union[DeployContract, FunctionCall]


@dataclass
class _UpdateEntry:
    updates: list[Update]
    bytes_used: int
    votes: set[str] = field(default_factory=set)


class ProposedUpdates:
    """Pending update proposals keyed by sequentially generated ids."""

    def __init__(self) -> None:
        self._entries: dict[int, _UpdateEntry] = {}
        self._next_id = 0

    @staticmethod
    def required_deposit(code: bytes | None, config: Config | None) -> int:
        return required_deposit(bytes_used(code, config))

    def propose(self, code: bytes | None, config: Config | None) -> int:
        """Record a proposal and return its id."""
        used = bytes_used(code, config)
        updates: list[Update] = []
        if code is not None:
            updates.append(ContractUpdate(bytes(code)))
        if config is not None:
            updates.append(ConfigUpdate(copy.deepcopy(config)))
        if not updates:
            raise ContractError(
                ConversionError.DATA_CONVERSION,
                "Cannot propose update due to incorrect parameters.",
            )
        update_id = self._next_id
        self._next_id += 1
        self._entries[update_id] = _UpdateEntry(updates=updates, bytes_used=used)
        return update_id

    def _entry(self, update_id: int) -> _UpdateEntry:
        try:
            return self._entries[update_id]
        except KeyError:
            raise ContractError(InvalidParameters.UPDATE_NOT_FOUND) from None

    def vote(self, update_id: int, voter: str) -> frozenset[str]:
        """Add a vote and return everyone who has voted for the update so far."""
        entry = self._entry(update_id)
        entry.votes.add(voter)
        return frozenset(entry.votes)

    def do_update(self, update_id: int, gas: int) -> list[PromiseAction]:
        """Remove the proposal and return the actions that carry it out."""
        self._entry(update_id)
        entry = self._entries.pop(update_id)
        actions: list[PromiseAction] = []
        for update in entry.updates:
            if isinstance(update, ConfigUpdate):
                args = json.dumps([update.config.to_dict()], separators=(",", ":")).encode()
                actions.append(FunctionCall("update_config", args, 0, gas))
            else:
                actions.append(DeployContract(update.code))
                actions.append(FunctionCall("migrate", b"", 0, gas))
        return actions

    def __contains__(self, update_id: object) -> bool:
        return update_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)