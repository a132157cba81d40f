"""The phases the signing protocol moves through, as recorded by the contract."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from chainsig.primitives import Candidates, Participants, PkVotes, Votes


@dataclass
class NotInitializedContractState:
    """The contract has not been set up yet."""


@dataclass
class InitializingContractState:
    candidates: Candidates
    threshold: int
    pk_votes: PkVotes = field(default_factory=PkVotes)


@dataclass
class RunningContractState:
    epoch: int
    participants: Participants
    threshold: int
    public_key: str
    candidates: Candidates = field(default_factory=Candidates)
    join_votes: Votes = field(default_factory=Votes)
    leave_votes: Votes = field(default_factory=Votes)


@dataclass
class ResharingContractState:
    old_epoch: int
    old_participants: Participants
    new_participants: Participants
    threshold: int
    public_key: str
    finished_votes: set[str] = field(default_factory=set)


ProtocolContractState = Union[
    NotInitializedContractState,
    InitializingContractState,
    RunningContractState,
    ResharingContractState,
]

_NAMES = {
    NotInitializedContractState: "NotInitialized",
    InitializingContractState: "Initializing",
    RunningContractState: "Running",
    ResharingContractState: "Resharing",
}


def state_name(state: ProtocolContractState) -> str:
    """Return the short name of a protocol state."""
    for kind, name in _NAMES.items():
        if isinstance(state, kind):
            return name
    raise TypeError(f"not a protocol state: {state!r}")