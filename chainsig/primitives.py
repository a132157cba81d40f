"""Participant bookkeeping and the request records kept by the signing contract."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from chainsig.types import SerializableScalar

HPKE_PUBLIC_KEY_SIZE = 32
CRYPTO_HASH_SIZE = 32
PAYLOAD_SIZE = 32
_U32_MAX = 2**32 - 1
_U128_MAX = 2**128 - 1


def _fixed_bytes(value: bytes, size: int, what: str) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"{what} must be bytes")
    value = bytes(value)
    if len(value) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(value)}")
    return value


def _amount(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U128_MAX:
        raise ValueError(f"invalid {what}: {value!r}")
    return value


class StorageKey(Enum):
    PENDING_REQUESTS = "PendingRequests"
    PROPOSED_UPDATES_ENTRIES = "ProposedUpdatesEntries"


@dataclass(frozen=True)
class YieldIndex:
    """Identifies a yielded call so that it can be resumed later."""

    data_id: bytes

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "data_id", _fixed_bytes(self.data_id, CRYPTO_HASH_SIZE, "data_id")
        )


@dataclass(frozen=True)
class SignatureRequest:
    epsilon: SerializableScalar
    payload_hash: SerializableScalar


@dataclass(frozen=True)
class ContractSignatureRequest:
    request: SignatureRequest
    requester: str
    deposit: int
    required_deposit: int

    def __post_init__(self) -> None:
        _amount(self.deposit, "deposit")
        _amount(self.required_deposit, "required deposit")


@dataclass(frozen=True, order=True)
class _MemberInfo:
    account_id: str
    url: str
    cipher_pk: bytes
    sign_pk: str

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "cipher_pk",
            _fixed_bytes(self.cipher_pk, HPKE_PUBLIC_KEY_SIZE, "cipher_pk"),
        )


@dataclass(frozen=True, order=True)
class CandidateInfo(_MemberInfo):
    """A node asking to join: its account, address and public keys."""


@dataclass(frozen=True, order=True)
class ParticipantInfo(_MemberInfo):
    """A node taking part in the protocol: its account, address and public keys."""

    @classmethod
    def from_candidate(cls, candidate: CandidateInfo) -> ParticipantInfo:
        return cls(
            account_id=candidate.account_id,
            url=candidate.url,
            cipher_pk=candidate.cipher_pk,
            sign_pk=candidate.sign_pk,
        )


@dataclass
class Candidates:
    candidates: dict[str, CandidateInfo] = field(default_factory=dict)

    def insert(self, account_id: str, candidate: CandidateInfo) -> None:
        self.candidates[account_id] = candidate

    def remove(self, account_id: str) -> None:
        self.candidates.pop(account_id, None)

    def get(self, account_id: str) -> CandidateInfo | None:
        return self.candidates.get(account_id)

    def items(self) -> list[tuple[str, CandidateInfo]]:
        """Entries ordered by account id."""
        return sorted(self.candidates.items())

    def __contains__(self, account_id: object) -> bool:
        return account_id in self.candidates

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.candidates))


@dataclass
class Participants:
    """Participants keyed by account id; each account keeps the numeric id it first got."""

    next_id: int = 0
    participants: dict[str, ParticipantInfo] = field(default_factory=dict)
    account_to_participant_id: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_candidates(cls, candidates: Candidates) -> Participants:
        participants = cls()
        for account_id, info in candidates.items():
            participants.insert(account_id, ParticipantInfo.from_candidate(info))
        return participants

    def insert(self, account_id: str, info: ParticipantInfo) -> None:
        if account_id not in self.account_to_participant_id:
            if self.next_id > _U32_MAX:
                raise OverflowError("participant ids exhausted")
            self.account_to_participant_id[account_id] = self.next_id
            self.next_id += 1
        self.participants[account_id] = info

    def remove(self, account_id: str) -> None:
        self.participants.pop(account_id, None)

    def get(self, account_id: str) -> ParticipantInfo | None:
        return self.participants.get(account_id)

    def keys(self) -> list[str]:
        return sorted(self.participants)

    def items(self) -> list[tuple[str, ParticipantInfo]]:
        """Entries ordered by account id."""
        return sorted(self.participants.items())

    def copy(self) -> Participants:
        return Participants(
            next_id=self.next_id,
            participants=dict(self.participants),
            account_to_participant_id=dict(self.account_to_participant_id),
        )

    def __contains__(self, account_id: object) -> bool:
        return account_id in self.participants

    def __len__(self) -> int:
        return len(self.participants)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.participants))


@dataclass
class Votes:
    """Voters gathered for each account."""

    votes: dict[str, set[str]] = field(default_factory=dict)

    def entry(self, account_id: str) -> set[str]:
        return self.votes.setdefault(account_id, set())


@dataclass
class PkVotes:
    """Voters gathered for each proposed public key."""

    votes: dict[str, set[str]] = field(default_factory=dict)

    def entry(self, public_key: str) -> set[str]:
        return self.votes.setdefault(public_key, set())


@dataclass(frozen=True)
class SignRequest:
    payload: bytes
    path: str
    key_version: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "payload", _fixed_bytes(self.payload, PAYLOAD_SIZE, "payload")
        )
        version = self.key_version
        if isinstance(version, bool) or not isinstance(version, int) or not 0 <= version <= _U32_MAX:
            raise ValueError(f"invalid key version: {version!r}")


class SignaturePromiseError(Enum):
    FAILED = "Failed"