"""Error kinds raised by the signing contract, and the exception that carries them."""

from __future__ import annotations

from enum import Enum


class _ErrorCode(Enum):
    """An error kind whose value is its human-readable description."""

    def __str__(self) -> str:
        return self.value


class SignError(_ErrorCode):
    TIMEOUT = "Signature request has timed out."
    REQUEST_COLLISION = (
        "Signature request has already been submitted. Please try again later."
    )
    UNSUPPORTED_KEY_VERSION = (
        "This key version is not supported. Call latest_key_version() "
        "to get the latest supported version."
    )
    REQUEST_LIMIT_EXCEEDED = "Too many pending requests. Please try again later."


class RespondError(_ErrorCode):
    INVALID_SIGNATURE = "The provided signature is invalid."


class JoinError(_ErrorCode):
    JOIN_ALREADY_PARTICIPANT = "Account to join is already in the participant set."


class PublicKeyError(_ErrorCode):
    DERIVED_KEY_CONVERSION_FAILED = "Derived key conversion failed."


class InitError(_ErrorCode):
    THRESHOLD_TOO_HIGH = "Threshold cannot be greater than the number of candidates"


class VoteError(_ErrorCode):
    VOTER_NOT_PARTICIPANT = "Voting account is not in the participant set."
    KICK_NOT_PARTICIPANT = "Account to be kicked is not in the participant set."
    JOIN_NOT_CANDIDATE = "Account to join is not in the candidate set."
    PARTICIPANTS_BELOW_THRESHOLD = "Number of participants cannot go below threshold."


class InvalidParameters(_ErrorCode):
    MALFORMED_PAYLOAD = "Malformed payload."
    INSUFFICIENT_DEPOSIT = "Attached deposit is lower than required."
    INSUFFICIENT_GAS = "Provided gas is lower than required."
    REQUEST_NOT_FOUND = (
        "This sign request has timed out, was completed, or never existed."
    )
    UPDATE_NOT_FOUND = "Update not found."


class InvalidState(_ErrorCode):
    PROTOCOL_STATE_NOT_RUNNING = "The protocol is not Running."
    PROTOCOL_STATE_NOT_RUNNING_OR_RESHARING = (
        "Protocol state is not running or resharing."
    )
    UNEXPECTED_PROTOCOL_STATE = "Unexpected protocol state."
    CONTRACT_STATE_IS_MISSING = "Cannot load in contract due to missing state"
    EPOCH_MISMATCH = "Mismatched epoch."


class ConversionError(_ErrorCode):
    DATA_CONVERSION = "Data conversion error."


class ContractError(Exception):
    """Raised by the contract; ``kind`` names the category, ``message`` adds context."""

    def __init__(self, kind: _ErrorCode, message: str | None = None) -> None:
        if not isinstance(kind, _ErrorCode):
            raise TypeError(f"not a contract error kind: {kind!r}")
        super().__init__(kind, message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        if self.message is None:
            return str(self.kind)
        return f"{self.kind}: {self.message}"