"""Signature request admission, pending-request bookkeeping and refunds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from chainsig.errors import ContractError, InvalidParameters, SignError
from chainsig.primitives import (
    ContractSignatureRequest,
    SignatureRequest,
    SignRequest,
    YieldIndex,
)
from chainsig.types import scalar_from_bytes

logger = logging.getLogger(__name__)

TERA_GAS = 10**12
GAS_FOR_SIGN_CALL = 50 * TERA_GAS
MAX_PENDING_REQUESTS = 16
CHEAP_REQUESTS = 3
YOCTO_PER_MILLINEAR = 10**21
EXPENSIVE_REQUEST_PRICE = 50 * YOCTO_PER_MILLINEAR


@dataclass(frozen=True)
class Transfer:
    """Tokens to send back to an account."""

    receiver: str
    amount: int


def signature_deposit(pending: int) -> int:
    """Deposit in yoctoNEAR asked for a new request given the pending count."""
    if pending < 0:
        raise ValueError("pending request count cannot be negative")
    if pending <= CHEAP_REQUESTS:
        return 1
    return (pending - CHEAP_REQUESTS) * EXPENSIVE_REQUEST_PRICE


def validate_sign_request(
    request: SignRequest,
    deposit: int,
    prepaid_gas: int,
    pending: int,
    latest_key_version: int = 0,
) -> tuple[int, int]:
    """Check a sign request before it is queued.

    Returns the payload as a scalar and the deposit it required. Raises
    ContractError in the same order of checks the contract applies.
    """
    payload = scalar_from_bytes(request.payload)
    if payload is None:
        raise ContractError(
            InvalidParameters.MALFORMED_PAYLOAD,
            "Payload hash cannot be convereted to Scalar",
        )
    if request.key_version > latest_key_version:
        raise ContractError(SignError.UNSUPPORTED_KEY_VERSION)
    required = signature_deposit(pending)
    if deposit < required:
        raise ContractError(
            InvalidParameters.INSUFFICIENT_DEPOSIT,
            f"Attached {deposit}, Required {required}",
        )
    if prepaid_gas < GAS_FOR_SIGN_CALL:
        raise ContractError(
            InvalidParameters.INSUFFICIENT_GAS,
            f"Provided: {prepaid_gas}, required: {GAS_FOR_SIGN_CALL}",
        )
    if pending > MAX_PENDING_REQUESTS:
        raise ContractError(SignError.REQUEST_LIMIT_EXCEEDED)
    return payload, required


def refund_on_success(request: ContractSignatureRequest) -> Transfer | None:
    """Return whatever was attached beyond the required deposit, if anything."""
    diff = request.deposit - request.required_deposit
    if diff <= 0:
        return None
    logger.info("refund more than required deposit %s to %s", diff, request.requester)
    return Transfer(request.requester, diff)


def refund_on_fail(request: ContractSignatureRequest) -> Transfer:
    """Return the whole attached deposit."""
    logger.info("refund %s to %s due to fail", request.deposit, request.requester)
    return Transfer(request.requester, request.deposit)


class PendingRequests:
    """Requests waiting for a signature, each with the index to resume it, once known."""

    def __init__(self) -> None:
        self._requests: dict[SignatureRequest, YieldIndex | None] = {}

    def mark_received(self, request: SignatureRequest) -> None:
        """Record a request whose resume index is not known yet."""
        self._requests[request] = None

    def add(self, request: SignatureRequest, data_id: bytes) -> None:
        """Record a request together with the id its yielded call resumes on."""
        self._requests[request] = YieldIndex(data_id)

    def remove(self, request: SignatureRequest) -> None:
        try:
            del self._requests[request]
        except KeyError:
            raise ContractError(InvalidParameters.REQUEST_NOT_FOUND) from None

    def get(self, request: SignatureRequest) -> YieldIndex | None:
        """The resume index of a request, or None if absent or not yet known."""
        return self._requests.get(request)

    def __contains__(self, request: object) -> bool:
        return request in self._requests

    def __len__(self) -> int:
        return len(self._requests)

    def __iter__(self) -> Iterator[SignatureRequest]:
        return iter(self._requests)