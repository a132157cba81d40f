import pytest

from chainsig.errors import ContractError, InvalidParameters, SignError
from chainsig.primitives import ContractSignatureRequest, SignatureRequest, SignRequest
from chainsig.requests import (
    EXPENSIVE_REQUEST_PRICE,
    GAS_FOR_SIGN_CALL,
    MAX_PENDING_REQUESTS,
    PendingRequests,
    Transfer,
    refund_on_fail,
    refund_on_success,
    signature_deposit,
    validate_sign_request,
)
from chainsig.types import SerializableScalar

PAYLOAD = bytes(31) + b"\x05"
ENOUGH = 10**30


def _request(a, b):
    return SignatureRequest(SerializableScalar(a), SerializableScalar(b))


def _contract_request(deposit, required):
    return ContractSignatureRequest(_request(1, 2), "alice.near", deposit, required)


def test_cheap_deposit_for_few_pending():
    assert [signature_deposit(n) for n in range(4)] == [1, 1, 1, 1]


def test_expensive_deposit_scales_linearly():
    assert signature_deposit(4) == EXPENSIVE_REQUEST_PRICE
    assert signature_deposit(7) == 4 * signature_deposit(4)
    assert signature_deposit(5) > signature_deposit(4) > signature_deposit(3)


def test_negative_pending_rejected():
    with pytest.raises(ValueError):
        signature_deposit(-1)


def test_valid_request_returns_payload_and_required():
    payload, required = validate_sign_request(
        SignRequest(PAYLOAD, "test"), ENOUGH, GAS_FOR_SIGN_CALL, 0
    )
    assert payload == int.from_bytes(PAYLOAD, "big")
    assert required == signature_deposit(0)


def test_malformed_payload():
    with pytest.raises(ContractError) as info:
        validate_sign_request(
            SignRequest(b"\xff" * 32, "test"), ENOUGH, GAS_FOR_SIGN_CALL, 0
        )
    assert info.value.kind is InvalidParameters.MALFORMED_PAYLOAD


def test_malformed_payload_checked_before_deposit():
    with pytest.raises(ContractError) as info:
        validate_sign_request(SignRequest(b"\xff" * 32, "test"), 0, 0, 0)
    assert info.value.kind is InvalidParameters.MALFORMED_PAYLOAD


def test_unsupported_key_version():
    with pytest.raises(ContractError) as info:
        validate_sign_request(
            SignRequest(PAYLOAD, "test", key_version=1), ENOUGH, GAS_FOR_SIGN_CALL, 0
        )
    assert info.value.kind is SignError.UNSUPPORTED_KEY_VERSION


def test_insufficient_deposit():
    with pytest.raises(ContractError) as info:
        validate_sign_request(SignRequest(PAYLOAD, "test"), 0, GAS_FOR_SIGN_CALL, 0)
    assert info.value.kind is InvalidParameters.INSUFFICIENT_DEPOSIT
    assert "Attached 0" in str(info.value)


def test_deposit_grows_with_pending():
    with pytest.raises(ContractError) as info:
        validate_sign_request(SignRequest(PAYLOAD, "test"), 1, GAS_FOR_SIGN_CALL, 5)
    assert info.value.kind is InvalidParameters.INSUFFICIENT_DEPOSIT


def test_insufficient_gas():
    with pytest.raises(ContractError) as info:
        validate_sign_request(
            SignRequest(PAYLOAD, "test"), ENOUGH, GAS_FOR_SIGN_CALL - 1, 0
        )
    assert info.value.kind is InvalidParameters.INSUFFICIENT_GAS


def test_request_limit():
    with pytest.raises(ContractError) as info:
        validate_sign_request(
            SignRequest(PAYLOAD, "test"),
            ENOUGH,
            GAS_FOR_SIGN_CALL,
            MAX_PENDING_REQUESTS + 1,
        )
    assert info.value.kind is SignError.REQUEST_LIMIT_EXCEEDED


def test_request_limit_boundary_allowed():
    _, required = validate_sign_request(
        SignRequest(PAYLOAD, "test"), ENOUGH, GAS_FOR_SIGN_CALL, MAX_PENDING_REQUESTS
    )
    assert required == signature_deposit(MAX_PENDING_REQUESTS)


def test_refund_on_success_returns_excess():
    request = _contract_request(10, 3)
    transfer = refund_on_success(request)
    assert transfer.receiver == "alice.near"
    assert transfer.amount + request.required_deposit == request.deposit


def test_no_refund_when_exact():
    assert refund_on_success(_contract_request(3, 3)) is None


def test_refund_on_fail_returns_everything():
    request = _contract_request(10, 3)
    assert refund_on_fail(request) == Transfer("alice.near", request.deposit)


def test_pending_mark_and_add():
    pending = PendingRequests()
    request = _request(1, 2)
    pending.mark_received(request)
    assert request in pending
    assert len(pending) == 1
    assert pending.get(request) is None
    pending.add(request, bytes(32))
    assert len(pending) == 1
    assert pending.get(request).data_id == bytes(32)


def test_mark_again_clears_resume_index():
    pending = PendingRequests()
    request = _request(1, 2)
    pending.add(request, bytes(32))
    pending.mark_received(request)
    assert pending.get(request) is None
    assert len(pending) == 1


def test_pending_remove():
    pending = PendingRequests()
    first, second = _request(1, 2), _request(3, 4)
    pending.mark_received(first)
    pending.mark_received(second)
    pending.remove(first)
    assert first not in pending
    assert list(pending) == [second]


def test_remove_missing_raises():
    pending = PendingRequests()
    with pytest.raises(ContractError) as info:
        pending.remove(_request(1, 2))
    assert info.value.kind is InvalidParameters.REQUEST_NOT_FOUND