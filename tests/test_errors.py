import pytest

from chainsig.errors import (
    ContractError,
    ConversionError,
    InitError,
    InvalidParameters,
    InvalidState,
    JoinError,
    PublicKeyError,
    RespondError,
    SignError,
    VoteError,
)


def test_simple_error_displays_kind():
    err = ContractError(SignError.TIMEOUT)
    assert str(err) == "Signature request has timed out."
    assert err.kind is SignError.TIMEOUT
    assert err.message is None


def test_error_with_message_displays_kind_and_message():
    err = ContractError(
        InvalidParameters.MALFORMED_PAYLOAD,
        "Payload hash cannot be convereted to Scalar",
    )
    assert str(err) == (
        "Malformed payload.: Payload hash cannot be convereted to Scalar"
    )
    assert err.kind is InvalidParameters.MALFORMED_PAYLOAD


def test_message_contains_kind_text():
    err = ContractError(InvalidState.UNEXPECTED_PROTOCOL_STATE, "Running")
    assert str(InvalidState.UNEXPECTED_PROTOCOL_STATE) in str(err)
    assert str(err).endswith(": Running")


@pytest.mark.parametrize(
    "kind",
    [
        SignError.REQUEST_COLLISION,
        RespondError.INVALID_SIGNATURE,
        JoinError.JOIN_ALREADY_PARTICIPANT,
        PublicKeyError.DERIVED_KEY_CONVERSION_FAILED,
        InitError.THRESHOLD_TOO_HIGH,
        VoteError.VOTER_NOT_PARTICIPANT,
        InvalidParameters.UPDATE_NOT_FOUND,
        InvalidState.EPOCH_MISMATCH,
        ConversionError.DATA_CONVERSION,
    ],
)
def test_every_kind_can_be_raised_and_caught(kind):
    with pytest.raises(ContractError) as info:
        raise ContractError(kind)
    assert info.value.kind is kind
    assert str(info.value) == kind.value


def test_vote_error_messages_are_distinct():
    texts = {str(ContractError(kind)) for kind in VoteError}
    assert len(texts) == len(VoteError)
    assert "Voting account is not in the participant set." in texts
    assert "Number of participants cannot go below threshold." in texts


def test_threshold_message():
    assert str(ContractError(InitError.THRESHOLD_TOO_HIGH)) == (
        "Threshold cannot be greater than the number of candidates"
    )


def test_rejects_non_kind():
    with pytest.raises(TypeError):
        ContractError("not a kind")