"""The signing contract's state machine.

It tracks the participant set, votes on joins, departures, keys and
reshares, and proposed updates. It also tracks pending signature requests.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
from typing import Any, Mapping

from chainsig.config import Config
from chainsig.errors import (
    ContractError,
    InitError,
    InvalidParameters,
    InvalidState,
    JoinError,
    SignError,
    VoteError,
)
from chainsig.primitives import (
    CandidateInfo,
    Candidates,
    ContractSignatureRequest,
    ParticipantInfo,
    Participants,
    SignatureRequest,
    SignaturePromiseError,
)
from chainsig.requests import (
    GAS_FOR_SIGN_CALL,
    MAX_PENDING_REQUESTS,
    TERA_GAS,
    PendingRequests,
    Transfer,
    refund_on_fail,
    refund_on_success,
    signature_deposit,
)
from chainsig.state import (
    InitializingContractState,
    NotInitializedContractState,
    ProtocolContractState,
    ResharingContractState,
    RunningContractState,
    state_name,
)
from chainsig.update import (
    DeployContract,
    FunctionCall,
    ProposeUpdateArgs,
    ProposedUpdates,
)

logger = logging.getLogger(__name__)

CONTRACT_VERSION = "0.1.0"
LATEST_KEY_VERSION = 0
UPDATE_CONFIG_GAS = 5 * TERA_GAS


def _unexpected(state: ProtocolContractState, message: str | None = None) -> ContractError:
    return ContractError(
        InvalidState.UNEXPECTED_PROTOCOL_STATE,
        message if message is not None else state_name(state),
    )


class MpcContract:
    """The contract state with its user, node and maintenance calls."""

    def __init__(
        self, protocol_state: ProtocolContractState, config: Config | None = None
    ) -> None:
        self._state: ProtocolContractState = protocol_state
        self._config = config if config is not None else Config()
        self._pending = PendingRequests()
        self._proposed_updates = ProposedUpdates()
        self._data_counter = 0
        self.transfers: list[Transfer] = []
        self.code: bytes | None = None

    # Construction

    @classmethod
    def init(
        cls,
        threshold: int,
        candidates: Mapping[str, CandidateInfo] | Candidates,
        config: Config | None,
    ) -> MpcContract:
        """Start in the initializing phase with the given candidates."""
        if isinstance(candidates, Candidates):
            entries = dict(candidates.candidates)
        else:
            entries = dict(candidates)
        logger.info("init: threshold=%s, candidates=%s", threshold, sorted(entries))
        if threshold > len(entries):
            raise ContractError(InitError.THRESHOLD_TOO_HIGH)
        state = InitializingContractState(
            candidates=Candidates(entries), threshold=threshold
        )
        return cls(state, config)

    @classmethod
    def init_running(
        cls,
        epoch: int,
        participants: Participants,
        threshold: int,
        public_key: str,
        config: Config | None,
    ) -> MpcContract:
        """Start directly in the running phase, e.g. when moving the network."""
        logger.info(
            "init_running: epoch=%s, participants=%s, threshold=%s",
            epoch,
            participants.keys(),
            threshold,
        )
        if threshold > len(participants):
            raise ContractError(InitError.THRESHOLD_TOO_HIGH)
        state = RunningContractState(
            epoch=epoch,
            participants=participants.copy(),
            threshold=threshold,
            public_key=public_key,
        )
        return cls(state, config)

    # Views

    @property
    def state(self) -> ProtocolContractState:
        return self._state

    @property
    def config(self) -> Config:
        return self._config

    def public_key(self) -> str:
        """The root public key held by the participants."""
        if isinstance(self._state, (RunningContractState, ResharingContractState)):
            return self._state.public_key
        raise ContractError(InvalidState.PROTOCOL_STATE_NOT_RUNNING_OR_RESHARING)

    def latest_key_version(self) -> int:
        return LATEST_KEY_VERSION

    def experimental_signature_deposit(self) -> int:
        """Deposit asked for a new request; grows with the number pending."""
        return signature_deposit(len(self._pending))

    def version(self) -> str:
        return CONTRACT_VERSION

    # Helpers

    def _voter(self, signer: str) -> str:
        state = self._state
        if isinstance(state, InitializingContractState):
            members: Any = state.candidates
        elif isinstance(state, RunningContractState):
            members = state.participants
        elif isinstance(state, ResharingContractState):
            members = state.old_participants
        else:
            raise _unexpected(state)
        if signer not in members:
            raise ContractError(VoteError.VOTER_NOT_PARTICIPANT)
        return signer

    def _threshold(self) -> int:
        state = self._state
        if isinstance(state, NotInitializedContractState):
            raise _unexpected(state)
        return state.threshold

    def _next_data_id(self) -> bytes:
        self._data_counter += 1
        return hashlib.sha256(f"yield-{self._data_counter}".encode()).digest()

    # Node calls

    def join(self, signer: str, url: str, cipher_pk: bytes, sign_pk: str) -> None:
        """Register ``signer`` as a candidate to join the running network."""
        logger.info("join: signer=%s, url=%s", signer, url)
        state = self._state
        if not isinstance(state, RunningContractState):
            raise ContractError(InvalidState.PROTOCOL_STATE_NOT_RUNNING)
        if signer in state.participants:
            raise ContractError(JoinError.JOIN_ALREADY_PARTICIPANT)
        state.candidates.insert(
            signer,
            CandidateInfo(account_id=signer, url=url, cipher_pk=cipher_pk, sign_pk=sign_pk),
        )

    def _start_resharing(
        self, state: RunningContractState, new_participants: Participants
    ) -> None:
        self._state = ResharingContractState(
            old_epoch=state.epoch,
            old_participants=state.participants.copy(),
            new_participants=new_participants,
            threshold=state.threshold,
            public_key=state.public_key,
        )

    def vote_join(self, signer: str, candidate: str) -> bool:
        """Vote to admit a candidate; True once the threshold starts a reshare."""
        logger.info("vote_join: signer=%s, candidate=%s", signer, candidate)
        voter = self._voter(signer)
        state = self._state
        if not isinstance(state, RunningContractState):
            raise _unexpected(state)
        info = state.candidates.get(candidate)
        if info is None:
            raise ContractError(VoteError.JOIN_NOT_CANDIDATE)
        voted = state.join_votes.entry(candidate)
        voted.add(voter)
        if len(voted) < state.threshold:
            return False
        new_participants = state.participants.copy()
        new_participants.insert(candidate, ParticipantInfo.from_candidate(info))
        self._start_resharing(state, new_participants)
        return True

    def vote_leave(self, signer: str, kick: str) -> bool:
        """Vote to remove a participant; True once the threshold starts a reshare."""
        logger.info("vote_leave: signer=%s, kick=%s", signer, kick)
        voter = self._voter(signer)
        state = self._state
        if not isinstance(state, RunningContractState):
            raise _unexpected(state)
        if kick not in state.participants:
            raise ContractError(VoteError.KICK_NOT_PARTICIPANT)
        if len(state.participants) <= state.threshold:
            raise ContractError(VoteError.PARTICIPANTS_BELOW_THRESHOLD)
        voted = state.leave_votes.entry(kick)
        voted.add(voter)
        if len(voted) < state.threshold:
            return False
        new_participants = state.participants.copy()
        new_participants.remove(kick)
        self._start_resharing(state, new_participants)
        return True

    def vote_pk(self, signer: str, public_key: str) -> bool:
        """Vote for the generated root key; True once it is agreed on."""
        logger.info("vote_pk: signer=%s, public_key=%s", signer, public_key)
        voter = self._voter(signer)
        state = self._state
        if isinstance(state, InitializingContractState):
            voted = state.pk_votes.entry(public_key)
            voted.add(voter)
            if len(voted) < state.threshold:
                return False
            self._state = RunningContractState(
                epoch=0,
                participants=Participants.from_candidates(state.candidates),
                threshold=state.threshold,
                public_key=public_key,
            )
            return True
        if (
            isinstance(state, (RunningContractState, ResharingContractState))
            and state.public_key == public_key
        ):
            return True
        raise _unexpected(state)

    def vote_reshared(self, signer: str, epoch: int) -> bool:
        """Vote that resharing into ``epoch`` finished; True once it is agreed on."""
        logger.info("vote_reshared: signer=%s, epoch=%s", signer, epoch)
        voter = self._voter(signer)
        state = self._state
        if isinstance(state, ResharingContractState):
            if state.old_epoch + 1 != epoch:
                raise ContractError(InvalidState.EPOCH_MISMATCH)
            state.finished_votes.add(voter)
            if len(state.finished_votes) < state.threshold:
                return False
            self._state = RunningContractState(
                epoch=state.old_epoch + 1,
                participants=state.new_participants.copy(),
                threshold=state.threshold,
                public_key=state.public_key,
            )
            return True
        if isinstance(state, RunningContractState):
            if state.epoch == epoch:
                return True
            raise _unexpected(state, "Running: invalid epoch")
        raise _unexpected(state)

    # Updates

    def propose_update(
        self, signer: str, args: ProposeUpdateArgs, attached_deposit: int
    ) -> int:
        """Propose new code and/or config; any deposit beyond what is needed is refunded."""
        proposer = self._voter(signer)
        required = ProposedUpdates.required_deposit(args.code, args.config)
        if attached_deposit < required:
            raise ContractError(
                InvalidParameters.INSUFFICIENT_DEPOSIT,
                f"Attached {attached_deposit}, Required {required}",
            )
        update_id = self._proposed_updates.propose(args.code, args.config)
        diff = attached_deposit - required
        if diff > 0:
            self.transfers.append(Transfer(proposer, diff))
        return update_id

    def vote_update(self, signer: str, update_id: int) -> bool:
        """Vote for an update; True once the threshold is met and it is applied."""
        logger.info("vote_update: signer=%s, id=%s", signer, update_id)
        threshold = self._threshold()
        voter = self._voter(signer)
        votes = self._proposed_updates.vote(update_id, voter)
        if len(votes) < threshold:
            return False
        for action in self._proposed_updates.do_update(update_id, UPDATE_CONFIG_GAS):
            self._apply(action)
        return True

    def _apply(self, action: DeployContract | FunctionCall) -> None:
        if isinstance(action, DeployContract):
            self.code = action.code
        elif action.method_name == "update_config":
            (config_data,) = json.loads(action.args)
            self.update_config(Config.from_dict(config_data))
        # "migrate" keeps the current state: there is only one state version.

    def update_config(self, config: Config) -> None:
        self._config = copy.deepcopy(config)

    # Signature requests

    def submit_request(
        self, request: SignatureRequest, deposit: int, prepaid_gas: int
    ) -> int:
        """Queue a signature request and return the deposit it required."""
        pending = len(self._pending)
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
        if request in self._pending:
            raise ContractError(SignError.REQUEST_COLLISION)
        logger.info("sign: request=%s", request)
        self._pending.mark_received(request)
        self._pending.add(request, self._next_data_id())
        return required

    def clear_state_on_finish(
        self, contract_request: ContractSignatureRequest, signature: Any
    ) -> Any:
        """Drop a finished request and refund; ``signature`` is None on timeout.

        Returns the signature, or SignaturePromiseError.FAILED when there was none.
        """
        self._pending.remove(contract_request.request)
        if signature is None:
            self.transfers.append(refund_on_fail(contract_request))
            return SignaturePromiseError.FAILED
        refund = refund_on_success(contract_request)
        if refund is not None:
            self.transfers.append(refund)
        return signature

    def return_signature_on_finish(self, result: Any) -> Any:
        """Hand the signature to the caller, or raise a timeout error."""
        if isinstance(result, SignaturePromiseError):
            raise ContractError(SignError.TIMEOUT)
        logger.info("Signature is ready.")
        return result