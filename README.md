# chainsig

`chainsig` models the coordination contract of a threshold (MPC) signing network.
It also holds the configuration, serialization and key-encryption pieces that the
nodes of such a network share.

## Modules

- `chainsig.contract.MpcContract` is the protocol state machine. It starts with
  `MpcContract.init(threshold, candidates, config)`, which puts it in the initializing
  phase, or with `MpcContract.init_running(...)`, which puts it straight in the running
  phase. The calls that change state take the caller's account id as `signer`. They are
  `join`, `vote_join`, `vote_leave`, `vote_pk`, `vote_reshared`, `propose_update`,
  `vote_update` and `update_config`. The views are `state`, `config`, `public_key()`,
  `latest_key_version()` (always `0`), `experimental_signature_deposit()` and
  `version()`.
- `chainsig.state` defines the protocol phases and `state_name`. The phases are
  `NotInitializedContractState`, `InitializingContractState`, `RunningContractState`
  and `ResharingContractState`.
- `chainsig.primitives` defines the bookkeeping types:
  - `Participants` and `Candidates`, both ordered by account id. `Participants` keeps
    the numeric id each account got first.
  - `Votes` and `PkVotes`.
  - `CandidateInfo` and `ParticipantInfo`.
  - `SignRequest`, `SignatureRequest`, `ContractSignatureRequest`, `YieldIndex`,
    `StorageKey` and `SignaturePromiseError`.
- `chainsig.requests` handles signature requests:
  - `signature_deposit(pending)`: 1 yoctoNEAR while at most 3 requests are pending,
    then 0.05 NEAR for each request beyond 3.
  - `validate_sign_request`: checks the payload, key version, deposit, gas and
    pending limit.
  - `PendingRequests`: the requests still waiting for a signature.
  - `refund_on_success` and `refund_on_fail`: return a `Transfer`.
- `chainsig.update.ProposedUpdates` holds proposals of new contract code and/or a new
  `Config`. Ids are sequential. `vote` collects voters, and `do_update` turns a proposal
  into `DeployContract` / `FunctionCall` actions. `bytes_used` and `required_deposit`
  estimate the storage deposit a proposal needs, at 10^19 yoctoNEAR per byte.
- `chainsig.config` defines `Config`, `ProtocolConfig`, `TripleConfig`,
  `PresignatureConfig` and `SignatureConfig`, with their defaults. Each has
  `to_dict`/`from_dict`, and `Config` also has `to_json`/`from_json` and `get(key)`.
  Unknown keys are kept in `other`, so they survive a round trip. The helpers
  `secs_to_ms`, `min_to_ms` and `hours_to_ms` convert durations.
- `chainsig.node_config` holds the node-side configuration:
  - `merge(base, new)`: a recursive JSON merge that returns a new value.
  - `OverrideConfig`, `NetworkConfig` and `LocalConfig`.
  - `NodeConfig`, built with `from_local` or with `try_from_contract`. Either way the
    local overrides are applied over the protocol settings.
- `chainsig.types` reads secp256k1 scalars with `scalar_from_bytes` and
  `scalar_from_non_biased`. `SerializableScalar` has Borsh and JSON forms: 32
  big-endian bytes, or `{"scalar": "<upper-case hex>"}`.
- `chainsig.hpke` seals messages between nodes with HPKE in base mode. The suite is
  X25519, HKDF-SHA256 for the KEM, HKDF-SHA384 for the key schedule, and
  ChaCha20-Poly1305. It provides `generate()`, `PublicKey.encrypt`,
  `SecretKey.decrypt`, `SecretKey.public_key` and `Ciphered`. Failures raise
  `HpkeError`.
- `chainsig.errors` defines `ContractError` and the error kinds it carries:
  `SignError`, `VoteError`, `InvalidState`, `InvalidParameters` and so on.

## Installation

```
pip install .
```

## Example

```python
from chainsig.contract import MpcContract
from chainsig.primitives import CandidateInfo

sign_pk = "ed25519:placeholder"
candidates = {
    name: CandidateInfo(account_id=name, url="127.0.0.1", cipher_pk=bytes(32), sign_pk=sign_pk)
    for name in ("alice.near", "bob.near", "caesar.near")
}

contract = MpcContract.init(2, candidates, None)
contract.vote_pk("alice.near", "secp256k1:placeholder")         # False: one vote so far
assert contract.vote_pk("bob.near", "secp256k1:placeholder")    # threshold reached, now running
print(contract.public_key())
print(contract.experimental_signature_deposit())                # 1 while few requests are pending
```

Encrypting a message for another node:

```python
from chainsig import hpke

sk, pk = hpke.generate()
sealed = pk.encrypt(b"hello world", b"associated data")
assert sk.decrypt(sealed, b"associated data") == b"hello world"
```

## Errors

Errors raise `chainsig.errors.ContractError`. Its `kind` attribute says which error
it is, for example `VoteError.VOTER_NOT_PARTICIPANT` or
`SignError.REQUEST_LIMIT_EXCEEDED`. Its optional `message` attribute adds context.
Its string form is the kind's description, followed by `: message` when a message is
set.

## Signature requests

1. `MpcContract.submit_request(request, deposit, prepaid_gas)` queues a
   `SignatureRequest` and returns the deposit it required. It checks four things:
   - the deposit is at least the required amount;
   - at least 50 Tgas is prepaid;
   - no more than 16 requests are pending;
   - the same request is not already pending.
2. `clear_state_on_finish(contract_request, signature)` removes the request from the
   pending set and records a refund. On success the refund is whatever was paid beyond
   the required deposit. When `signature` is `None` (a timeout), the whole deposit is
   refunded and `SignaturePromiseError.FAILED` is returned.
3. `return_signature_on_finish(result)` hands the signature back, or raises a
   `SignError.TIMEOUT` error.

Refunds are not sent anywhere. They are appended to `MpcContract.transfers` as
`Transfer(receiver, amount)` records. Refunds of excess update deposits are recorded
there too.

When an update is applied, deploying code only stores the bytes in `MpcContract.code`.
A config update replaces the contract's `Config`.

## What the package does not do

- It has no elliptic-curve arithmetic. It does not derive per-account keys or check
  signatures, and it has no call for a node to respond to a request.
- `SignatureRequest` values are built by the caller from `SerializableScalar`
  values; the package does not derive the epsilon from an account and path.
- It runs no node, no RPC client, no indexer and no network service.
- It keeps all state in memory, with no persistent storage.

## Tests

```
pip install ".[test]"
pytest
```