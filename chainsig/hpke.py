"""Hybrid public-key encryption between nodes.

Base mode with the DHKEM(X25519, HKDF-SHA256) KEM, HKDF-SHA384 as the key
schedule KDF and ChaCha20-Poly1305 as the AEAD.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field
from typing import Callable

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

# Context string that binds derived keys to this use; acts as a key version.
INFO_ENTROPY = b"mpc-key-v1"

KEY_SIZE = 32
TAG_SIZE = 16
_NONCE_SIZE = 12
_AEAD_KEY_SIZE = 32

_KEM_ID = 0x0020  # DHKEM(X25519, HKDF-SHA256)
_KDF_ID = 0x0002  # HKDF-SHA384
_AEAD_ID = 0x0003  # ChaCha20Poly1305
_MODE_BASE = 0

_VERSION_LABEL = b"HPKE-v1"
_KEM_SUITE_ID = b"KEM" + _KEM_ID.to_bytes(2, "big")
_HPKE_SUITE_ID = (
    b"HPKE"
    + _KEM_ID.to_bytes(2, "big")
    + _KDF_ID.to_bytes(2, "big")
    + _AEAD_ID.to_bytes(2, "big")
)

_HashFn = Callable[..., "hashlib._Hash"]


class HpkeError(Exception):
    """Raised when keys are malformed or a message cannot be opened."""


def _extract(hash_fn: _HashFn, salt: bytes, ikm: bytes) -> bytes:
    return hmac.new(salt, ikm, hash_fn).digest()


def _expand(hash_fn: _HashFn, prk: bytes, info: bytes, length: int) -> bytes:
    out = b""
    block = b""
    counter = 1
    while len(out) < length:
        block = hmac.new(prk, block + info + bytes([counter]), hash_fn).digest()
        out += block
        counter += 1
    return out[:length]


def _labeled_extract(
    hash_fn: _HashFn, suite_id: bytes, salt: bytes, label: bytes, ikm: bytes
) -> bytes:
    return _extract(hash_fn, salt, _VERSION_LABEL + suite_id + label + ikm)


def _labeled_expand(
    hash_fn: _HashFn,
    suite_id: bytes,
    prk: bytes,
    label: bytes,
    info: bytes,
    length: int,
) -> bytes:
    labeled_info = length.to_bytes(2, "big") + _VERSION_LABEL + suite_id + label + info
    return _expand(hash_fn, prk, labeled_info, length)


def _kem_shared_secret(dh: bytes, kem_context: bytes) -> bytes:
    prk = _labeled_extract(hashlib.sha256, _KEM_SUITE_ID, b"", b"eae_prk", dh)
    return _labeled_expand(
        hashlib.sha256, _KEM_SUITE_ID, prk, b"shared_secret", kem_context, 32
    )


def _key_schedule(shared_secret: bytes, info: bytes) -> tuple[bytes, bytes]:
    h = hashlib.sha384
    psk_id_hash = _labeled_extract(h, _HPKE_SUITE_ID, b"", b"psk_id_hash", b"")
    info_hash = _labeled_extract(h, _HPKE_SUITE_ID, b"", b"info_hash", info)
    context = bytes([_MODE_BASE]) + psk_id_hash + info_hash
    secret = _labeled_extract(h, _HPKE_SUITE_ID, shared_secret, b"secret", b"")
    key = _labeled_expand(h, _HPKE_SUITE_ID, secret, b"key", context, _AEAD_KEY_SIZE)
    nonce = _labeled_expand(
        h, _HPKE_SUITE_ID, secret, b"base_nonce", context, _NONCE_SIZE
    )
    return key, nonce


def _exchange(private: X25519PrivateKey, public_bytes: bytes) -> bytes:
    try:
        return private.exchange(X25519PublicKey.from_public_bytes(public_bytes))
    except ValueError as exc:
        raise HpkeError(f"key exchange failed: {exc}") from exc


def _raw_public(key: X25519PublicKey) -> bytes:
    return key.public_bytes(Encoding.Raw, PublicFormat.Raw)


def _key_bytes(data: bytes, what: str) -> bytes:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"{what} must be bytes")
    data = bytes(data)
    if len(data) != KEY_SIZE:
        raise ValueError(f"{what} must be {KEY_SIZE} bytes, got {len(data)}")
    return data


@dataclass(frozen=True)
class Ciphered:
    """An encrypted message: the encapsulated key, the ciphertext and its tag."""

    encapped_key: bytes
    text: bytes
    tag: bytes


@dataclass(frozen=True)
class PublicKey:
    """An X25519 public key that messages can be encrypted to."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _key_bytes(self.data, "public key"))

    def to_bytes(self) -> bytes:
        return self.data

    @classmethod
    def from_bytes(cls, data: bytes) -> PublicKey:
        return cls(data)

    def encrypt(self, message: bytes, associated_data: bytes) -> Ciphered:
        """Seal ``message`` to this key, authenticating ``associated_data``."""
        ephemeral = X25519PrivateKey.generate()
        enc = _raw_public(ephemeral.public_key())
        dh = _exchange(ephemeral, self.data)
        shared_secret = _kem_shared_secret(dh, enc + self.data)
        key, nonce = _key_schedule(shared_secret, INFO_ENTROPY)
        sealed = ChaCha20Poly1305(key).encrypt(
            nonce, bytes(message), bytes(associated_data)
        )
        return Ciphered(
            encapped_key=enc, text=sealed[:-TAG_SIZE], tag=sealed[-TAG_SIZE:]
        )


@dataclass(frozen=True)
class SecretKey:
    """An X25519 secret key that opens messages sealed to its public key."""

    data: bytes = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _key_bytes(self.data, "secret key"))

    def _private(self) -> X25519PrivateKey:
        return X25519PrivateKey.from_private_bytes(self.data)

    def to_bytes(self) -> bytes:
        return self.data

    @classmethod
    def from_bytes(cls, data: bytes) -> SecretKey:
        return cls(data)

    def decrypt(self, cipher: Ciphered, associated_data: bytes) -> bytes:
        """Open ``cipher``; raises HpkeError if it was not sealed to this key."""
        enc = bytes(cipher.encapped_key)
        if len(enc) != KEY_SIZE:
            raise HpkeError("encapsulated key has the wrong length")
        if len(cipher.tag) != TAG_SIZE:
            raise HpkeError("tag has the wrong length")
        private = self._private()
        dh = _exchange(private, enc)
        own_public = _raw_public(private.public_key())
        shared_secret = _kem_shared_secret(dh, enc + own_public)
        key, nonce = _key_schedule(shared_secret, INFO_ENTROPY)
        try:
            return ChaCha20Poly1305(key).decrypt(
                nonce, bytes(cipher.text) + bytes(cipher.tag), bytes(associated_data)
            )
        except InvalidTag as exc:
            raise HpkeError("message authentication failed") from exc

    def public_key(self) -> PublicKey:
        return PublicKey(_raw_public(self._private().public_key()))


def generate() -> tuple[SecretKey, PublicKey]:
    """Create a fresh key pair."""
    private = X25519PrivateKey.generate()
    raw = private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    return SecretKey(raw), PublicKey(_raw_public(private.public_key()))