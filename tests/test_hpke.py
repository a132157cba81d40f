import pytest

from chainsig.hpke import (
    TAG_SIZE,
    Ciphered,
    HpkeError,
    PublicKey,
    SecretKey,
    generate,
)

SK_HEX = "cf3df427dc1377914349b592cfff8deb4b9f8ab1cc4baa8e8e004b6502ac1ca0"
PK_HEX = "0e6d143bff1d67f297ac68cb9be3667e38f1dc2b244be48bf1d6c6bd7d367c3c"


def test_encrypt_decrypt():
    sk, pk = generate()
    msg = b"hello world"
    associated_data = b"associated data"
    cipher = pk.encrypt(msg, associated_data)
    assert sk.decrypt(cipher, associated_data) == msg


def test_serialization_format():
    sk = SecretKey.from_bytes(bytes.fromhex(SK_HEX))
    pk = PublicKey.from_bytes(bytes.fromhex(PK_HEX))
    assert sk.public_key() == pk


def test_key_bytes_round_trip():
    sk = SecretKey.from_bytes(bytes.fromhex(SK_HEX))
    pk = PublicKey.from_bytes(bytes.fromhex(PK_HEX))
    assert sk.to_bytes().hex() == SK_HEX
    assert pk.to_bytes().hex() == PK_HEX


def test_generated_pair_matches():
    sk, pk = generate()
    assert sk.public_key() == pk
    assert SecretKey.from_bytes(sk.to_bytes()).public_key() == pk


def test_ciphertext_layout():
    _, pk = generate()
    msg = b"some payload bytes"
    cipher = pk.encrypt(msg, b"")
    assert len(cipher.text) == len(msg)
    assert len(cipher.tag) == TAG_SIZE
    assert len(cipher.encapped_key) == 32
    assert cipher.text != msg


def test_empty_message_round_trip():
    sk, pk = generate()
    assert sk.decrypt(pk.encrypt(b"", b"ad"), b"ad") == b""


def test_each_encryption_uses_fresh_key():
    _, pk = generate()
    first = pk.encrypt(b"same", b"")
    second = pk.encrypt(b"same", b"")
    assert first.encapped_key != second.encapped_key


def test_wrong_associated_data_fails():
    sk, pk = generate()
    cipher = pk.encrypt(b"hello world", b"right")
    with pytest.raises(HpkeError):
        sk.decrypt(cipher, b"wrong")


def test_tampered_text_fails():
    sk, pk = generate()
    cipher = pk.encrypt(b"hello world", b"")
    flipped = bytes([cipher.text[0] ^ 1]) + cipher.text[1:]
    with pytest.raises(HpkeError):
        sk.decrypt(Ciphered(cipher.encapped_key, flipped, cipher.tag), b"")


def test_wrong_secret_key_fails():
    _, pk = generate()
    other_sk, _ = generate()
    cipher = pk.encrypt(b"hello world", b"")
    with pytest.raises(HpkeError):
        other_sk.decrypt(cipher, b"")


def test_bad_tag_length_fails():
    sk, pk = generate()
    cipher = pk.encrypt(b"hello world", b"")
    with pytest.raises(HpkeError):
        sk.decrypt(Ciphered(cipher.encapped_key, cipher.text, cipher.tag[:-1]), b"")


@pytest.mark.parametrize("size", [0, 31, 33])
def test_wrong_key_length_rejected(size):
    with pytest.raises(ValueError):
        PublicKey.from_bytes(bytes(size))
    with pytest.raises(ValueError):
        SecretKey.from_bytes(bytes(size))