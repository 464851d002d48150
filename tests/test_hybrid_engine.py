"""
Tests for the hybrid engine entry points.
"""

import base64
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from hybridcrypto.core.crypto.aes_cbc import CbcCipher
from hybridcrypto.core.crypto.exceptions import (
    ArgumentError,
    AuthenticationError,
    CryptoError,
    DECRYPTION_FAILED_MESSAGE,
    FormatError,
    KeyFormatError,
    PaddingError,
    SecurityWarning,
)
from hybridcrypto.core.crypto.frame_codec import EnvelopeFormat
from hybridcrypto.core.crypto.hybrid_engine import HybridCryptoEngine
from hybridcrypto.core.crypto.rsa_cipher import RsaKeyCipher, WrapPadding
from hybridcrypto.core.crypto.symmetric import CipherMode

# 4 (length) + 256 (RSA-2048 wrapped key) + 12 (nonce) + 16 (tag)
GCM_HEADER = 4 + 256 + 12 + 16
TEST_TEXT = "这是一个测试文本，用于混合加密解密测试。Hello HybridCrypto!"


@pytest.fixture
def engine():
    return HybridCryptoEngine()


@pytest.fixture
def cbc_engine():
    with pytest.warns(SecurityWarning):
        return HybridCryptoEngine(mode="cbc")


def test_hello_world_scenario(engine, keypair, other_keypair):
    envelope = engine.encrypt(b"hello world", keypair.public_pem)

    assert len(envelope) >= GCM_HEADER + 11
    assert engine.decrypt(envelope, keypair.private_pem) == b"hello world"
    with pytest.raises(CryptoError):
        engine.decrypt(envelope, other_keypair.private_pem)


@pytest.mark.parametrize("payload", [b"x", b"\x00" * 15, b"\xff" * 16, bytes(range(256)) * 40])
def test_roundtrip_various_payloads(engine, keypair, payload):
    envelope = engine.encrypt(payload, keypair.public_key)
    assert engine.decrypt(envelope, keypair.private_key) == payload


def test_roundtrip_with_der_keys(engine, keypair):
    envelope = engine.encrypt(b"der keys", keypair.public_der)
    assert engine.decrypt(envelope, keypair.private_der) == b"der keys"


def test_accepts_mutable_plaintext(engine, keypair):
    envelope = engine.encrypt(bytearray(b"mutable"), keypair.public_key)
    assert engine.decrypt(bytearray(envelope), keypair.private_key) == b"mutable"


def test_envelopes_are_unique(engine, keypair):
    first = engine.encrypt(b"same input", keypair.public_key)
    second = engine.encrypt(b"same input", keypair.public_key)

    assert first != second
    # Wrapped key, nonce and ciphertext all differ
    assert first[4:260] != second[4:260]
    assert first[260:272] != second[260:272]
    assert first[GCM_HEADER:] != second[GCM_HEADER:]


def test_every_bit_flip_in_tag_or_ciphertext_is_detected(engine, keypair):
    envelope = engine.encrypt(b"hello world", keypair.public_key)

    for index in range(260 + 12, len(envelope)):
        tampered = bytearray(envelope)
        tampered[index] ^= 1 << (index % 8)
        with pytest.raises(AuthenticationError):
            engine.decrypt(bytes(tampered), keypair.private_key)


def test_nonce_tampering_is_detected(engine, keypair):
    envelope = bytearray(engine.encrypt(b"hello world", keypair.public_key))
    envelope[262] ^= 0x80

    with pytest.raises(AuthenticationError):
        engine.decrypt(bytes(envelope), keypair.private_key)


def test_wrapped_key_tampering_is_rejected(engine, keypair):
    envelope = bytearray(engine.encrypt(b"hello world", keypair.public_key))
    envelope[100] ^= 0x01

    with pytest.raises(CryptoError):
        engine.decrypt(bytes(envelope), keypair.private_key)


@pytest.mark.parametrize("length", [0, 3, 4, 31, 100, GCM_HEADER - 1])
def test_truncated_envelope_is_format_error(engine, keypair, length):
    envelope = engine.encrypt(b"hello world", keypair.public_key)

    with pytest.raises((FormatError, ArgumentError)):
        engine.decrypt(envelope[:length], keypair.private_key)


def test_truncation_below_minimum_never_reaches_crypto(engine, keypair):
    envelope = engine.encrypt(b"hello world", keypair.public_key)
    with pytest.raises(FormatError):
        engine.decrypt(envelope[: GCM_HEADER - 1], keypair.private_key)


def test_corrupted_length_prefix_is_format_error(engine, keypair):
    envelope = engine.encrypt(b"hello world", keypair.public_key)

    for prefix in (b"\x00\x00\x00\x00", b"\xff\xff\xff\xff", b"\xff\xff\xff\x7f"):
        with pytest.raises(FormatError):
            engine.decrypt(prefix + envelope[4:], keypair.private_key)


def test_wrong_key_and_bad_tag_look_the_same(engine, keypair, other_keypair):
    envelope = engine.encrypt(b"hello world", keypair.public_key)
    bad_tag = bytearray(envelope)
    bad_tag[GCM_HEADER - 1] ^= 0x01

    with pytest.raises(CryptoError) as wrong_key:
        engine.decrypt(envelope, other_keypair.private_key)
    with pytest.raises(AuthenticationError) as tampered:
        engine.decrypt(bytes(bad_tag), keypair.private_key)

    assert str(wrong_key.value) == str(tampered.value) == DECRYPTION_FAILED_MESSAGE
    assert wrong_key.value.__cause__ is None
    assert tampered.value.__cause__ is None


def test_unwrap_failure_runs_decoy_open(keypair, other_keypair, recording_random):
    engine = HybridCryptoEngine(random_source=recording_random)
    envelope = HybridCryptoEngine().encrypt(b"hello world", keypair.public_key)

    with pytest.raises(CryptoError):
        engine.decrypt(envelope, other_keypair.private_key)

    decoys = [buf for buf in recording_random.buffers if len(buf) == 32]
    assert len(decoys) == 1
    assert decoys[0] == bytearray(32)


def test_symmetric_key_is_zeroed_after_encrypt(keypair, recording_random):
    engine = HybridCryptoEngine(random_source=recording_random)
    engine.encrypt(b"hello world", keypair.public_key)

    keys = [buf for buf in recording_random.buffers if len(buf) == 32]
    assert len(keys) == 1
    assert keys[0] == bytearray(32)


def test_empty_plaintext_rejected_before_crypto(keypair, recording_random):
    engine = HybridCryptoEngine(random_source=recording_random)

    for bad in (b"", None, bytearray()):
        with pytest.raises(ArgumentError):
            engine.encrypt(bad, keypair.public_key)
    assert recording_random.buffers == []


@pytest.mark.parametrize("bad_key", [None, "", b""])
def test_missing_keys_are_argument_errors(engine, keypair, bad_key):
    envelope = engine.encrypt(b"data", keypair.public_key)

    with pytest.raises(ArgumentError):
        engine.encrypt(b"data", bad_key)
    with pytest.raises(ArgumentError):
        engine.decrypt(envelope, bad_key)


def test_empty_envelope_is_argument_error(engine, keypair):
    with pytest.raises(ArgumentError):
        engine.decrypt(b"", keypair.private_key)
    with pytest.raises(ArgumentError):
        engine.decrypt(None, keypair.private_key)


def test_non_bytes_plaintext_is_argument_error(engine, keypair):
    with pytest.raises(ArgumentError):
        engine.encrypt("text is not bytes", keypair.public_key)


def test_malformed_public_key_is_key_format_error(engine):
    with pytest.raises(KeyFormatError):
        engine.encrypt(b"data", "not a key")


def test_rng_failure_propagates(keypair, failing_random):
    engine = HybridCryptoEngine(random_source=failing_random)
    with pytest.raises(CryptoError):
        engine.encrypt(b"data", keypair.public_key)


def test_cbc_roundtrip_and_layout(cbc_engine, keypair):
    envelope = cbc_engine.encrypt(b"hello world", keypair.public_key)

    # 4 + 256 + 16 (IV) + one padded block
    assert len(envelope) == 4 + 256 + 16 + 16
    assert cbc_engine.decrypt(envelope, keypair.private_key) == b"hello world"
    assert not cbc_engine.is_authenticated


def test_cbc_partial_block_is_padding_error(cbc_engine, keypair):
    envelope = cbc_engine.encrypt(b"hello world", keypair.public_key)

    with pytest.raises(PaddingError):
        cbc_engine.decrypt(envelope[:-1], keypair.private_key)


def test_cbc_wrong_key_is_rejected(cbc_engine, keypair, other_keypair):
    envelope = cbc_engine.encrypt(b"hello world", keypair.public_key)
    with pytest.raises(CryptoError):
        cbc_engine.decrypt(envelope, other_keypair.private_key)


def test_explicit_symmetric_strategy(keypair):
    with pytest.warns(SecurityWarning):
        engine = HybridCryptoEngine(symmetric=CbcCipher())
    assert engine.mode is CipherMode.CBC
    assert isinstance(engine.symmetric_cipher, CbcCipher)
    assert engine.decrypt(engine.encrypt(b"abc", keypair.public_key), keypair.private_key) == b"abc"


def test_modes_do_not_interoperate(engine, cbc_engine, keypair):
    envelope = engine.encrypt(b"hello world, this is gcm", keypair.public_key)
    with pytest.raises(CryptoError):
        cbc_engine.decrypt(envelope, keypair.private_key)


@pytest.mark.parametrize("padding", list(WrapPadding))
def test_every_wrap_padding_roundtrips(keypair, padding):
    engine = HybridCryptoEngine(key_cipher=RsaKeyCipher(padding))
    envelope = engine.encrypt(b"padding", keypair.public_key)
    assert engine.decrypt(envelope, keypair.private_key) == b"padding"


def test_tagged_envelopes(keypair):
    engine = HybridCryptoEngine(envelope_format=EnvelopeFormat.TAGGED)
    envelope = engine.encrypt(b"tagged", keypair.public_key)

    assert envelope[0] == CipherMode.AEAD.value
    assert engine.decrypt(envelope, keypair.private_key) == b"tagged"

    # A legacy reader sees a nonsensical key length
    with pytest.raises(FormatError):
        HybridCryptoEngine().decrypt(envelope, keypair.private_key)

    with pytest.warns(SecurityWarning):
        cbc_tagged = HybridCryptoEngine(mode="cbc", envelope_format="tagged")
    with pytest.raises(FormatError, match="does not match"):
        cbc_tagged.decrypt(envelope, keypair.private_key)


def test_text_roundtrip(engine, keypair):
    token = engine.encrypt_text(TEST_TEXT, keypair.public_pem)

    base64.b64decode(token, validate=True)
    assert engine.decrypt_text(token, keypair.private_pem) == TEST_TEXT


def test_text_with_other_encoding(engine, keypair):
    token = engine.encrypt_text("Grüße", keypair.public_key, encoding="utf-16")
    assert engine.decrypt_text(token, keypair.private_key, encoding="utf-16") == "Grüße"


def test_xml_keys_with_pkcs1v15_padding(keypair):
    engine = HybridCryptoEngine(key_cipher=RsaKeyCipher(WrapPadding.PKCS1V15))

    envelope = engine.encrypt(b"hello world", keypair.public_xml)

    assert engine.decrypt(envelope, keypair.private_xml) == b"hello world"
    # Same key pair, so PEM and XML halves interoperate
    assert engine.decrypt(envelope, keypair.private_pem) == b"hello world"


def test_decrypt_text_rejects_undecodable_plaintext(engine, keypair):
    envelope = engine.encrypt(b"\xff\xfe\xfa\x80", keypair.public_key)
    token = base64.b64encode(envelope).decode("ascii")

    with pytest.raises(FormatError, match="utf-8"):
        engine.decrypt_text(token, keypair.private_key)


def test_decrypt_text_with_mismatched_encoding(engine, keypair):
    token = engine.encrypt_text("Grüße", keypair.public_key, encoding="latin-1")

    with pytest.raises(FormatError):
        engine.decrypt_text(token, keypair.private_key, encoding="utf-8")


def test_text_rejects_empty_and_invalid_input(engine, keypair):
    with pytest.raises(ArgumentError):
        engine.encrypt_text("", keypair.public_key)
    with pytest.raises(ArgumentError):
        engine.decrypt_text("", keypair.private_key)
    with pytest.raises(FormatError):
        engine.decrypt_text("not base64 at all!", keypair.private_key)


def test_concurrent_use_of_one_engine(engine, keypair):
    payloads = [f"message {i}".encode() for i in range(16)]

    def roundtrip(payload):
        return engine.decrypt(engine.encrypt(payload, keypair.public_key), keypair.private_key)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(roundtrip, payloads))

    assert results == payloads


def test_rejections_are_logged_without_secrets(engine, keypair, other_keypair, caplog):
    envelope = engine.encrypt(b"hello world", keypair.public_key)

    with caplog.at_level(logging.DEBUG, logger="hybridcrypto"):
        with pytest.raises(CryptoError):
            engine.decrypt(envelope, other_keypair.private_key)

    assert any(r.levelno == logging.WARNING for r in caplog.records)
    assert all("hello world" not in r.getMessage() for r in caplog.records)


def test_repr_is_safe(engine):
    text = repr(engine)
    assert "AEAD" in text
    assert "legacy" in text
