"""
Shared fixtures: RSA key pairs, instrumented collaborators, clean global state.
"""

from __future__ import annotations

import base64
import logging
from typing import Iterator

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from hybridcrypto.core.config import HybridConfig
from hybridcrypto.core.crypto.exceptions import CryptoError
from hybridcrypto.core.crypto.random_source import SecureRandom, SystemRandom


class KeyPair:
    """RSA key pair in object, PEM and DER form."""

    def __init__(self, bits: int) -> None:
        self.private_key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
        self.public_key = self.private_key.public_key()
        self.bits = bits

    @property
    def public_pem(self) -> str:
        return self.public_key.public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")

    @property
    def private_pem(self) -> str:
        return self.private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode("ascii")

    @property
    def public_der(self) -> bytes:
        return self.public_key.public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    @property
    def private_der(self) -> bytes:
        return self.private_key.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )

    @property
    def public_xml(self) -> str:
        numbers = self.public_key.public_numbers()
        return _rsa_key_value(Modulus=numbers.n, Exponent=numbers.e)

    @property
    def private_xml(self) -> str:
        numbers = self.private_key.private_numbers()
        public = numbers.public_numbers
        return _rsa_key_value(
            Modulus=public.n,
            Exponent=public.e,
            P=numbers.p,
            Q=numbers.q,
            DP=numbers.dmp1,
            DQ=numbers.dmq1,
            InverseQ=numbers.iqmp,
            D=numbers.d,
        )


def _rsa_key_value(**fields: int) -> str:
    """Serialize key integers as an RSAKeyValue XML document."""
    parts = []
    for name, value in fields.items():
        raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
        parts.append(f"<{name}>{base64.b64encode(raw).decode('ascii')}</{name}>")
    return "<RSAKeyValue>" + "".join(parts) + "</RSAKeyValue>"


class RecordingRandom(SecureRandom):
    """SecureRandom that keeps a reference to every buffer it fills."""

    def __init__(self) -> None:
        self.buffers: list[bytearray] = []
        self._inner = SystemRandom()

    def fill_random(self, buffer: bytearray) -> None:
        self._inner.fill_random(buffer)
        self.buffers.append(buffer)


class FailingRandom(SecureRandom):
    """SecureRandom whose generator is always unavailable."""

    def fill_random(self, buffer: bytearray) -> None:
        raise CryptoError("Secure random source unavailable")


@pytest.fixture(scope="session")
def keypair() -> KeyPair:
    return KeyPair(2048)


@pytest.fixture(scope="session")
def other_keypair() -> KeyPair:
    return KeyPair(2048)


@pytest.fixture
def recording_random() -> RecordingRandom:
    return RecordingRandom()


@pytest.fixture
def failing_random() -> FailingRandom:
    return FailingRandom()


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch) -> Iterator[None]:
    """Isolate each test from HYBRIDCRYPTO_* variables and the config singleton."""
    import os

    for name in list(os.environ):
        if name.startswith("HYBRIDCRYPTO_"):
            monkeypatch.delenv(name, raising=False)
    HybridConfig.reset_instance()
    yield
    HybridConfig.reset_instance()


@pytest.fixture
def library_logger() -> Iterator[logging.Logger]:
    """The "hybridcrypto" logger, restored to a bare state afterwards."""
    logger = logging.getLogger("hybridcrypto")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in saved[0]:
        logger.addHandler(handler)
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
