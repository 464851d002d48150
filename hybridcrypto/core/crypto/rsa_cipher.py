"""
RSA Key Cipher
==============

Asymmetric layer of the hybrid engine: encrypts the one-time AES key
under an RSA public key.

Key material is loaded with the ``cryptography`` package. Accepted inputs:
    - PEM text or bytes (SubjectPublicKeyInfo, PKCS#1, PKCS#8)
    - DER bytes
    - XML-DSig <RSAKeyValue> documents (Base64 big-endian integers)
    - already-loaded RSA key objects

Padding:
    - OAEP with SHA-256 (default)
    - OAEP with SHA-1
    - PKCS#1 v1.5 (byte-compatible with older peers; avoid for new data)

Security Notes:
    - Every decryption failure raises the same CryptoError, with no cause
      attached, so callers cannot distinguish a wrong key from corrupt data
    - Encrypted (password-protected) private keys are not supported
"""

from __future__ import annotations

import base64
import binascii
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Final, Optional, Union
from xml.etree import ElementTree

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from hybridcrypto.core.crypto.exceptions import (
    CryptoError,
    DECRYPTION_FAILED_MESSAGE,
    KeyFormatError,
)
from hybridcrypto.security.constants import (
    ABSOLUTE_MIN_RSA_KEY_BITS,
    DEFAULT_MIN_RSA_KEY_BITS,
    PKCS1V15_OVERHEAD,
)

PublicKeyInput = Union[str, bytes, rsa.RSAPublicKey, rsa.RSAPrivateKey]
PrivateKeyInput = Union[str, bytes, rsa.RSAPrivateKey]

_PEM_MARKER: Final[bytes] = b"-----BEGIN"
XML_KEY_MARKER: Final[bytes] = b"<RSAKeyValue"


class WrapPadding(Enum):
    """RSA encryption padding used to wrap the symmetric key."""

    OAEP_SHA256 = "oaep-sha256"
    OAEP_SHA1 = "oaep-sha1"
    PKCS1V15 = "pkcs1v15"

    @classmethod
    def parse(cls, value: str | WrapPadding) -> WrapPadding:
        if isinstance(value, WrapPadding):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown wrap padding: {value!r}")

    def to_padding(self) -> padding.AsymmetricPadding:
        if self is WrapPadding.PKCS1V15:
            return padding.PKCS1v15()
        algorithm = hashes.SHA256() if self is WrapPadding.OAEP_SHA256 else hashes.SHA1()
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=algorithm),
            algorithm=algorithm,
            label=None,
        )

    def overhead(self) -> int:
        """Bytes of the modulus consumed by the padding scheme."""
        if self is WrapPadding.PKCS1V15:
            return PKCS1V15_OVERHEAD
        digest_size = hashes.SHA256.digest_size if self is WrapPadding.OAEP_SHA256 else hashes.SHA1.digest_size
        return 2 * digest_size + 2


class AsymmetricKeyCipher(ABC):
    """Encrypts short payloads under a public key and reverses it with the private key."""

    __slots__ = ()

    @abstractmethod
    def encrypt(self, data: bytes, public_key: Any) -> bytes:
        """Encrypt ``data``; KeyFormatError on bad keys, CryptoError when too long."""

    @abstractmethod
    def decrypt(self, data: bytes, private_key: Any) -> bytes:
        """Decrypt ``data``; CryptoError on any failure."""

    @abstractmethod
    def max_payload(self, public_key: Any) -> int:
        """Largest payload ``encrypt`` accepts for this key."""


def _key_bytes(key: Any, kind: str) -> bytes:
    if isinstance(key, str):
        try:
            return key.strip().encode("ascii")
        except UnicodeEncodeError:
            raise KeyFormatError(f"{kind} key text is not ASCII") from None
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    raise KeyFormatError(f"Unsupported {kind} key type: {type(key).__name__}")


def _xml_key_fields(data: bytes, kind: str) -> ElementTree.Element:
    try:
        root = ElementTree.fromstring(data)
    except ElementTree.ParseError:
        raise KeyFormatError(f"XML {kind} key could not be parsed") from None
    if root.tag != "RSAKeyValue":
        raise KeyFormatError(f"XML {kind} key must be an RSAKeyValue document")
    return root


def _xml_int(root: ElementTree.Element, name: str, required: bool = True) -> Optional[int]:
    """Read one Base64 big-endian integer element of an RSAKeyValue document."""
    text = root.findtext(name)
    if text is None or not text.strip():
        if required:
            raise KeyFormatError(f"XML key is missing <{name}>")
        return None
    try:
        raw = base64.b64decode("".join(text.split()), validate=True)
    except (binascii.Error, ValueError):
        raise KeyFormatError(f"XML key element <{name}> is not valid Base64") from None
    return int.from_bytes(raw, "big")


def _load_xml_public_key(data: bytes) -> rsa.RSAPublicKey:
    root = _xml_key_fields(data, "public")
    numbers = rsa.RSAPublicNumbers(e=_xml_int(root, "Exponent"), n=_xml_int(root, "Modulus"))
    try:
        return numbers.public_key()
    except ValueError:
        raise KeyFormatError("XML public key is not a valid RSA key") from None


def _load_xml_private_key(data: bytes) -> rsa.RSAPrivateKey:
    root = _xml_key_fields(data, "private")
    public_numbers = rsa.RSAPublicNumbers(e=_xml_int(root, "Exponent"), n=_xml_int(root, "Modulus"))
    if _xml_int(root, "D", required=False) is None:
        raise KeyFormatError("XML key holds no private parameters")

    numbers = rsa.RSAPrivateNumbers(
        p=_xml_int(root, "P"),
        q=_xml_int(root, "Q"),
        d=_xml_int(root, "D"),
        dmp1=_xml_int(root, "DP"),
        dmq1=_xml_int(root, "DQ"),
        iqmp=_xml_int(root, "InverseQ"),
        public_numbers=public_numbers,
    )
    try:
        return numbers.private_key()
    except ValueError:
        raise KeyFormatError("XML private key is not a valid RSA key") from None


def load_public_key(key: PublicKeyInput) -> rsa.RSAPublicKey:
    """
    Load an RSA public key from PEM/DER/XML or pass a key object through.

    A private key object is accepted and reduced to its public half.

    Raises:
        KeyFormatError: If the key cannot be parsed or is not RSA
    """
    if isinstance(key, rsa.RSAPublicKey):
        return key
    if isinstance(key, rsa.RSAPrivateKey):
        return key.public_key()

    data = _key_bytes(key, "public")
    if data.lstrip().startswith(XML_KEY_MARKER):
        return _load_xml_public_key(data)

    try:
        if data.lstrip().startswith(_PEM_MARKER):
            loaded = serialization.load_pem_public_key(data)
        else:
            loaded = serialization.load_der_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise KeyFormatError("Public key could not be parsed") from None

    if not isinstance(loaded, rsa.RSAPublicKey):
        raise KeyFormatError("Only RSA public keys are supported")
    return loaded


def load_private_key(key: PrivateKeyInput) -> rsa.RSAPrivateKey:
    """
    Load an unencrypted RSA private key from PEM/DER/XML or pass a key object through.

    Raises:
        KeyFormatError: If the key cannot be parsed, is encrypted, or is not RSA
    """
    if isinstance(key, rsa.RSAPrivateKey):
        return key

    data = _key_bytes(key, "private")
    if data.lstrip().startswith(XML_KEY_MARKER):
        return _load_xml_private_key(data)

    try:
        if data.lstrip().startswith(_PEM_MARKER):
            loaded = serialization.load_pem_private_key(data, password=None)
        else:
            loaded = serialization.load_der_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise KeyFormatError("Private key could not be parsed") from None

    if not isinstance(loaded, rsa.RSAPrivateKey):
        raise KeyFormatError("Only RSA private keys are supported")
    return loaded


class RsaKeyCipher(AsymmetricKeyCipher):
    """
    RSA implementation of AsymmetricKeyCipher.

    Usage:
        cipher = RsaKeyCipher(WrapPadding.OAEP_SHA256)
        wrapped = cipher.encrypt(key_bytes, public_pem)
        key_bytes = cipher.decrypt(wrapped, private_pem)
    """

    __slots__ = ("_padding", "_min_key_bits")

    def __init__(
        self,
        wrap_padding: str | WrapPadding = WrapPadding.OAEP_SHA256,
        min_key_bits: int = DEFAULT_MIN_RSA_KEY_BITS,
    ) -> None:
        if min_key_bits < ABSOLUTE_MIN_RSA_KEY_BITS:
            raise ValueError(f"min_key_bits must be at least {ABSOLUTE_MIN_RSA_KEY_BITS}")
        self._padding = WrapPadding.parse(wrap_padding)
        self._min_key_bits = min_key_bits

    @property
    def wrap_padding(self) -> WrapPadding:
        return self._padding

    @property
    def min_key_bits(self) -> int:
        return self._min_key_bits

    def _check_size(self, key_size: int) -> None:
        if key_size < self._min_key_bits:
            raise KeyFormatError(
                f"RSA key of {key_size} bits is below the {self._min_key_bits}-bit minimum"
            )

    def max_payload(self, public_key: PublicKeyInput) -> int:
        loaded = load_public_key(public_key)
        return (loaded.key_size + 7) // 8 - self._padding.overhead()

    def encrypt(self, data: bytes, public_key: PublicKeyInput) -> bytes:
        """
        Encrypt a short payload under an RSA public key.

        Raises:
            KeyFormatError: If the key is malformed, not RSA, or too small
            CryptoError: If ``data`` exceeds the padding's maximum payload
        """
        loaded = load_public_key(public_key)
        self._check_size(loaded.key_size)

        limit = (loaded.key_size + 7) // 8 - self._padding.overhead()
        if len(data) > limit:
            raise CryptoError(f"Payload of {len(data)} bytes exceeds RSA maximum of {limit}")

        try:
            return loaded.encrypt(bytes(data), self._padding.to_padding())
        except ValueError as exc:
            raise CryptoError("RSA encryption failed") from exc

    def decrypt(self, data: bytes, private_key: PrivateKeyInput) -> bytes:
        """
        Decrypt an RSA-wrapped payload.

        Raises:
            KeyFormatError: If the key is malformed, not RSA, or too small
            CryptoError: On any decryption failure (single, constant message)
        """
        loaded = load_private_key(private_key)
        self._check_size(loaded.key_size)

        try:
            return loaded.decrypt(bytes(data), self._padding.to_padding())
        except ValueError:
            raise CryptoError(DECRYPTION_FAILED_MESSAGE) from None

    def __repr__(self) -> str:
        return f"RsaKeyCipher(padding={self._padding.value}, min_key_bits={self._min_key_bits})"
