"""
Symmetric Cipher Strategy
=========================

Common interface for the bulk-encryption layer of the hybrid engine.

Two interchangeable implementations exist:
    - AeadCipher (AES-256-GCM): authenticated, preferred
    - CbcCipher  (AES-256-CBC + PKCS7): compatibility fallback, NO integrity

The mode is chosen once when an engine is built (or from configuration)
and never switched per call. Key and nonce sizes are fixed per mode and
are not configurable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hybridcrypto.core.crypto.exceptions import ArgumentError
from hybridcrypto.security.constants import AES_KEY_SIZE


class CipherMode(Enum):
    """Symmetric mode of an engine. Values double as the tagged-framing byte."""

    AEAD = 0x01
    CBC = 0x02

    @property
    def is_authenticated(self) -> bool:
        return self is CipherMode.AEAD

    @classmethod
    def parse(cls, value: str | CipherMode) -> CipherMode:
        """Parse a mode from its configuration name ("aead"/"gcm" or "cbc")."""
        if isinstance(value, CipherMode):
            return value
        normalized = str(value).strip().lower()
        if normalized in ("aead", "gcm", "aes-gcm"):
            return cls.AEAD
        if normalized in ("cbc", "aes-cbc"):
            return cls.CBC
        raise ValueError(f"Unknown cipher mode: {value!r}")


@dataclass(frozen=True, slots=True)
class SealedPayload:
    """
    Output of a symmetric seal.

    Attributes:
        tag: 16-byte authentication tag (AEAD), or None (CBC)
        ciphertext: Encrypted payload without the tag
    """

    tag: Optional[bytes]
    ciphertext: bytes

    def __repr__(self) -> str:
        tag_len = len(self.tag) if self.tag is not None else 0
        return f"SealedPayload(tag_len={tag_len}, ciphertext_len={len(self.ciphertext)})"


class SymmetricCipher(ABC):
    """
    Bulk encryption under a single-use 256-bit key.

    Implementations are stateless and safe to share between threads.
    """

    __slots__ = ()

    @property
    @abstractmethod
    def mode(self) -> CipherMode:
        """The mode implemented by this cipher."""

    @property
    @abstractmethod
    def nonce_size(self) -> int:
        """Nonce/IV length in bytes."""

    @property
    @abstractmethod
    def tag_size(self) -> int:
        """Authentication tag length in bytes (0 when unauthenticated)."""

    @property
    def key_size(self) -> int:
        return AES_KEY_SIZE

    @property
    def is_authenticated(self) -> bool:
        return self.mode.is_authenticated

    @abstractmethod
    def seal(self, plaintext: bytes, key: bytes | bytearray, nonce: bytes) -> SealedPayload:
        """Encrypt plaintext, returning the (optional) tag and ciphertext."""

    @abstractmethod
    def open(
        self,
        ciphertext: bytes,
        tag: Optional[bytes],
        key: bytes | bytearray,
        nonce: bytes,
    ) -> bytes:
        """Decrypt ciphertext, verifying the tag first where the mode has one."""

    def _check_key_and_nonce(self, key: bytes | bytearray, nonce: bytes) -> None:
        if key is None or len(key) != AES_KEY_SIZE:
            raise ArgumentError(f"Key must be exactly {AES_KEY_SIZE} bytes")
        if nonce is None or len(nonce) != self.nonce_size:
            raise ArgumentError(f"Nonce must be exactly {self.nonce_size} bytes")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(mode={self.mode.name})"


def cipher_for_mode(mode: str | CipherMode) -> SymmetricCipher:
    """
    Build the cipher implementing a mode.

    Args:
        mode: CipherMode or its configuration name

    Returns:
        A new AeadCipher or CbcCipher
    """
    # Imported here; both implementations depend on this module
    from hybridcrypto.core.crypto.aes_cbc import CbcCipher
    from hybridcrypto.core.crypto.aes_gcm import AeadCipher

    resolved = CipherMode.parse(mode)
    if resolved is CipherMode.AEAD:
        return AeadCipher()
    return CbcCipher()
