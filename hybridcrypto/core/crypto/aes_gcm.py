"""
AES-256-GCM Authenticated Encryption
====================================

AEAD mode of the symmetric layer.

Security Properties:
    - 256-bit key (128-bit security level)
    - 96-bit nonce (NIST recommended)
    - 128-bit authentication tag
    - Tag verified before any plaintext is released

NIST SP 800-38D Compliance:
    - GCM mode with 96-bit IV
    - Unique nonce for each encryption under same key

WARNING:
    - Never reuse (key, nonce) pairs
    - Keys should be wiped from memory after use
"""

from __future__ import annotations

from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from hybridcrypto.core.crypto.exceptions import (
    ArgumentError,
    AuthenticationError,
    DECRYPTION_FAILED_MESSAGE,
)
from hybridcrypto.core.crypto.symmetric import CipherMode, SealedPayload, SymmetricCipher
from hybridcrypto.security.constants import GCM_NONCE_SIZE, GCM_TAG_SIZE


class AeadCipher(SymmetricCipher):
    """
    AES-256-GCM Authenticated Encryption with Associated Data (AEAD).

    Unlike the raw ``AESGCM`` primitive, which appends the tag to the
    ciphertext, this cipher returns the tag separately so the envelope can
    place it ahead of the ciphertext.

    Usage:
        cipher = AeadCipher()

        sealed = cipher.seal(plaintext, key, nonce)

        # Decrypt (validates integrity first)
        plaintext = cipher.open(sealed.ciphertext, sealed.tag, key, nonce)
    """

    __slots__ = ()

    @property
    def mode(self) -> CipherMode:
        return CipherMode.AEAD

    @property
    def nonce_size(self) -> int:
        return GCM_NONCE_SIZE

    @property
    def tag_size(self) -> int:
        return GCM_TAG_SIZE

    def seal(self, plaintext: bytes, key: bytes | bytearray, nonce: bytes) -> SealedPayload:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            plaintext: Data to encrypt
            key: 32-byte single-use key
            nonce: 12-byte nonce, never reused with this key

        Returns:
            SealedPayload with the 16-byte tag and the ciphertext

        Raises:
            ArgumentError: If key or nonce has the wrong size
        """
        self._check_key_and_nonce(key, nonce)

        ct_full = AESGCM(key).encrypt(nonce, plaintext, None)

        return SealedPayload(
            tag=ct_full[-GCM_TAG_SIZE:],
            ciphertext=ct_full[:-GCM_TAG_SIZE],
        )

    def open(
        self,
        ciphertext: bytes,
        tag: Optional[bytes],
        key: bytes | bytearray,
        nonce: bytes,
    ) -> bytes:
        """
        Decrypt ciphertext using AES-256-GCM with integrity verification.

        Args:
            ciphertext: Encrypted data without the tag
            tag: 16-byte authentication tag
            key: The 32-byte encryption key
            nonce: The nonce used during encryption

        Returns:
            Decrypted plaintext bytes

        Raises:
            ArgumentError: If key, nonce or tag has the wrong size
            AuthenticationError: If the tag does not verify

        Security Notes:
            - Integrity is verified BEFORE any plaintext is returned
            - AuthenticationError means tampered data or wrong key
        """
        self._check_key_and_nonce(key, nonce)
        if tag is None or len(tag) != GCM_TAG_SIZE:
            raise ArgumentError(f"Tag must be exactly {GCM_TAG_SIZE} bytes")

        try:
            return AESGCM(key).decrypt(nonce, bytes(ciphertext) + bytes(tag), None)
        except InvalidTag:
            raise AuthenticationError(DECRYPTION_FAILED_MESSAGE) from None
