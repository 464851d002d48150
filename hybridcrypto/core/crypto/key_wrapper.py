"""
Symmetric Key Wrapping
======================

Generates the single-use AES-256 key and nonce for one encryption, and
wraps/unwraps that key with the asymmetric cipher.

Key Lifetime:
    - Generated fresh per encrypt call
    - Held in a mutable bytearray so it can be zeroed
    - Owned by the call stack of one operation, never persisted or reused

WARNING:
    - Unwrap failures are deliberately uninformative (constant message,
      no chained cause) so the API cannot serve as a decryption oracle
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from hybridcrypto.core.crypto.exceptions import (
    ArgumentError,
    CryptoError,
    DECRYPTION_FAILED_MESSAGE,
)
from hybridcrypto.core.crypto.random_source import SecureRandom, default_random
from hybridcrypto.core.crypto.rsa_cipher import AsymmetricKeyCipher, RsaKeyCipher
from hybridcrypto.core.memory.zeroization import secure_zero
from hybridcrypto.security.constants import AES_KEY_SIZE


class KeyWrapper:
    """
    Key generation and asymmetric wrapping for the hybrid engine.

    Usage:
        wrapper = KeyWrapper()

        key = wrapper.generate_key()
        nonce = wrapper.generate_nonce(12)
        wrapped = wrapper.wrap(key, public_key)

        key = wrapper.unwrap(wrapped, private_key)

    Thread Safety:
        Holds only immutable collaborators; safe to share.
    """

    __slots__ = ("_key_cipher", "_random", "_log")

    def __init__(
        self,
        key_cipher: Optional[AsymmetricKeyCipher] = None,
        random_source: Optional[SecureRandom] = None,
    ) -> None:
        self._key_cipher = key_cipher or RsaKeyCipher()
        self._random = random_source or default_random()
        self._log = logging.getLogger("hybridcrypto.keywrap")

    @property
    def key_cipher(self) -> AsymmetricKeyCipher:
        return self._key_cipher

    def generate_key(self) -> bytearray:
        """
        Generate a fresh 256-bit symmetric key.

        Returns:
            32 random bytes in a mutable buffer (caller zeroes it after use)

        Raises:
            CryptoError: If the random source fails
        """
        key = bytearray(AES_KEY_SIZE)
        self._random.fill_random(key)
        return key

    def generate_nonce(self, size: int) -> bytes:
        """
        Generate a random nonce/IV.

        Args:
            size: Nonce length in bytes (12 for GCM, 16 for CBC)

        Raises:
            ArgumentError: If size is not positive
            CryptoError: If the random source fails
        """
        if size <= 0:
            raise ArgumentError("Nonce size must be positive")
        nonce = bytearray(size)
        self._random.fill_random(nonce)
        return bytes(nonce)

    def wrap(self, key: bytes | bytearray, public_key: Any) -> bytes:
        """
        Encrypt the symmetric key under the recipient's public key.

        Raises:
            ArgumentError: If the key is not 32 bytes
            KeyFormatError: If the public key is malformed or unsupported
            CryptoError: If the key exceeds the cipher's maximum payload
        """
        if key is None or len(key) != AES_KEY_SIZE:
            raise ArgumentError(f"Symmetric key must be exactly {AES_KEY_SIZE} bytes")

        limit = self._key_cipher.max_payload(public_key)
        if len(key) > limit:
            raise CryptoError(
                f"Asymmetric key too small to wrap a {AES_KEY_SIZE}-byte key (limit {limit})"
            )

        wrapped = self._key_cipher.encrypt(key, public_key)
        self._log.debug("Wrapped symmetric key (wrapped_len=%d)", len(wrapped))
        return wrapped

    def unwrap(self, wrapped_key: bytes, private_key: Any) -> bytearray:
        """
        Recover the symmetric key with the private key.

        Returns:
            The 32-byte key in a mutable buffer (caller zeroes it after use)

        Raises:
            KeyFormatError: If the private key is malformed or unsupported
            CryptoError: If decryption fails for ANY reason, including a
                recovered value that is not a 32-byte key
        """
        if not wrapped_key:
            raise CryptoError(DECRYPTION_FAILED_MESSAGE)

        key = bytearray(self._key_cipher.decrypt(wrapped_key, private_key))
        if len(key) != AES_KEY_SIZE:
            secure_zero(key)
            raise CryptoError(DECRYPTION_FAILED_MESSAGE)
        return key

    def __repr__(self) -> str:
        return f"KeyWrapper(key_cipher={self._key_cipher!r})"
