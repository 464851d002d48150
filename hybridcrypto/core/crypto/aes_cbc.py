"""
AES-256-CBC Compatibility Mode
==============================

Non-authenticated mode of the symmetric layer (AES-256-CBC, PKCS7 padding).

WARNING:
    This mode has NO integrity protection. A corrupted or tampered
    ciphertext either fails padding removal (PaddingError) or silently
    decrypts to garbage. Use AeadCipher unless the other end can only
    speak CBC.
"""

from __future__ import annotations

from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from hybridcrypto.core.crypto.exceptions import ArgumentError, PaddingError
from hybridcrypto.core.crypto.symmetric import CipherMode, SealedPayload, SymmetricCipher
from hybridcrypto.security.constants import AES_BLOCK_SIZE, CBC_IV_SIZE


class CbcCipher(SymmetricCipher):
    """
    AES-256-CBC with PKCS7 padding.

    ``encrypt``/``decrypt`` are the native operations; ``seal``/``open``
    adapt them to the SymmetricCipher interface with an absent tag.
    """

    __slots__ = ()

    @property
    def mode(self) -> CipherMode:
        return CipherMode.CBC

    @property
    def nonce_size(self) -> int:
        return CBC_IV_SIZE

    @property
    def tag_size(self) -> int:
        return 0

    def encrypt(self, plaintext: bytes, key: bytes | bytearray, iv: bytes) -> bytes:
        """
        Encrypt plaintext with AES-256-CBC.

        Raises:
            ArgumentError: If key or IV has the wrong size
        """
        self._check_key_and_nonce(key, iv)

        padder = padding.PKCS7(AES_BLOCK_SIZE * 8).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    def decrypt(self, ciphertext: bytes, key: bytes | bytearray, iv: bytes) -> bytes:
        """
        Decrypt AES-256-CBC ciphertext and strip PKCS7 padding.

        Raises:
            ArgumentError: If key or IV has the wrong size
            PaddingError: If the ciphertext is not whole blocks or the
                padding is invalid

        Security Notes:
            - Passing this check does NOT prove the data is authentic
        """
        self._check_key_and_nonce(key, iv)

        if len(ciphertext) == 0 or len(ciphertext) % AES_BLOCK_SIZE != 0:
            raise PaddingError("Ciphertext is not a whole number of blocks")

        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(AES_BLOCK_SIZE * 8).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError:
            raise PaddingError("Invalid padding after decryption") from None

    def seal(self, plaintext: bytes, key: bytes | bytearray, nonce: bytes) -> SealedPayload:
        return SealedPayload(tag=None, ciphertext=self.encrypt(plaintext, key, nonce))

    def open(
        self,
        ciphertext: bytes,
        tag: Optional[bytes],
        key: bytes | bytearray,
        nonce: bytes,
    ) -> bytes:
        if tag:
            raise ArgumentError("CBC mode does not carry an authentication tag")
        return self.decrypt(ciphertext, key, nonce)
