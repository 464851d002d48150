"""
Hybrid RSA + AES Encryption Engine
==================================

The entry point for protecting byte payloads with a recipient's RSA key.

Encryption Flow:
    plaintext
        ↓ fresh AES-256 key + nonce (SecureRandom)
        ↓ AES-256-GCM seal (or AES-256-CBC encrypt)
    tag + ciphertext
        ↓ RSA wrap of the AES key (recipient public key)
    envelope = KEY_LEN | WRAPPED_KEY | NONCE | TAG | CIPHERTEXT

Decryption Flow:
    envelope
        ↓ decode (length checks)
        ↓ RSA unwrap (private key)
        ↓ AES-256-GCM open (tag verified first) / AES-256-CBC decrypt
    plaintext

Security Properties:
    - A new symmetric key and nonce for every call
    - Symmetric key buffers zeroed as soon as the call ends
    - decrypt returns fully verified plaintext or raises (GCM mode)
    - Unwrap failures and tag failures are indistinguishable to callers
    - No retries: every cryptographic failure is terminal

Limitations:
    - The whole payload is processed in memory (no streaming)
    - The legacy envelope does not record the mode; both ends must agree
    - CBC mode provides confidentiality only
"""

from __future__ import annotations

import base64
import binascii
import logging
import warnings
from typing import Any, Optional, TYPE_CHECKING

from hybridcrypto.core.crypto.exceptions import (
    AuthenticationError,
    CryptoError,
    DECRYPTION_FAILED_MESSAGE,
    FormatError,
    PaddingError,
    SecurityWarning,
)
from hybridcrypto.core.crypto.frame_codec import (
    EnvelopeFormat,
    decode_envelope,
    encode_envelope,
)
from hybridcrypto.core.crypto.key_wrapper import KeyWrapper
from hybridcrypto.core.crypto.random_source import SecureRandom
from hybridcrypto.core.crypto.rsa_cipher import AsymmetricKeyCipher, RsaKeyCipher
from hybridcrypto.core.crypto.symmetric import CipherMode, SymmetricCipher, cipher_for_mode
from hybridcrypto.core.memory.zeroization import ZeroizeContext
from hybridcrypto.utils.validators import require_bytes, require_key, require_text

if TYPE_CHECKING:
    from hybridcrypto.core.config import HybridConfig


class HybridCryptoEngine:
    """
    Hybrid encryption engine (RSA key wrapping + AES bulk encryption).

    Usage:
        engine = HybridCryptoEngine()

        envelope = engine.encrypt(plaintext, public_key_pem)
        plaintext = engine.decrypt(envelope, private_key_pem)

        # Text transport (Base64)
        token = engine.encrypt_text("hello", public_key_pem)
        text = engine.decrypt_text(token, private_key_pem)

    Mode Selection:
        The symmetric cipher is fixed at construction. Pass
        ``symmetric=CbcCipher()`` (or ``mode="cbc"``) only to talk to peers
        that cannot use GCM; a SecurityWarning is emitted.

    Thread Safety:
        Stateless apart from immutable collaborators; one engine may be
        shared by any number of threads.
    """

    __slots__ = ("_cipher", "_wrapper", "_format", "_log")

    def __init__(
        self,
        mode: str | CipherMode = CipherMode.AEAD,
        *,
        symmetric: Optional[SymmetricCipher] = None,
        key_cipher: Optional[AsymmetricKeyCipher] = None,
        random_source: Optional[SecureRandom] = None,
        envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
    ) -> None:
        """
        Initialize the engine.

        Args:
            mode: Symmetric mode, ignored when ``symmetric`` is given
            symmetric: Explicit SymmetricCipher strategy
            key_cipher: Asymmetric cipher (default: RSA OAEP-SHA256)
            random_source: CSPRNG (default: OS generator)
            envelope_format: LEGACY (compatible) or TAGGED framing
        """
        self._cipher = symmetric or cipher_for_mode(mode)
        self._wrapper = KeyWrapper(key_cipher=key_cipher, random_source=random_source)
        self._format = EnvelopeFormat.parse(envelope_format)
        self._log = logging.getLogger("hybridcrypto.engine")

        if not self._cipher.is_authenticated:
            warnings.warn(
                "Hybrid engine configured for AES-CBC: envelopes carry no "
                "integrity protection and tampering may go undetected.",
                SecurityWarning,
                stacklevel=2,
            )

    @classmethod
    def from_config(cls, config: Optional[HybridConfig] = None) -> HybridCryptoEngine:
        """
        Build an engine from configuration.

        Args:
            config: Configuration to use (default: the process-wide instance)
        """
        from hybridcrypto.core.config import HybridConfig

        config = config or HybridConfig.get_instance()
        cipher_config = config.cipher
        return cls(
            mode=cipher_config.mode,
            key_cipher=RsaKeyCipher(
                wrap_padding=cipher_config.wrap_padding,
                min_key_bits=cipher_config.min_rsa_key_bits,
            ),
            envelope_format=cipher_config.envelope_format,
        )

    @property
    def mode(self) -> CipherMode:
        return self._cipher.mode

    @property
    def is_authenticated(self) -> bool:
        """True when decrypt() verifies integrity (GCM)."""
        return self._cipher.is_authenticated

    @property
    def envelope_format(self) -> EnvelopeFormat:
        return self._format

    @property
    def symmetric_cipher(self) -> SymmetricCipher:
        return self._cipher

    def encrypt(self, plaintext: bytes, public_key: Any) -> bytes:
        """
        Encrypt a payload for the holder of ``public_key``.

        Args:
            plaintext: Non-empty payload
            public_key: RSA public key (PEM/DER text or bytes, or key object)

        Returns:
            Envelope bytes

        Raises:
            ArgumentError: If plaintext or key is empty/None (before any crypto)
            KeyFormatError: If the public key is malformed or unsupported
            CryptoError: If a primitive or the random source fails
        """
        plaintext = require_bytes(plaintext, "plaintext")
        public_key = require_key(public_key, "public_key")

        key = self._wrapper.generate_key()
        with ZeroizeContext(key):
            nonce = self._wrapper.generate_nonce(self._cipher.nonce_size)
            sealed = self._cipher.seal(plaintext, key, nonce)
            wrapped_key = self._wrapper.wrap(key, public_key)

        envelope = encode_envelope(
            wrapped_key,
            nonce,
            sealed.tag,
            sealed.ciphertext,
            envelope_format=self._format,
        )
        self._log.debug(
            "Encrypted payload: mode=%s plaintext_len=%d envelope_len=%d",
            self.mode.name, len(plaintext), len(envelope),
        )
        return envelope

    def decrypt(self, envelope: bytes, private_key: Any) -> bytes:
        """
        Decrypt an envelope with the matching private key.

        Args:
            envelope: Envelope bytes from encrypt()
            private_key: RSA private key (PEM/DER text or bytes, or key object)

        Returns:
            The original plaintext

        Raises:
            ArgumentError: If envelope or key is empty/None
            FormatError: If the envelope is malformed or truncated
            KeyFormatError: If the private key is malformed or unsupported
            CryptoError: If the symmetric key cannot be unwrapped
            AuthenticationError: If the GCM tag does not verify
            PaddingError: If CBC padding is invalid

        Security:
            - Treat any error as "cannot trust this data"
            - In CBC mode a successful return does NOT prove integrity
        """
        envelope = require_bytes(envelope, "envelope")
        private_key = require_key(private_key, "private_key")

        parts = decode_envelope(envelope, self.mode, envelope_format=self._format)

        try:
            key = self._wrapper.unwrap(parts.wrapped_key, private_key)
        except CryptoError:
            self._burn_decoy(parts.ciphertext, parts.tag, parts.nonce)
            self._log.warning("Decryption rejected")
            raise CryptoError(DECRYPTION_FAILED_MESSAGE) from None

        with ZeroizeContext(key):
            try:
                plaintext = self._cipher.open(parts.ciphertext, parts.tag, key, parts.nonce)
            except (AuthenticationError, PaddingError):
                self._log.warning("Decryption rejected")
                raise

        self._log.debug(
            "Decrypted payload: mode=%s plaintext_len=%d", self.mode.name, len(plaintext)
        )
        return plaintext

    def encrypt_text(self, text: str, public_key: Any, encoding: str = "utf-8") -> str:
        """
        Encrypt a string and return the envelope as Base64 text.

        Raises:
            ArgumentError: If text or key is empty/None
        """
        text = require_text(text, "text")
        public_key = require_key(public_key, "public_key")

        envelope = self.encrypt(text.encode(encoding), public_key)
        return base64.b64encode(envelope).decode("ascii")

    def decrypt_text(self, cipher_text: str, private_key: Any, encoding: str = "utf-8") -> str:
        """
        Decrypt Base64 envelope text back to a string.

        Raises:
            ArgumentError: If cipher_text or key is empty/None
            FormatError: If cipher_text is not valid Base64, or the
                decrypted bytes are not valid text in ``encoding``
            (plus everything decrypt() raises)
        """
        cipher_text = require_text(cipher_text, "cipher_text")
        private_key = require_key(private_key, "private_key")

        try:
            envelope = base64.b64decode(cipher_text.strip(), validate=True)
        except (binascii.Error, ValueError):
            raise FormatError("Cipher text is not valid Base64") from None

        plaintext = self.decrypt(envelope, private_key)
        try:
            return plaintext.decode(encoding)
        except UnicodeDecodeError:
            raise FormatError(f"Decrypted data is not valid {encoding} text") from None

    def _burn_decoy(self, ciphertext: bytes, tag: Optional[bytes], nonce: bytes) -> None:
        """
        Run one symmetric open under a throwaway key.

        Keeps the work done on unwrap failure close to the work done on
        tag failure. The result is discarded either way.
        """
        decoy = self._wrapper.generate_key()
        with ZeroizeContext(decoy):
            try:
                self._cipher.open(ciphertext, tag, decoy, nonce)
            except (AuthenticationError, PaddingError):
                return

    def __repr__(self) -> str:
        """Safe representation."""
        return (
            f"HybridCryptoEngine(mode={self.mode.name}, "
            f"format={self._format.value}, "
            f"key_cipher={self._wrapper.key_cipher!r})"
        )
