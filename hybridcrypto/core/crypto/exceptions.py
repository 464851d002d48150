"""
Hybrid Encryption Errors
========================

Exception hierarchy shared by every layer of the hybrid engine.

Taxonomy:
    ArgumentError       - null/empty/mistyped inputs
    KeyFormatError      - unparseable or unsupported key material
    FormatError         - malformed envelope (bad lengths, truncation)
    CryptoError         - primitive failure (RNG, RSA, unwrap) - always fatal
    AuthenticationError - AEAD tag verification failed
    PaddingError        - CBC padding invalid after decryption

Callers must treat ANY error from decryption as "cannot trust this data".
Nothing in this package retries a failed operation.
"""

from __future__ import annotations

from typing import Final

# Shared by unwrap failures and tag failures so they cannot be told apart
DECRYPTION_FAILED_MESSAGE: Final[str] = "Decryption failed: data cannot be trusted"


class HybridCryptoError(Exception):
    """Base class for all hybridcrypto errors."""
    pass


class ArgumentError(HybridCryptoError, ValueError):
    """Raised when a required input is missing, empty or of the wrong type."""
    pass


class KeyFormatError(HybridCryptoError, ValueError):
    """Raised when key material cannot be parsed or is not supported."""
    pass


class FormatError(HybridCryptoError, ValueError):
    """
    Raised when an envelope is malformed.

    Covers truncated data, invalid length prefixes, unknown mode tags
    and undecodable Base64 transport text.
    """
    pass


class CryptoError(HybridCryptoError):
    """
    Raised when an underlying cryptographic primitive fails.

    This includes RNG failure and key unwrapping failure. It is always
    terminal; retrying cannot succeed.
    """
    pass


class AuthenticationError(CryptoError):
    """
    Raised when AEAD tag verification fails.

    Signals tampering, corruption, or the wrong key. No plaintext is
    ever returned alongside this error.
    """
    pass


class SecurityWarning(UserWarning):
    """Warning for security-weakening configuration (e.g. unauthenticated mode)."""
    pass


class PaddingError(CryptoError):
    """
    Raised when CBC padding is invalid after decryption.

    This is only a WEAK tamper signal: CBC carries no integrity check,
    so some corruptions decrypt to garbage without raising at all.
    """
    pass
