"""
Hybrid Cryptographic Core
=========================

RSA key wrapping combined with AES-256 bulk encryption.

Architecture:
    1. SymmetricCipher: AES-256-GCM (AeadCipher) or AES-256-CBC (CbcCipher)
    2. KeyWrapper: one-time key/nonce generation, RSA wrapping
    3. Frame codec: length-prefixed binary envelope
    4. HybridCryptoEngine: encrypt/decrypt entry points

Security Properties:
    - Fresh symmetric key and nonce per encryption
    - GCM integrity verified before any plaintext is returned
    - Symmetric key buffers zeroed after use
    - Secure RNG for all random values

WARNING: This module handles sensitive cryptographic material.
         CBC mode is unauthenticated; prefer the default GCM mode.
"""

from hybridcrypto.core.crypto.aes_cbc import CbcCipher
from hybridcrypto.core.crypto.aes_gcm import AeadCipher
from hybridcrypto.core.crypto.exceptions import (
    ArgumentError,
    AuthenticationError,
    CryptoError,
    FormatError,
    HybridCryptoError,
    KeyFormatError,
    PaddingError,
    SecurityWarning,
)
from hybridcrypto.core.crypto.frame_codec import (
    EnvelopeFormat,
    EnvelopeParts,
    decode_envelope,
    encode_envelope,
)
from hybridcrypto.core.crypto.hybrid_engine import HybridCryptoEngine
from hybridcrypto.core.crypto.key_wrapper import KeyWrapper
from hybridcrypto.core.crypto.random_source import SecureRandom, SystemRandom
from hybridcrypto.core.crypto.rsa_cipher import AsymmetricKeyCipher, RsaKeyCipher, WrapPadding
from hybridcrypto.core.crypto.symmetric import CipherMode, SealedPayload, SymmetricCipher
from hybridcrypto.core.crypto.tools import (
    EnvelopeInfo,
    KeyFormat,
    RsaComparison,
    compare_with_rsa,
    describe_format,
    detect_key_format,
    estimate_encrypted_size,
    get_envelope_info,
    validate_envelope_format,
)

__all__ = [
    "AeadCipher",
    "CbcCipher",
    "CipherMode",
    "SealedPayload",
    "SymmetricCipher",
    "KeyWrapper",
    "SecureRandom",
    "SystemRandom",
    "AsymmetricKeyCipher",
    "RsaKeyCipher",
    "WrapPadding",
    "EnvelopeFormat",
    "EnvelopeParts",
    "encode_envelope",
    "decode_envelope",
    "HybridCryptoEngine",
    "EnvelopeInfo",
    "KeyFormat",
    "RsaComparison",
    "compare_with_rsa",
    "describe_format",
    "detect_key_format",
    "estimate_encrypted_size",
    "get_envelope_info",
    "validate_envelope_format",
    "HybridCryptoError",
    "ArgumentError",
    "KeyFormatError",
    "FormatError",
    "CryptoError",
    "AuthenticationError",
    "PaddingError",
    "SecurityWarning",
]
