"""
HybridCrypto - RSA + AES Hybrid Encryption
==========================================

Protects arbitrary byte payloads with a one-time AES-256 key that is
itself wrapped under the recipient's RSA public key.

Security Notice:
- No key material is logged
- Fail-closed design pattern
- AES-GCM (authenticated) by default
"""

from hybridcrypto.core.config import HybridConfig
from hybridcrypto.core.crypto import (
    ArgumentError,
    AuthenticationError,
    CipherMode,
    CryptoError,
    EnvelopeFormat,
    FormatError,
    HybridCryptoEngine,
    HybridCryptoError,
    KeyFormatError,
    PaddingError,
    WrapPadding,
)
from hybridcrypto.core.logging import configure_logging, get_secure_logger

__version__ = "0.1.0"

__all__ = [
    "HybridCryptoEngine",
    "HybridConfig",
    "CipherMode",
    "EnvelopeFormat",
    "WrapPadding",
    "HybridCryptoError",
    "ArgumentError",
    "KeyFormatError",
    "FormatError",
    "CryptoError",
    "AuthenticationError",
    "PaddingError",
    "configure_logging",
    "get_secure_logger",
    "__version__",
]
