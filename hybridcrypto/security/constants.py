"""
Cryptographic Constants
=======================

Fixed cryptographic parameters of the hybrid envelope.
These are NOT configuration: changing any of them breaks wire compatibility
with every envelope produced so far.
"""

from typing import Final

# Symmetric key
AES_KEY_SIZE: Final[int] = 32  # 256 bits
AES_BLOCK_SIZE: Final[int] = 16  # 128 bits

# AEAD mode (AES-256-GCM)
GCM_NONCE_SIZE: Final[int] = 12  # 96 bits (NIST SP 800-38D)
GCM_TAG_SIZE: Final[int] = 16  # 128 bits

# Non-AEAD mode (AES-256-CBC + PKCS7)
CBC_IV_SIZE: Final[int] = 16  # one AES block

# Envelope framing
LENGTH_PREFIX_SIZE: Final[int] = 4  # signed int32, little-endian
MODE_TAG_SIZE: Final[int] = 1  # tagged framing only
MAX_WRAPPED_KEY_SIZE: Final[int] = 2**31 - 1

# RSA key wrapping
PKCS1V15_OVERHEAD: Final[int] = 11
DEFAULT_MIN_RSA_KEY_BITS: Final[int] = 1024
ABSOLUTE_MIN_RSA_KEY_BITS: Final[int] = 512
