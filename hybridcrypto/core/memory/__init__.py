"""
Memory hygiene helpers for short-lived key material.

WARNING:
- Python's memory model doesn't guarantee secure erasure
- These are best-effort mitigations
"""

from hybridcrypto.core.memory.zeroization import (
    secure_zero,
    ZeroizeContext,
)

__all__ = [
    "secure_zero",
    "ZeroizeContext",
]
