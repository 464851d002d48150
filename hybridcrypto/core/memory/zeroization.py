"""
Memory Zeroization Utilities
============================

Explicit wiping of symmetric key buffers once an operation is over.

Security Properties:
- Explicit zeroization (no GC reliance)
- Exception-safe cleanup
- Guard: automatic cleanup on scope exit

WARNING:
- Python's memory model doesn't guarantee secure erasure
- Immutable ``bytes`` copies (e.g. RSA outputs) cannot be wiped
- These are best-effort mitigations
"""

from __future__ import annotations

import ctypes
from contextlib import contextmanager
from typing import Final, Optional, Iterator


# Zeroization constants
WIPE_PASSES: Final[int] = 3


def secure_zero(data: Optional[bytearray | memoryview]) -> None:
    """
    Securely zero a byte buffer.

    Uses ctypes for direct memory access where possible,
    with fallback to Python-level zeroing.

    Args:
        data: Mutable byte buffer to zero. ``None`` is ignored so that
            callers can wipe buffers that were never allocated.

    Security Notes:
        - This is best-effort; Python may have copies
        - Call immediately after use, before GC
        - Buffer must be mutable (bytearray, not bytes)
    """
    if data is None or len(data) == 0:
        return

    if isinstance(data, memoryview):
        for i in range(len(data)):
            data[i] = 0
        return

    try:
        addr = ctypes.addressof(
            (ctypes.c_char * len(data)).from_buffer(data)
        )
    except (TypeError, ValueError, BufferError):
        # Buffer cannot be mapped (e.g. exported views); zero in Python
        for i in range(len(data)):
            data[i] = 0
        return

    # Multi-pass wipe, ending on zeros
    for pattern in (0x00, 0xFF, 0x00)[:WIPE_PASSES]:
        ctypes.memset(addr, pattern, len(data))


@contextmanager
def ZeroizeContext(*buffers: Optional[bytearray]) -> Iterator[None]:
    """
    Context manager that zeroizes buffers on exit.

    Always zeroizes, whether exit is normal or exceptional.

    Usage:
        key = wrapper.generate_key()

        with ZeroizeContext(key):
            sealed = cipher.seal(plaintext, key, nonce)
        # key is now zeroed
    """
    try:
        yield
    finally:
        for buf in buffers:
            secure_zero(buf)
