"""
Secure Random Source
====================

CSPRNG access for symmetric keys and nonces.

The OS generator behind ``secrets`` is safe for concurrent use, so no
locking is done here. Any failure to obtain randomness is fatal and
surfaces as CryptoError.
"""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod

from hybridcrypto.core.crypto.exceptions import CryptoError


class SecureRandom(ABC):
    """Source of cryptographically secure random bytes."""

    __slots__ = ()

    @abstractmethod
    def fill_random(self, buffer: bytearray) -> None:
        """Overwrite every byte of ``buffer`` in place with random data."""

    def random_bytes(self, size: int) -> bytearray:
        """Allocate a new buffer of ``size`` random bytes."""
        buffer = bytearray(size)
        self.fill_random(buffer)
        return buffer


class SystemRandom(SecureRandom):
    """
    SecureRandom backed by the OS CSPRNG.

    Security:
        Uses OS CSPRNG via secrets module (FIPS 140-2 compliant on most systems)
    """

    __slots__ = ()

    def fill_random(self, buffer: bytearray) -> None:
        try:
            buffer[:] = secrets.token_bytes(len(buffer))
        except (OSError, NotImplementedError) as exc:
            raise CryptoError("Secure random source unavailable") from exc

    def __repr__(self) -> str:
        return "SystemRandom()"


_DEFAULT_RANDOM = SystemRandom()


def default_random() -> SecureRandom:
    """Return the process-wide OS-backed random source."""
    return _DEFAULT_RANDOM
