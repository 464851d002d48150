"""
Envelope Frame Codec
====================

Serializes the pieces of a hybrid encryption into one byte string and
parses them back.

Legacy Format (default, byte-compatible with existing peers):
    KEY_LEN (4, signed int32 little-endian) | WRAPPED_KEY (KEY_LEN) |
    NONCE (12 GCM / 16 CBC) | TAG (16, GCM only) | CIPHERTEXT (rest)

Tagged Format (opt-in, NOT readable by legacy peers):
    MODE (1: 0x01 GCM, 0x02 CBC) | <legacy format>

The legacy format does not record the mode. Both ends must agree on it
out-of-band; decoding with the wrong mode yields garbage fields that fail
later, at unwrap or authentication time.

WARNING:
    decode_envelope consumes attacker-controlled bytes. Every length is
    checked against the bytes actually present before it is used.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional

from hybridcrypto.core.crypto.exceptions import ArgumentError, FormatError
from hybridcrypto.core.crypto.symmetric import CipherMode
from hybridcrypto.security.constants import (
    CBC_IV_SIZE,
    GCM_NONCE_SIZE,
    GCM_TAG_SIZE,
    LENGTH_PREFIX_SIZE,
    MAX_WRAPPED_KEY_SIZE,
    MODE_TAG_SIZE,
)

_LENGTH_STRUCT: Final[struct.Struct] = struct.Struct("<i")

# mode -> (nonce size, tag size)
_FIELD_SIZES: Final[dict[CipherMode, tuple[int, int]]] = {
    CipherMode.AEAD: (GCM_NONCE_SIZE, GCM_TAG_SIZE),
    CipherMode.CBC: (CBC_IV_SIZE, 0),
}

_log = logging.getLogger("hybridcrypto.codec")


class EnvelopeFormat(Enum):
    """Outer framing of an envelope."""

    LEGACY = "legacy"
    TAGGED = "tagged"

    @classmethod
    def parse(cls, value: str | EnvelopeFormat) -> EnvelopeFormat:
        if isinstance(value, EnvelopeFormat):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown envelope format: {value!r}") from None


def field_sizes(mode: str | CipherMode) -> tuple[int, int]:
    """Return ``(nonce_size, tag_size)`` for a mode."""
    return _FIELD_SIZES[CipherMode.parse(mode)]


def minimum_envelope_size(
    mode: str | CipherMode,
    wrapped_key_length: int = 0,
    envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
) -> int:
    """
    Smallest envelope that can be structurally valid.

    With ``wrapped_key_length=0`` this is the fixed header size, the
    first check applied by decode_envelope.
    """
    nonce_size, tag_size = field_sizes(mode)
    prefix = MODE_TAG_SIZE if EnvelopeFormat.parse(envelope_format) is EnvelopeFormat.TAGGED else 0
    return prefix + LENGTH_PREFIX_SIZE + wrapped_key_length + nonce_size + tag_size


@dataclass(frozen=True, slots=True)
class EnvelopeParts:
    """
    Immutable parsed view of an envelope.

    Attributes:
        wrapped_key: Asymmetric-cipher output of the symmetric key
        nonce: GCM nonce or CBC IV
        tag: GCM authentication tag, or None in CBC mode
        ciphertext: Symmetric ciphertext (may be empty)
    """

    wrapped_key: bytes
    nonce: bytes
    tag: Optional[bytes]
    ciphertext: bytes

    @property
    def mode(self) -> CipherMode:
        return CipherMode.AEAD if self.tag is not None else CipherMode.CBC

    def to_bytes(self, envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY) -> bytes:
        return encode_envelope(
            self.wrapped_key,
            self.nonce,
            self.tag,
            self.ciphertext,
            envelope_format=envelope_format,
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        mode: str | CipherMode,
        envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
    ) -> EnvelopeParts:
        return decode_envelope(data, mode, envelope_format=envelope_format)

    def __repr__(self) -> str:
        """Safe representation."""
        return (
            f"EnvelopeParts(mode={self.mode.name}, "
            f"wrapped_key_len={len(self.wrapped_key)}, "
            f"ciphertext_len={len(self.ciphertext)})"
        )


def encode_envelope(
    wrapped_key: bytes,
    nonce: bytes,
    tag: Optional[bytes],
    ciphertext: bytes,
    envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
) -> bytes:
    """
    Serialize envelope components.

    The mode is implied by the tag: present for GCM, None for CBC.

    Raises:
        ArgumentError: If the wrapped key is empty or too long for the
            length prefix, or the nonce does not match the implied mode
    """
    if not wrapped_key:
        raise ArgumentError("Wrapped key cannot be empty")
    if len(wrapped_key) > MAX_WRAPPED_KEY_SIZE:
        raise ArgumentError("Wrapped key too long for the length prefix")

    mode = CipherMode.AEAD if tag is not None else CipherMode.CBC
    nonce_size, tag_size = _FIELD_SIZES[mode]
    if len(nonce) != nonce_size:
        raise ArgumentError(f"Nonce must be exactly {nonce_size} bytes for {mode.name}")
    if tag is not None and len(tag) != tag_size:
        raise ArgumentError(f"Tag must be exactly {tag_size} bytes")

    parts = []
    if EnvelopeFormat.parse(envelope_format) is EnvelopeFormat.TAGGED:
        parts.append(bytes([mode.value]))
    parts.extend([
        _LENGTH_STRUCT.pack(len(wrapped_key)),
        bytes(wrapped_key),
        bytes(nonce),
    ])
    if tag is not None:
        parts.append(bytes(tag))
    parts.append(bytes(ciphertext))

    return b"".join(parts)


def decode_envelope(
    envelope: bytes,
    mode: str | CipherMode,
    envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
) -> EnvelopeParts:
    """
    Parse an envelope produced under ``mode``.

    Args:
        envelope: Raw envelope bytes (untrusted)
        mode: The mode agreed for this envelope
        envelope_format: LEGACY or TAGGED framing

    Returns:
        EnvelopeParts

    Raises:
        FormatError: If the envelope is empty, shorter than the mode's
            minimum, declares a non-positive or oversized key length,
            or (tagged) carries an unknown or mismatched mode byte
    """
    if envelope is None or not isinstance(envelope, (bytes, bytearray, memoryview)):
        raise FormatError("Envelope must be a non-empty byte string")
    data = bytes(envelope)
    if not data:
        raise FormatError("Envelope is empty")

    mode = CipherMode.parse(mode)
    envelope_format = EnvelopeFormat.parse(envelope_format)
    nonce_size, tag_size = _FIELD_SIZES[mode]

    offset = 0
    if envelope_format is EnvelopeFormat.TAGGED:
        try:
            declared = CipherMode(data[0])
        except ValueError:
            _log.warning("Rejected envelope: unknown mode tag")
            raise FormatError("Unknown envelope mode tag") from None
        if declared is not mode:
            _log.warning("Rejected envelope: mode %s, expected %s", declared.name, mode.name)
            raise FormatError(f"Envelope mode {declared.name} does not match {mode.name}")
        offset = MODE_TAG_SIZE

    if len(data) < offset + LENGTH_PREFIX_SIZE + nonce_size + tag_size:
        _log.warning("Rejected envelope: %d bytes below %s minimum", len(data), mode.name)
        raise FormatError(f"Envelope too short for {mode.name} mode")

    (key_len,) = _LENGTH_STRUCT.unpack_from(data, offset)
    offset += LENGTH_PREFIX_SIZE

    remaining = len(data) - offset
    if key_len <= 0 or key_len > remaining:
        _log.warning("Rejected envelope: wrapped key length %d invalid", key_len)
        raise FormatError("Invalid wrapped key length")
    if remaining - key_len < nonce_size + tag_size:
        _log.warning("Rejected envelope: truncated after wrapped key")
        raise FormatError("Envelope truncated")

    wrapped_key = data[offset : offset + key_len]
    offset += key_len

    nonce = data[offset : offset + nonce_size]
    offset += nonce_size

    tag: Optional[bytes] = None
    if tag_size:
        tag = data[offset : offset + tag_size]
        offset += tag_size

    return EnvelopeParts(
        wrapped_key=wrapped_key,
        nonce=nonce,
        tag=tag,
        ciphertext=data[offset:],
    )
