"""
Envelope and Key Inspection Tools
=================================

Read-only helpers around the hybrid envelope: header inspection, cheap
format validation, size estimates and key-format detection. None of these
decrypt anything or touch key material beyond its encoding.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

from hybridcrypto.core.crypto.exceptions import FormatError
from hybridcrypto.core.crypto.frame_codec import (
    EnvelopeFormat,
    decode_envelope,
    field_sizes,
    minimum_envelope_size,
)
from hybridcrypto.core.crypto.rsa_cipher import XML_KEY_MARKER
from hybridcrypto.core.crypto.symmetric import CipherMode
from hybridcrypto.security.constants import AES_BLOCK_SIZE, PKCS1V15_OVERHEAD
from hybridcrypto.utils.validators import require_bytes

_PEM_LABEL: Final[re.Pattern[bytes]] = re.compile(rb"-----BEGIN ([A-Z0-9 ]+)-----")


class KeyFormat(Enum):
    """Encoding of a key as supplied by a caller."""

    UNKNOWN = "unknown"
    XML = "xml"
    PEM_PUBLIC = "pem-public"
    PEM_PRIVATE = "pem-private"
    DER = "der"


@dataclass(frozen=True, slots=True)
class EnvelopeInfo:
    """Header facts of an envelope, read without decrypting it."""

    mode: CipherMode
    wrapped_key_length: int
    ciphertext_length: int
    total_length: int


@dataclass(frozen=True, slots=True)
class RsaComparison:
    """Size/operation comparison between chunked pure-RSA and hybrid encryption."""

    data_size: int
    rsa_key_bits: int
    mode: CipherMode
    rsa_chunks: int
    rsa_encrypted_size: int
    hybrid_encrypted_size: int

    @property
    def bytes_saved(self) -> int:
        return self.rsa_encrypted_size - self.hybrid_encrypted_size

    @property
    def rsa_operations_saved(self) -> int:
        return max(self.rsa_chunks - 1, 0)

    def describe(self) -> str:
        lines = [
            f"Data size: {self.data_size:,} bytes",
            f"RSA key size: {self.rsa_key_bits} bits",
            f"Mode: {current_mode_description(self.mode)}",
            "",
            "Pure RSA (PKCS#1 v1.5 chunks):",
            f"  - chunks: {self.rsa_chunks:,}",
            f"  - encrypted size: {self.rsa_encrypted_size:,} bytes",
            "",
            "Hybrid (RSA + AES):",
            f"  - encrypted size: {self.hybrid_encrypted_size:,} bytes",
            f"  - bytes saved: {self.bytes_saved:,}",
            f"  - RSA operations saved: {self.rsa_operations_saved:,}",
        ]
        return "\n".join(lines)


def get_envelope_info(
    envelope: bytes,
    mode: str | CipherMode = CipherMode.AEAD,
    envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
) -> EnvelopeInfo:
    """
    Read the header of an envelope.

    Raises:
        ArgumentError: If the envelope is empty/None
        FormatError: If the envelope is malformed
    """
    data = require_bytes(envelope, "envelope")
    parts = decode_envelope(data, mode, envelope_format=envelope_format)
    return EnvelopeInfo(
        mode=parts.mode,
        wrapped_key_length=len(parts.wrapped_key),
        ciphertext_length=len(parts.ciphertext),
        total_length=len(data),
    )


def validate_envelope_format(
    envelope: Any,
    mode: str | CipherMode = CipherMode.AEAD,
    envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
) -> bool:
    """
    Check whether an envelope is structurally valid for ``mode``.

    Passing this check says nothing about authenticity. Never raises for
    bad envelopes.
    """
    if not envelope or not isinstance(envelope, (bytes, bytearray, memoryview)):
        return False
    try:
        decode_envelope(envelope, mode, envelope_format=envelope_format)
    except FormatError:
        return False
    return True


def estimate_encrypted_size(
    data_size: int,
    rsa_key_bits: int = 2048,
    mode: str | CipherMode = CipherMode.AEAD,
    envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
) -> int:
    """
    Exact envelope size for a payload of ``data_size`` bytes.

    GCM ciphertext is as long as the plaintext; CBC pads to the next
    whole block (always adding at least one byte).
    """
    if data_size < 0:
        raise ValueError("data_size cannot be negative")
    mode = CipherMode.parse(mode)
    wrapped_key_length = (rsa_key_bits + 7) // 8

    if mode is CipherMode.CBC:
        body = (data_size // AES_BLOCK_SIZE + 1) * AES_BLOCK_SIZE
    else:
        body = data_size

    return minimum_envelope_size(mode, wrapped_key_length, envelope_format) + body


def compare_with_rsa(
    data_size: int,
    rsa_key_bits: int = 2048,
    mode: str | CipherMode = CipherMode.AEAD,
) -> RsaComparison:
    """Compare hybrid encryption against encrypting the payload in RSA chunks."""
    if data_size <= 0:
        raise ValueError("data_size must be positive")
    mode = CipherMode.parse(mode)
    block = (rsa_key_bits + 7) // 8
    chunk = block - PKCS1V15_OVERHEAD
    chunks = -(-data_size // chunk)

    return RsaComparison(
        data_size=data_size,
        rsa_key_bits=rsa_key_bits,
        mode=mode,
        rsa_chunks=chunks,
        rsa_encrypted_size=chunks * block,
        hybrid_encrypted_size=estimate_encrypted_size(data_size, rsa_key_bits, mode),
    )


def current_mode_description(mode: str | CipherMode) -> str:
    """Human-readable name of a mode."""
    if CipherMode.parse(mode) is CipherMode.AEAD:
        return "AES-256-GCM (authenticated)"
    return "AES-256-CBC (PKCS7 padding, unauthenticated)"


def describe_format(
    mode: str | CipherMode = CipherMode.AEAD,
    envelope_format: str | EnvelopeFormat = EnvelopeFormat.LEGACY,
) -> str:
    """Field-by-field description of the envelope layout for a mode."""
    mode = CipherMode.parse(mode)
    nonce_size, tag_size = field_sizes(mode)

    lines = ["Hybrid envelope format:"]
    if EnvelopeFormat.parse(envelope_format) is EnvelopeFormat.TAGGED:
        lines.append(f"[1 byte]   mode tag (0x{mode.value:02x})")
    lines.append("[4 bytes]  wrapped key length (int32, little-endian)")
    lines.append("[N bytes]  wrapped AES key (RSA)")
    if mode is CipherMode.AEAD:
        lines.append(f"[{nonce_size} bytes] nonce")
        lines.append(f"[{tag_size} bytes] authentication tag")
        lines.append("[M bytes]  ciphertext (AES-256-GCM)")
    else:
        lines.append(f"[{nonce_size} bytes] IV")
        lines.append("[M bytes]  ciphertext (AES-256-CBC)")
        lines.append("")
        lines.append("Note: CBC envelopes carry no authentication tag.")
    return "\n".join(lines)


def detect_key_format(key: Any) -> KeyFormat:
    """
    Guess how a key is encoded without parsing it.

    Only byte input can be DER; text is either XML, PEM or unknown.
    """
    if isinstance(key, str):
        try:
            data = key.strip().encode("utf-8")
        except UnicodeEncodeError:
            return KeyFormat.UNKNOWN
        binary = False
    elif isinstance(key, (bytes, bytearray, memoryview)):
        data = bytes(key)
        binary = True
    else:
        return KeyFormat.UNKNOWN

    text = data.strip()
    if not text:
        return KeyFormat.UNKNOWN
    if text.startswith(XML_KEY_MARKER):
        return KeyFormat.XML

    match = _PEM_LABEL.search(text)
    if match:
        label = match.group(1)
        if b"PRIVATE KEY" in label:
            return KeyFormat.PEM_PRIVATE
        if b"PUBLIC KEY" in label:
            return KeyFormat.PEM_PUBLIC
        return KeyFormat.UNKNOWN

    # DER structures start with an ASN.1 SEQUENCE
    if binary and data[0] == 0x30 and len(data) > 2:
        return KeyFormat.DER
    return KeyFormat.UNKNOWN
