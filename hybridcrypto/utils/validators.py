"""
Validation Utilities
====================

Input validation for the public entry points.
Every check runs BEFORE any cryptographic work is done.
"""

from __future__ import annotations

from typing import Any

from hybridcrypto.core.crypto.exceptions import ArgumentError


def require_bytes(value: Any, field_name: str = "value") -> bytes:
    """
    Validate that a value is a non-empty bytes-like object.

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        The value as immutable bytes

    Raises:
        ArgumentError: If the value is None, empty or not bytes-like
    """
    if value is None:
        raise ArgumentError(f"{field_name} cannot be None")
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise ArgumentError(f"{field_name} must be bytes, got {type(value).__name__}")
    if len(value) == 0:
        raise ArgumentError(f"{field_name} cannot be empty")
    return bytes(value)


def require_text(value: Any, field_name: str = "value") -> str:
    """
    Validate that a value is a non-empty string.

    Raises:
        ArgumentError: If the value is None, empty or not a string
    """
    if value is None:
        raise ArgumentError(f"{field_name} cannot be None")
    if not isinstance(value, str):
        raise ArgumentError(f"{field_name} must be a string, got {type(value).__name__}")
    if not value:
        raise ArgumentError(f"{field_name} cannot be empty")
    return value


def require_key(value: Any, field_name: str = "key") -> Any:
    """
    Validate that key material was supplied.

    Accepts PEM/DER text or bytes, or an already-loaded key object.
    Parsing is left to the key cipher; this only rejects absent input.

    Raises:
        ArgumentError: If the key is None or an empty string/bytes
    """
    if value is None:
        raise ArgumentError(f"{field_name} cannot be None")
    if isinstance(value, (str, bytes, bytearray, memoryview)) and len(value) == 0:
        raise ArgumentError(f"{field_name} cannot be empty")
    return value
