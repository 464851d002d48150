"""
Utils module - Input validation helpers.
"""

from hybridcrypto.utils.validators import require_bytes, require_key, require_text

__all__ = [
    "require_bytes",
    "require_key",
    "require_text",
]
