"""
Secure Configuration Module
===========================

Provides immutable, environment-aware configuration for the hybrid engine.

Security Features:
- Immutable configuration after initialization
- Environment variable override support
- No secrets in default values or read from the environment
- Validation of every cipher setting at load time
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Any, Optional

from hybridcrypto.core.crypto.frame_codec import EnvelopeFormat
from hybridcrypto.core.crypto.rsa_cipher import WrapPadding
from hybridcrypto.core.crypto.symmetric import CipherMode
from hybridcrypto.security.constants import (
    ABSOLUTE_MIN_RSA_KEY_BITS,
    DEFAULT_MIN_RSA_KEY_BITS,
)


# Security Constants
_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "secret", "token", "api_key",
    "private", "credential", "auth", "salt",
})

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might contain sensitive data."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True, slots=True)
class CipherConfig:
    """Immutable cipher configuration."""

    mode: str = "aead"
    envelope_format: str = "legacy"
    wrap_padding: str = "oaep-sha256"
    min_rsa_key_bits: int = DEFAULT_MIN_RSA_KEY_BITS

    def __post_init__(self) -> None:
        """Validate cipher settings."""
        # Each parse raises ValueError on unknown names
        CipherMode.parse(self.mode)
        EnvelopeFormat.parse(self.envelope_format)
        WrapPadding.parse(self.wrap_padding)

        if self.min_rsa_key_bits < ABSOLUTE_MIN_RSA_KEY_BITS:
            raise ValueError(
                f"min_rsa_key_bits must be at least {ABSOLUTE_MIN_RSA_KEY_BITS}"
            )

    @property
    def cipher_mode(self) -> CipherMode:
        return CipherMode.parse(self.mode)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "INFO"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_console: bool = True
    enable_file: bool = False
    enable_json: bool = False
    log_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        """Validate logging settings."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")
        if self.log_dir is not None and not self.log_dir.is_absolute():
            raise ValueError(f"log_dir must be an absolute path: {self.log_dir}")


class HybridConfig:
    """
    Centralized, immutable configuration loader with environment override support.

    Usage:
        config = HybridConfig.load()
        engine = HybridCryptoEngine.from_config(config)
        mode = config.cipher.mode
    """

    __slots__ = ("_cipher", "_logging", "_frozen", "_config_hash")

    _instance: Optional[HybridConfig] = None

    def __init__(
        self,
        cipher: Optional[CipherConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ) -> None:
        """Initialize configuration. Use HybridConfig.load() for standard initialization."""
        # Use object.__setattr__ to bypass our immutability check during init
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_cipher", cipher or CipherConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        """Compute a hash of the configuration for integrity checking."""
        config_str = f"{self._cipher}|{self._logging}"
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @property
    def cipher(self) -> CipherConfig:
        """Get cipher configuration."""
        return self._cipher

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._logging

    @property
    def config_hash(self) -> str:
        """Get configuration integrity hash."""
        return self._config_hash

    @classmethod
    def load(cls, env_prefix: str = "HYBRIDCRYPTO") -> HybridConfig:
        """
        Load configuration with environment variable overrides.

        Environment variables should be prefixed with HYBRIDCRYPTO_ and use
        double underscores for nested values.

        Examples:
            HYBRIDCRYPTO_CIPHER__MODE=cbc
            HYBRIDCRYPTO_CIPHER__ENVELOPE_FORMAT=tagged
            HYBRIDCRYPTO_CIPHER__WRAP_PADDING=pkcs1v15
            HYBRIDCRYPTO_LOGGING__LEVEL=DEBUG

        Args:
            env_prefix: Prefix for environment variables (default: HYBRIDCRYPTO)

        Returns:
            Configured HybridConfig instance

        Raises:
            ValueError: If an override holds an invalid value
        """
        env_overrides = cls._parse_env_overrides(env_prefix)

        # Build cipher configuration
        cipher_kwargs: dict[str, Any] = {}
        for name in ("mode", "envelope_format", "wrap_padding"):
            if f"cipher.{name}" in env_overrides:
                cipher_kwargs[name] = env_overrides[f"cipher.{name}"]
        if "cipher.min_rsa_key_bits" in env_overrides:
            cipher_kwargs["min_rsa_key_bits"] = int(env_overrides["cipher.min_rsa_key_bits"])

        # Build logging configuration
        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"]
        if "logging.enable_console" in env_overrides:
            logging_kwargs["enable_console"] = _parse_bool(env_overrides["logging.enable_console"])
        if "logging.enable_file" in env_overrides:
            logging_kwargs["enable_file"] = _parse_bool(env_overrides["logging.enable_file"])
        if "logging.enable_json" in env_overrides:
            logging_kwargs["enable_json"] = _parse_bool(env_overrides["logging.enable_json"])
        if "logging.log_dir" in env_overrides:
            logging_kwargs["log_dir"] = Path(env_overrides["logging.log_dir"])

        return cls(
            cipher=CipherConfig(**cipher_kwargs) if cipher_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # Convert HYBRIDCRYPTO_SECTION__KEY to section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                # SECURITY: Skip sensitive keys from environment
                if _is_sensitive_key(config_key):
                    continue

                overrides[config_key] = value

        return overrides

    @classmethod
    def get_instance(cls) -> HybridConfig:
        """
        Get or create the singleton configuration instance.

        Returns:
            The global HybridConfig instance
        """
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Use only for testing."""
        cls._instance = None

    def __repr__(self) -> str:
        """Safe string representation without sensitive data."""
        return f"HybridConfig(hash={self._config_hash}, mode={self._cipher.mode})"

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if hasattr(self, "_frozen") and self._frozen:
            raise AttributeError("HybridConfig is immutable after initialization")
        super().__setattr__(name, value)


__all__ = [
    "CipherConfig",
    "LoggingConfig",
    "HybridConfig",
]
