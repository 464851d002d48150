"""
Core module - Contains configuration, logging, and the hybrid crypto engine.
"""

from hybridcrypto.core.config import HybridConfig
from hybridcrypto.core.logging import get_secure_logger, configure_logging, SecureLogFilter

__all__ = ["HybridConfig", "get_secure_logger", "configure_logging", "SecureLogFilter"]
