"""
Utility modules for the ChessWire content analysis pipeline.

This package contains:
- config: Configuration management with Pydantic
- logger: Structured logging setup
- exceptions: Custom exception classes
"""

from chesswire.utils.config import get_settings, reload_settings, Settings
from chesswire.utils.logger import get_contextual_logger, get_logger, setup_logging
from chesswire.utils.exceptions import (
    AnalysisCancelledError,
    AnalysisTimeoutError,
    CapacityError,
    ChessWireError,
    ClassificationError,
    ConfigurationError,
    ParseError,
    RateLimitError,
    ValidationError,
    VoiceServiceError,
)

__all__ = [
    "get_settings",
    "reload_settings",
    "Settings",
    "get_logger",
    "get_contextual_logger",
    "setup_logging",
    "ChessWireError",
    "ValidationError",
    "CapacityError",
    "ParseError",
    "ClassificationError",
    "AnalysisTimeoutError",
    "AnalysisCancelledError",
    "ConfigurationError",
    "VoiceServiceError",
    "RateLimitError",
]
