"""
Core utilities and configuration for the WooCommerce -> Supabase sync.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Environment-backed settings and the resolved SyncConfig
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import get_settings
    from core.exceptions import APIExtractionError, UpsertError
    from core.logging import setup_logging

Example:
    setup_logging()
    config = get_settings().resolve()  # raises ConfigurationError
"""

__all__ = [
    "Settings",
    "SyncConfig",
    "get_settings",
    "setup_logging",
    # Exceptions
    "ETLException",
    "ConfigurationError",
    "ExtractionError",
    "APIExtractionError",
    "ResponseFormatError",
    "PaginationLimitError",
    "TransformationError",
    "DataShapeError",
    "LoadError",
    "UpsertError",
]
