"""
Core utilities and configuration for the ledger polling sources.

This package provides foundational components used by every source:

Modules:
    config: Source configuration and environment variable management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.exceptions import RemoteQueryError, NotInitializedError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Build a source against the configured endpoint
    source = EventSource(rpc_url=settings.LEDGER_RPC_URL)
"""

from core.config import settings
from core.logging import setup_logging
from core.exceptions import (
    SourceError,
    RetryableError,
    NonRetryableError,
    SourceConnectionError,
    NotInitializedError,
    ConfigurationError,
    RemoteQueryError,
    RPCError,
    MappingError,
    MissingFieldError,
)

__all__ = [
    "settings",
    "setup_logging",
    # Exceptions
    "SourceError",
    "RetryableError",
    "NonRetryableError",
    "SourceConnectionError",
    "NotInitializedError",
    "ConfigurationError",
    "RemoteQueryError",
    "RPCError",
    "MappingError",
    "MissingFieldError",
]
