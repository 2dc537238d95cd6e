"""
Custom exceptions for polling sources with structured error context.

This module provides the exception hierarchy used by every polling
source and by the remote ledger client adapter. Each exception carries
context information (which source, which operation) so the caller can
log it and decide on a retry policy. Sources never retry internally.

Exception Hierarchy:
    SourceError (base)
    ├── RetryableError
    │   ├── SourceConnectionError
    │   └── RemoteQueryError
    ├── NonRetryableError
    │   ├── NotInitializedError
    │   ├── ConfigurationError
    │   └── MappingError
    │       └── MissingFieldError
    └── RPCError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class SourceError(Exception):
    """
    Base exception for all polling source errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, operation, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Bases
# ============================================================================

class RetryableError(SourceError):
    """
    Base for errors the caller may retry.

    The source itself never retries; the caller repeats ``init`` or
    ``next`` according to its own policy.
    """
    pass


class NonRetryableError(SourceError):
    """
    Base for errors that repeat identically on retry.

    Use this for caller protocol violations, invalid configuration and
    malformed remote payloads.
    """
    pass


# ============================================================================
# Lifecycle Errors
# ============================================================================

class SourceConnectionError(RetryableError):
    """
    Raised when the remote client cannot be constructed.

    The endpoint was unreachable or rejected the handshake. The source
    stays uninitialized, so ``init`` may be called again.

    Context should include:
        - source_name: Name of the source
        - rpc_url: The endpoint that failed
    """
    pass


class NotInitializedError(NonRetryableError):
    """Raised when ``next`` is called on a source that is not ready."""
    pass


class ConfigurationError(NonRetryableError):
    """
    Raised when a source is constructed with invalid parameters.

    Context should include:
        - field_name: The offending parameter
        - field_value: The value that was rejected
    """
    pass


# ============================================================================
# Poll Errors
# ============================================================================

class RemoteQueryError(RetryableError):
    """
    Raised when the remote call of a poll fails.

    Context should include:
        - source_name: Name of the source
        - operation: The remote call that failed (query_events, get_checkpoint, ...)
    """
    pass


class RPCError(SourceError):
    """
    Raised by the client adapter when the node answers with a JSON-RPC error.

    Context should include:
        - method: JSON-RPC method name
        - code: JSON-RPC error code
    """
    pass


# ============================================================================
# Mapping Errors
# ============================================================================

class MappingError(NonRetryableError):
    """Base exception for raw records that cannot be converted."""
    pass


class MissingFieldError(MappingError):
    """
    Raised when a mandatory field is absent from a remote record.

    Context should include:
        - field_name: Name of the missing field
        - record_id: Identifier of the record (if known)
    """
    pass
