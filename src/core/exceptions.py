#!/usr/bin/env python3
"""
Standardized exception hierarchy for the event engine.

Provides specific exception types for the failure modes of ingestion,
classification and brief fan-out, each carrying machine-readable context.
"""

from typing import Optional, Dict, Any, List


class EventEngineError(Exception):
    """Base exception for all event engine errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


# Request-related exceptions
class RequestValidationError(EventEngineError):
    """Inbound request body is malformed or missing required fields."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        context = {'problems': problems or []}
        super().__init__(message, error_code='INVALID_REQUEST', context=context)


# Database-related exceptions
class DatabaseError(EventEngineError):
    """Base exception for storage errors."""
    pass


class DatabaseConnectionError(DatabaseError):
    """Failed to connect to the storage backend."""

    def __init__(self, connection_type: str, original_error: Exception):
        message = f"Failed to connect to database via {connection_type}"
        context = {
            'connection_type': connection_type,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


class DatabaseOperationError(DatabaseError):
    """Storage operation failed."""

    def __init__(self, operation: str, table: str, original_error: Exception):
        message = f"Database {operation} failed on table {table}"
        context = {
            'operation': operation,
            'table': table,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Classification-related exceptions
class ClassificationError(EventEngineError):
    """Base exception for classification stage errors."""
    pass

