# ============================================================================
# BASE REPOSITORY - ERROR HANDLING AND LOGGING PATTERNS
# ============================================================================
# STATUS: Infrastructure - Base repository patterns
# PURPOSE: Common error handling and operation logging for repositories
# ============================================================================
"""
Base Repository Patterns

Abstract base class that provides common infrastructure for repositories:
- Consistent error handling with context managers
- Standardized operation logging

Failures raised by the database collaborator are wrapped into
ExecutionError; the data layer's own errors pass through untouched.
"""

import logging
from abc import ABC
from contextlib import contextmanager
from typing import Any, Dict, Optional

from core.errors import ExecutionError, RepositoryError

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Abstract base repository with common patterns.

    Provides:
    - Error context manager for consistent error handling
    - Standardized logging
    """

    def __init__(self):
        """Initialize base repository."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.debug(f"{self.__class__.__name__} initialized")

    @contextmanager
    def _error_context(self, operation: str, entity_id: Optional[str] = None):
        """
        Context manager for consistent error handling.

        Wraps collaborator calls with standardized logging. Anything that is
        not already a RepositoryError is re-raised as ExecutionError with the
        original exception chained.

        Args:
            operation: Human-readable description of the operation
            entity_id: Optional entity ID for context

        Example:
            with self._error_context("users select", "users"):
                rows = self.db.execute(query, mapper, params)
        """
        try:
            yield
        except RepositoryError:
            # Already typed, just re-raise
            raise
        except Exception as e:
            error_msg = f"{operation} failed"
            if entity_id:
                error_msg += f" for {entity_id}"
            error_msg += f": {e}"
            self.logger.error(error_msg)
            raise ExecutionError(error_msg, operation=operation, entity_id=entity_id) from e

    def _log_operation(
        self,
        success: bool,
        operation: str,
        entity_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log operation result with consistent formatting.

        Format:
            Success: "operation: entity_id | details"
            Failure: "operation failed: entity_id | details"
        """
        short_id = entity_id[:16] + "..." if len(entity_id) > 16 else entity_id

        if success:
            msg = f"{operation}: {short_id}"
        else:
            msg = f"{operation} failed: {short_id}"

        if details:
            msg += f" | {details}"

        if success:
            self.logger.info(msg)
        else:
            self.logger.warning(msg)


__all__ = ["BaseRepository"]
