# ============================================================================
# BASE REPOSITORY - ERROR HANDLING PATTERNS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - Base repository patterns
# PURPOSE: Common error context and logging for all repositories
# CREATED: 19 OCT 2026
# ============================================================================
"""
Base Repository Patterns

Abstract base class that provides common infrastructure for repositories:
- Consistent error handling with a context manager
- Standardized operation logging

Storage-specific repositories extend this with their connection management.
"""

import logging
from abc import ABC
from contextlib import contextmanager
from typing import Any, Dict, Optional

from core.errors import RepositoryError

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Abstract base repository.

    Provides:
    - Error context manager that wraps driver errors in RepositoryError
    - Standardized logging
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def _error_context(self, operation: str, entity_id: Optional[str] = None):
        """
        Wrap a repository operation.

        RepositoryError passes through untouched; anything else is logged
        with context and re-raised as RepositoryError.

        Example:
            with self._error_context("record upsert", job_id):
                await cur.execute(...)
        """
        try:
            yield
        except RepositoryError:
            raise
        except Exception as e:
            error_msg = f"{operation} failed"
            if entity_id:
                error_msg += f" for {entity_id}"
            error_msg += f": {e}"
            self.logger.error(error_msg)
            raise RepositoryError(error_msg, operation=operation, entity_id=entity_id) from e

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

        msg = f"{operation}: {short_id}" if success else f"{operation} failed: {short_id}"
        if details:
            msg += f" | {details}"

        if success:
            self.logger.info(msg)
        else:
            self.logger.warning(msg)


__all__ = ["BaseRepository", "RepositoryError"]
