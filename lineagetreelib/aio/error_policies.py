"""
Error handling policies for LineageTreeLib.

This module provides a flexible error handling system through the Policy pattern,
allowing callers to decide what happens when an executor search fails during a
tree build.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


def default_result(method_name: str) -> Any:
    """Return the "nothing found" value for an executor method.

    An empty search result ends the traversal in that direction, and an
    empty statistics mapping means zero stats for every node.
    """
    if method_name == 'search_stats':
        return {}
    if method_name.startswith('search_'):
        return []
    return None


class ErrorPolicy(ABC):
    """
    Base class for error handling policies.

    Subclasses implement different strategies for handling errors
    raised by a query executor.
    """

    @abstractmethod
    async def handle(self, error: Exception, method_name: str,
                     nodes: Optional[Sequence[str]], *args, **kwargs) -> Any:
        """
        Handle an error raised by an executor search.

        Args:
            error: The exception that was raised
            method_name: Name of the method that failed (e.g., 'search_descendants')
            nodes: The identifiers being searched when the error occurred
            *args: Additional positional arguments from the failed method
            **kwargs: Additional keyword arguments from the failed method

        Returns:
            A value standing in for the failed result,
            or re-raises the exception to stop the build.
        """
        pass

    @staticmethod
    def _record(error: Exception, method_name: str,
                nodes: Optional[Sequence[str]]) -> Dict[str, Any]:
        return {
            'nodes': list(nodes) if nodes is not None else None,
            'method': method_name,
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error)
        }


class FailFastPolicy(ErrorPolicy):
    """
    Policy that immediately re-raises any error, stopping the build.

    This is the default behavior - any executor failure reaches the caller
    unchanged, which translates it into a user facing failure.
    """

    async def handle(self, error: Exception, method_name: str,
                     nodes: Optional[Sequence[str]], *args, **kwargs) -> Any:
        """Re-raise the error immediately."""
        raise error


class ContinueOnErrorsPolicy(ErrorPolicy):
    """
    Policy that logs errors and continues the build.

    Errors are collected for later inspection, and empty results are
    returned so the affected direction stops while the rest of the
    tree is still returned.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, log a warning when an error occurs
        """
        self.errors: List[Dict[str, Any]] = []
        self.verbose = verbose

    async def handle(self, error: Exception, method_name: str,
                     nodes: Optional[Sequence[str]], *args, **kwargs) -> Any:
        """
        Log the error and return an empty result.

        Returns:
            - Empty list for searches
            - Empty mapping for search_stats
        """
        self.errors.append(self._record(error, method_name, nodes))

        if self.verbose:
            logger.warning(
                "Error in %s for %d nodes: %s",
                method_name, len(nodes) if nodes is not None else 0, error,
            )

        return default_result(method_name)

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        by_method: Dict[str, int] = {}
        for record in self.errors:
            by_method[record['method']] = by_method.get(record['method'], 0) + 1
        return {
            'total_errors': len(self.errors),
            'by_method': by_method,
            'errors': self.errors  # Full error details
        }


class CollectErrorsPolicy(ErrorPolicy):
    """
    Policy that collects all errors without logging, for batch processing.

    Similar to ContinueOnErrorsPolicy but without any output.
    Useful for collecting all errors and presenting them at the end.
    """

    def __init__(self):
        """Initialize the policy."""
        self.errors: List[Dict[str, Any]] = []

    async def handle(self, error: Exception, method_name: str,
                     nodes: Optional[Sequence[str]], *args, **kwargs) -> Any:
        """Silently collect the error and return an empty result."""
        self.errors.append(self._record(error, method_name, nodes))
        return default_result(method_name)


class ThresholdPolicy(ErrorPolicy):
    """
    Policy that tolerates errors up to a threshold, then fails fast.

    Useful when occasional store hiccups are expected but too many
    indicate a systemic problem that should halt the build.
    """

    def __init__(self, max_errors: int = 10, verbose: bool = True):
        """
        Initialize threshold policy.

        Args:
            max_errors: Maximum errors to tolerate before failing
            verbose: If True, log a warning for each tolerated error
        """
        self.max_errors = max_errors
        self.error_count = 0
        self.verbose = verbose
        self.errors: List[Exception] = []

    async def handle(self, error: Exception, method_name: str,
                     nodes: Optional[Sequence[str]], *args, **kwargs) -> Any:
        """Handle error if under threshold, otherwise raise."""
        self.error_count += 1
        self.errors.append(error)

        if self.error_count > self.max_errors:
            raise RuntimeError(f"Error threshold exceeded ({self.max_errors} errors)") from error

        if self.verbose:
            logger.warning(
                "[%d/%d] Error in %s: %s",
                self.error_count, self.max_errors, method_name, error,
            )

        return default_result(method_name)
