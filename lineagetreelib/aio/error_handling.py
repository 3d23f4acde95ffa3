"""
Error handling executor for LineageTreeLib.

This module provides the ErrorHandlingExecutor that wraps a query executor
and delegates error handling to pluggable policies.
"""

import inspect
import functools
from typing import Any, Optional

from .error_policies import ErrorPolicy, FailFastPolicy


class ErrorHandlingExecutor:
    """
    Executor that wraps another executor and handles errors through policies.

    This executor uses the dynamic proxy pattern to wrap every coroutine
    method of the underlying executor, catching exceptions and delegating
    handling to a configurable error policy. Cancellation is never
    handled by a policy; it always propagates.

    Example:
        policy = ContinueOnErrorsPolicy()
        executor = ErrorHandlingExecutor(store_executor, policy)
        nodes = await build_tree(options, executor)
        print(policy.get_statistics())
    """

    def __init__(self, base_executor: Any, policy: Optional[ErrorPolicy] = None):
        """
        Initialize the error handling executor.

        Args:
            base_executor: The executor to wrap
            policy: Error handling policy (defaults to FailFastPolicy)
        """
        self._base_executor = base_executor
        self._policy = policy or FailFastPolicy()

    async def __aenter__(self):
        """Enter async context manager."""
        if hasattr(self._base_executor, '__aenter__'):
            await self._base_executor.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager."""
        if hasattr(self._base_executor, '__aexit__'):
            return await self._base_executor.__aexit__(exc_type, exc_val, exc_tb)
        return None

    def __getattr__(self, name: str) -> Any:
        """
        Dynamic proxy that wraps coroutine methods with error handling.

        Args:
            name: The attribute name being accessed

        Returns:
            The attribute from the base executor, wrapped if it's a coroutine method
        """
        attr = getattr(self._base_executor, name)

        # Attributes and plain methods pass through untouched
        if not callable(attr) or not inspect.iscoroutinefunction(attr):
            return attr

        @functools.wraps(attr)
        async def wrapper(*args, **kwargs):
            try:
                return await attr(*args, **kwargs)
            except Exception as e:
                # First argument of every search is the identifier list
                rest = dict(kwargs)
                if args:
                    nodes, remaining = args[0], args[1:]
                else:
                    nodes, remaining = rest.pop('nodes', None), args
                return await self._policy.handle(e, name, nodes, *remaining, **rest)

        return wrapper

    def get_policy(self) -> ErrorPolicy:
        """
        Get the current error policy.

        Returns:
            The configured ErrorPolicy instance
        """
        return self._policy

    def set_policy(self, policy: ErrorPolicy) -> None:
        """
        Change the error policy.

        Args:
            policy: The new ErrorPolicy to use
        """
        self._policy = policy

    def get_base_executor(self) -> Any:
        """
        Get the wrapped base executor.

        Returns:
            The underlying executor being wrapped
        """
        return self._base_executor

    def __repr__(self) -> str:
        """String representation."""
        return f"ErrorHandlingExecutor({self._base_executor!r}, policy={self._policy.__class__.__name__})"

    # Introspection methods for testing and debugging
    def get_executor_chain(self):
        """
        Return a list of executor class names in the chain.

        Returns:
            List of class names from this executor down through the chain
        """
        chain = []
        executor = self
        while executor is not None:
            chain.append(executor.__class__.__name__)
            if isinstance(executor, ErrorHandlingExecutor):
                executor = executor._base_executor
            else:
                executor = getattr(executor, '_executor', None)
        return chain


def create_resilient_executor(base_executor: Any, strict: bool = False,
                              verbose: bool = True) -> ErrorHandlingExecutor:
    """
    Convenience function to create an error-handling executor.

    Args:
        base_executor: The executor to wrap
        strict: If True, use FailFastPolicy; if False, use ContinueOnErrorsPolicy
        verbose: If True, log warnings for errors (only applies when strict=False)

    Returns:
        An ErrorHandlingExecutor configured appropriately
    """
    from .error_policies import ContinueOnErrorsPolicy

    if strict:
        policy = FailFastPolicy()
    else:
        policy = ContinueOnErrorsPolicy(verbose=verbose)

    return ErrorHandlingExecutor(base_executor, policy)
