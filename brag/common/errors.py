"""
Error taxonomy and handling helpers for the brag list builder.

Generation errors are always recoverable (the fallback synthesizer takes
over). Persistence errors are always surfaced to the caller, with NotFound
kept distinct so callers refresh their view instead of retrying.
"""

import logging
from functools import wraps
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


class BragError(Exception):
    """Base class for all brag list errors."""


class GenerationUnavailable(BragError):
    """Text generation backend unreachable or timed out."""


class MalformedGenerationOutput(BragError):
    """Backend responded but the text could not be repaired into valid structured data."""


class NotFound(BragError):
    """An edit/delete addressed an entry or document that does not exist."""

    def __init__(self, message: str, index: Optional[int] = None, document: Optional[str] = None):
        super().__init__(message)
        self.index = index
        self.document = document


class PersistenceFailure(BragError):
    """The underlying document read/write failed."""

    def __init__(self, message: str, operation: str = "persistence", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class InvalidTransition(BragError):
    """A review action was requested in a state that does not allow it."""


def persistence_operation(operation_name: str):
    """
    Decorator for store operations with consistent error handling.

    - NotFound passes through unchanged
    - OSError / UnicodeError / ValueError (corrupt documents) become
      PersistenceFailure, logged at ERROR with stack trace
    - PersistenceFailure raised inside is re-raised as-is

    Usage:
        @persistence_operation("delete generated entry")
        def delete_generated_entry(self, index: int) -> None:
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            try:
                return func(*args, **kwargs)
            except (NotFound, PersistenceFailure):
                raise
            except (OSError, UnicodeError, ValueError) as e:
                logger.error(f"[store] [{operation_name}] ✗ Failed: {e}", exc_info=True)
                raise PersistenceFailure(
                    f"Could not {operation_name}: {e}",
                    operation=operation_name,
                    cause=e,
                ) from e

        return wrapper

    return decorator


def log_on_exception(
    logger: logging.Logger,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them silently.

    Usage:
        with log_on_exception(logger, "ledger append", level=logging.ERROR):
            path.write_text(...)
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                logger.log(level, f"[{operation}] Failed: {exc_val}", exc_info=include_traceback)
            return False

    return ExceptionLogger()
