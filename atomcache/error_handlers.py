#!/usr/bin/env python3
"""
Error reporting helpers shared by the command line and the cache.

``handle_exceptions`` turns exceptions into process exit codes,
``lenient_call`` downgrades load failures to a logged ``None`` and
``log_exception`` attaches the structure name being resolved to a log record.
"""
import sys
import traceback
import logging
from functools import wraps
from typing import Callable, TypeVar, Any, Dict, Optional, Tuple, Type, Union

from .exceptions import AtomCacheError

T = TypeVar('T')

EXIT_INTERRUPTED = 130
EXIT_KNOWN_ERROR = 1
EXIT_UNEXPECTED_ERROR = 2


def exit_code(error: BaseException) -> int:
    """Process exit code reported for an exception"""
    if isinstance(error, KeyboardInterrupt):
        return EXIT_INTERRUPTED
    if isinstance(error, AtomCacheError):
        return EXIT_KNOWN_ERROR
    return EXIT_UNEXPECTED_ERROR


def format_error(error: Exception, verbose: bool = False) -> str:
    """Render an exception as a one-line message for stderr.

    Package errors show their class name; anything else is reported as
    unexpected. With ``verbose`` the error details (or the traceback of an
    unexpected error) are appended on following lines.
    """
    if not isinstance(error, AtomCacheError):
        text = f"Unexpected Error: {error}"
        if verbose:
            text = f"Unexpected Error ({type(error).__name__}): {error}\n{traceback.format_exc()}"
        return text

    text = f"{type(error).__name__}: {error.message}"
    if verbose and error.details:
        text += f"\nDetails: {error.details}"
    return text


def handle_exceptions(exit_on_error: bool = False,
                      verbose: bool = False) -> Callable[[Callable[..., T]], Callable[..., Union[T, int]]]:
    """Decorator mapping exceptions raised by a command to exit codes

    Args:
        exit_on_error: Call sys.exit with the code instead of returning it
        verbose: Print error details along with the message

    Returns:
        Decorator
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Union[T, int]]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Union[T, int]:
            logger = logging.getLogger(func.__module__)
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt as e:
                logger.info("Interrupted")
                print("\nInterrupted", file=sys.stderr)
                code = exit_code(e)
            except AtomCacheError as e:
                logger.error(str(e))
                print(format_error(e, verbose), file=sys.stderr)
                code = exit_code(e)
            except Exception as e:
                logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
                print(format_error(e, verbose), file=sys.stderr)
                print("Rerun with -vv to log the full traceback.", file=sys.stderr)
                code = exit_code(e)

            if exit_on_error:
                sys.exit(code)
            return code
        return wrapper
    return decorator


def log_exception(logger: logging.Logger,
                  error: Exception,
                  level: int = logging.ERROR,
                  context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with its details merged into the record's ``context``

    Args:
        logger: Logger instance
        error: Exception object
        level: Logging level
        context: Extra fields, e.g. the structure name being resolved
    """
    merged = dict(context or {})
    if isinstance(error, AtomCacheError):
        merged = {**(error.details or {}), **merged}
        message = f"{type(error).__name__}: {error.message}"
    else:
        message = f"Unexpected error: {error}"

    logger.log(level, message, extra={"context": merged} if merged else None, exc_info=True)


def lenient_call(logger: logging.Logger, name: str, func: Callable[..., T], *args,
                 errors: Tuple[Type[BaseException], ...] = (AtomCacheError, OSError)) -> Optional[T]:
    """Call func, logging and returning None if it raises one of ``errors``

    Args:
        logger: Logger for the failure
        name: Structure name being resolved, logged as context
        func: Callable to run
        *args: Positional arguments for func
        errors: Exception types that are downgraded

    Returns:
        Result of func, or None on a handled failure
    """
    try:
        return func(*args)
    except errors as e:
        log_exception(logger, e, logging.WARNING, {"name": name})
        return None
