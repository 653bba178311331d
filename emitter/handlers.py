"""
Exception handling utilities for the event registry.

A registry calls its listener exception handler when a listener raises during
emit. The handler receives the failing callback, the event key being
dispatched, and the exception. Its return value decides what happens to the
rest of that key's listeners:

- STOP (True): the remaining listeners of this key are skipped. When emitting
  to a pattern, the other matching keys are still dispatched.
- CONTINUE (False): dispatch moves on to the next listener.

A registry with no handler set re-raises listener exceptions to the caller of
emit(). A one-shot listener that raised has already been removed; a regular
listener that raised is kept, since it returned nothing to compare against the
once-return-value.
"""

import inspect
import logging
import sys
from typing import Callable

from emitter import listener


logger = logging.getLogger(__name__)


LISTENER_EXCEPTION_HANDLER = Callable[[listener.LISTENER, str, Exception], bool]
"""Signature for exception handlers: (callback, event key, exception) -> stop."""

STOP = True
CONTINUE = False


def get_callable_name(callable_: Callable) -> str:
    """
    Describe a listener for logs and registry exports.

    Bound methods are named Class.method, functions and other named callables
    by their qualified name, and anything else by str().
    """
    owner = getattr(callable_, "__self__", None)
    if owner is not None and not inspect.ismodule(owner):
        return f"{owner.__class__.__name__}.{callable_.__name__}"

    return getattr(callable_, "__qualname__", None) or str(callable_)


def stop_and_log_listener_exception(
    callback: listener.LISTENER, key: str, exception: Exception
) -> bool:
    """
    Log the exception with its traceback and skip the remaining listeners of
    the event key.
    """
    logger.error(
        f"Listener raised while dispatching event '{key}', "
        f"skipping the remaining listeners of this key:\n"
        f"  Callback:  {get_callable_name(callback)}\n"
        f"  Exception: {exception.__class__.__name__}: {exception}",
        exc_info=True,
    )
    return STOP


def log_and_continue_listener_exception(
    callback: listener.LISTENER, key: str, exception: Exception
) -> bool:
    """Log a warning and keep dispatching the event key."""
    logger.warning(
        f"Listener {get_callable_name(callback)} raised on event '{key}' "
        f"(continuing): {exception.__class__.__name__}: {exception}"
    )
    return CONTINUE


def silent_listener_exception(_: listener.LISTENER, __: str, ___: Exception) -> bool:
    """Ignore the exception and keep dispatching the event key."""
    return CONTINUE


exceptions_caught = []
"""Records appended by collect_listener_exception(). Clear it manually."""


def collect_listener_exception(
    callback: listener.LISTENER, key: str, exception: Exception
) -> bool:
    """
    Record the exception in exceptions_caught and keep dispatching, so every
    failure of an emission can be inspected once emit() returns.
    """
    exceptions_caught.append(
        {
            "callback": get_callable_name(callback),
            "event": key,
            "exception": f"{exception.__class__.__name__}: {exception}",
            "exc_info": sys.exc_info(),
        }
    )
    return CONTINUE
