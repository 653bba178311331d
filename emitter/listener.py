"""
Listener data structures and type definitions for the event registry.

Defines the ListenerRecord dataclass which wraps a callback with its one-shot
flag, and the LISTENER type alias used throughout the registry for type hints.
Records are compared by identity so a record can be located and removed from
a listener list even when another record holds an equal callback.
"""

import inspect
from dataclasses import dataclass
from typing import Any
from typing import Callable


LISTENER = Callable[..., Any]
"""
The callback end point that emitted arguments are forwarded to.

Listeners are called with the positional arguments passed to emit(). If a
listener returns the registry's once-return-value, it is removed after that
call.
"""


@dataclass(frozen=True, eq=False)
class ListenerRecord(object):
    """A listener callback and whether it fires only once."""

    callback: LISTENER
    """The end point that emitted arguments are forwarded to."""

    once: bool = False
    """If True the record is removed before its first invocation."""


def same_callback(first: LISTENER, second: LISTENER) -> bool:
    """
    Check if two callbacks refer to the same listener.

    Bound methods are rebuilt on each attribute access, so two bound methods
    are compared with ==, which checks the bound instance by identity.
    Everything else is compared by identity, so a callable with a permissive
    __eq__ never matches another listener.
    """
    if first is second:
        return True

    return _is_bound_method(first) and _is_bound_method(second) and first == second


def _is_bound_method(callback: Any) -> bool:
    if inspect.ismethod(callback):
        return True

    # Builtin methods such as list.append; plain builtins are bound to a module.
    return inspect.isbuiltin(callback) and not inspect.ismodule(
        getattr(callback, "__self__", None)
    )


def index_of_listener(records: list[ListenerRecord], callback: LISTENER) -> int:
    """
    Find the position of a callback within a list of records.

    Args:
        records (list[ListenerRecord]): The records to search.
        callback (LISTENER): The callback to look for.
    Returns:
        int: Index of the matching record, or -1 if the callback is absent.
    """
    for i, record in enumerate(records):
        if same_callback(record.callback, callback):
            return i

    return -1
