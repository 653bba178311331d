"""
# Event Emitter

A synchronous, in-process listener registry. Register callbacks to named
events, or to every existing event matching a regular expression, and call
them with emit().

    >>> import emitter
    >>> registry = emitter.EventRegistry()
    >>> registry.on("saved", print).emit("saved", "report.txt")
    report.txt
    <EventRegistry events=['saved']>

For a complete breakdown of the registry, read emitter.registry.
"""

from emitter import handlers
from emitter import listener
from emitter.addressing import EVENT_TARGET
from emitter.addressing import ExactKey
from emitter.addressing import Pattern
from emitter.listener import LISTENER
from emitter.listener import ListenerRecord
from emitter.registry import EventRegistry
from emitter.registry import InvalidListenerError


version_major = 1
version_minor = 0
version_patch = 0
__version__ = f"{version_major}.{version_minor}.{version_patch}"

__all__ = [
    "EVENT_TARGET",
    "EventRegistry",
    "ExactKey",
    "InvalidListenerError",
    "LISTENER",
    "ListenerRecord",
    "Pattern",
    "handlers",
    "listener",
]
