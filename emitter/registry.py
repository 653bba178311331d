"""
# Event Registry

Herein is the listener registry itself: a mapping from event key to an ordered
list of listener records, with operations to query, add, remove and invoke
them.

Every operation accepts either an exact event key or a regular expression.
Patterns only ever select among keys that already exist in the registry, they
never create new ones. Exact-key lookups create an empty entry for unknown
keys, so reading the listeners of a key is enough to define it.

Dispatch is synchronous. Each key's listener list is copied before it is
walked, so listeners may add or remove listeners (or emit) while an emission is
in progress without causing skipped or repeated calls.
"""

import json
import logging
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any
from typing import Optional
from typing import Union

from emitter import addressing
from emitter import handlers
from emitter import listener


logger = logging.getLogger(__name__)


LISTENER_MAP = dict[str, list[listener.ListenerRecord]]
"""Event key to the live list of records registered under it."""

BULK_LISTENERS = Mapping[
    addressing.EVENT_TARGET,
    Union[listener.LISTENER, Iterable[listener.LISTENER]],
]
"""Event targets mapped to one callback or a sequence of callbacks."""


# -----Exceptions--------------------------------------------------------------
class InvalidListenerError(TypeError):
    """Raised when a non-callable is registered as a listener."""


# -----------------------------------------------------------------------------


class EventRegistry(object):
    """
    Synchronous in-process listener registry.

    To manage listeners use
    add_listener() / on() and remove_listener() / off(),
    add_once_listener() / once() for listeners that fire a single time,
    or add_listeners() and remove_listeners() for bulk changes.

    Use emit() to pass positional arguments directly, or emit_event() /
    trigger() with a pre-built argument sequence.

    A listener that returns the once-return-value (True unless configured
    otherwise) is removed after that call.
    """

    def __init__(
        self,
        once_return_value: Any = True,
        exception_handler: Optional[handlers.LISTENER_EXCEPTION_HANDLER] = None,
    ) -> None:
        self._events: LISTENER_MAP = {}
        self._once_return_value: Any = once_return_value
        self._listener_exception_handler: Optional[
            handlers.LISTENER_EXCEPTION_HANDLER
        ] = exception_handler

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} events={list(self._events)}>"

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, key: object) -> bool:
        # Membership test never materializes the key.
        return key in self._events

    # -----Query---------------------------------------------------------------

    def get_listeners(
        self, target: addressing.EVENT_TARGET
    ) -> Union[list[listener.ListenerRecord], LISTENER_MAP]:
        """
        Get the listeners registered to an event key or pattern.

        Note that an exact key which does not exist yet is created with an
        empty listener list, so this read has a write side effect.

        Args:
            target (EVENT_TARGET): Event key, or regex to match existing keys.
        Returns:
            The live record list for an exact key, or a dict of every existing
            key matching the pattern to its live record list.
        """
        address = addressing.to_address(target)

        if isinstance(address, addressing.Pattern):
            return {
                key: records
                for key, records in self._events.items()
                if address.matches(key)
            }

        return self._materialize(address.key)

    def get_listeners_as_object(
        self, target: addressing.EVENT_TARGET
    ) -> LISTENER_MAP:
        """
        Get the listeners of a target, always as a key to records dict.

        Exact keys are wrapped into a one-entry dict so exact and pattern
        targets can be handled by the same code.
        """
        address = addressing.to_address(target)
        listeners = self.get_listeners(address)

        if isinstance(address, addressing.ExactKey):
            return {address.key: listeners}

        return listeners

    @staticmethod
    def flatten_listeners(
        records: Iterable[listener.ListenerRecord],
    ) -> list[listener.LISTENER]:
        """Get the callbacks of a list of records, in order."""
        return [record.callback for record in records]

    def get_event_keys(self) -> list[str]:
        """Get all defined event keys in the order they were created."""
        return list(self._events)

    def has_listener(
        self, target: addressing.EVENT_TARGET, callback: listener.LISTENER
    ) -> bool:
        """
        Check if a callback is registered to any key of the target.
        Unlike get_listeners() this never creates the key.
        """
        address = addressing.to_address(target)

        if isinstance(address, addressing.ExactKey):
            candidates = [self._events.get(address.key, [])]
        else:
            candidates = [
                records
                for key, records in self._events.items()
                if address.matches(key)
            ]

        return any(
            listener.index_of_listener(records, callback) != -1
            for records in candidates
        )

    # -----Listener Management-------------------------------------------------

    def add_listener(
        self, target: addressing.EVENT_TARGET, callback: listener.LISTENER
    ) -> "EventRegistry":
        """
        Register a callback to an event key or to every existing key matching
        a pattern.

        A callback is only registered once per key; adding it again is a
        no-op.

        Args:
            target (EVENT_TARGET): Event key or regex.
            callback (LISTENER): Function to call when the event is emitted.
        Returns:
            EventRegistry: This registry, for chaining.
        Raises:
            InvalidListenerError: If callback is not callable.
        """
        self._check_callable(callback)
        return self._add_record(target, listener.ListenerRecord(callback))

    on = add_listener

    def add_once_listener(
        self, target: addressing.EVENT_TARGET, callback: listener.LISTENER
    ) -> "EventRegistry":
        """
        Register a callback that is removed right before its first call.

        Args:
            target (EVENT_TARGET): Event key or regex.
            callback (LISTENER): Function to call when the event is emitted.
        Returns:
            EventRegistry: This registry, for chaining.
        Raises:
            InvalidListenerError: If callback is not callable.
        """
        self._check_callable(callback)
        return self._add_record(
            target, listener.ListenerRecord(callback, once=True)
        )

    once = add_once_listener

    def _add_record(
        self, target: addressing.EVENT_TARGET, record: listener.ListenerRecord
    ) -> "EventRegistry":
        """Append a record to each target key that lacks its callback."""
        for key, records in self.get_listeners_as_object(target).items():
            if listener.index_of_listener(records, record.callback) != -1:
                continue

            records.append(record)
            logger.debug(
                "Added %slistener %s to event '%s'",
                "once " if record.once else "",
                handlers.get_callable_name(record.callback),
                key,
            )

        return self

    def remove_listener(
        self, target: addressing.EVENT_TARGET, callback: listener.LISTENER
    ) -> "EventRegistry":
        """
        Remove a callback from an event key or from every existing key matching
        a pattern. Removing a callback that is not registered does nothing.

        Args:
            target (EVENT_TARGET): Event key or regex.
            callback (LISTENER): Function to remove.
        Returns:
            EventRegistry: This registry, for chaining.
        """
        for key in self.get_listeners_as_object(target):
            self._discard(key, callback)

        return self

    off = remove_listener

    def _discard(self, key: str, callback: listener.LISTENER) -> bool:
        """
        Remove a callback from the live list of a key, without creating the
        key. Returns True if a record was removed.
        """
        records = self._events.get(key)
        if records is None:
            return False

        index = listener.index_of_listener(records, callback)
        if index == -1:
            return False

        del records[index]
        logger.debug(
            "Removed listener %s from event '%s'",
            handlers.get_callable_name(callback),
            key,
        )
        return True

    def add_listeners(
        self,
        target: Union[addressing.EVENT_TARGET, BULK_LISTENERS],
        listeners: Optional[Iterable[listener.LISTENER]] = None,
    ) -> "EventRegistry":
        """
        Register several callbacks at once.

        Either pass a target and a sequence of callbacks, or a single dict
        mapping targets to a callback or a sequence of callbacks.

        Example:
            >>> registry.add_listeners("save", [on_save, log_save])
            >>> registry.add_listeners({"open": on_open, re.compile("^file"): [log]})
        """
        return self.manipulate_listeners(False, target, listeners)

    def remove_listeners(
        self,
        target: Union[addressing.EVENT_TARGET, BULK_LISTENERS],
        listeners: Optional[Iterable[listener.LISTENER]] = None,
    ) -> "EventRegistry":
        """
        Remove several callbacks at once.
        Accepts the same arguments as add_listeners().
        """
        return self.manipulate_listeners(True, target, listeners)

    def manipulate_listeners(
        self,
        remove: bool,
        target: Union[addressing.EVENT_TARGET, BULK_LISTENERS],
        listeners: Optional[Iterable[listener.LISTENER]] = None,
    ) -> "EventRegistry":
        """
        Add or remove callbacks in bulk. Shared implementation of
        add_listeners() and remove_listeners().

        Args:
            remove (bool): True to remove the callbacks, False to add them.
            target: Event key or regex used with listeners, or a dict of
                targets to a callback or sequence of callbacks.
            listeners (Iterable[LISTENER]): Callbacks, ignored when target is a
                dict.
        Returns:
            EventRegistry: This registry, for chaining.
        """
        single = self.remove_listener if remove else self.add_listener

        if isinstance(target, Mapping):
            for entry_target, value in target.items():
                if callable(value):
                    single(entry_target, value)
                else:
                    for callback in value:
                        single(entry_target, callback)

            return self

        for callback in listeners or ():
            single(target, callback)

        return self

    def define_event(self, key: str) -> "EventRegistry":
        """Create an event key with no listeners if it does not exist yet."""
        self.get_listeners(key)
        return self

    def define_events(self, keys: Iterable[str]) -> "EventRegistry":
        """Create several event keys with no listeners."""
        for key in keys:
            self.define_event(key)

        return self

    def remove_event(
        self, target: Optional[addressing.EVENT_TARGET] = None
    ) -> "EventRegistry":
        """
        Remove event keys along with all of their listeners.

        Args:
            target (Optional[EVENT_TARGET]): Event key to delete, regex whose
                matching keys are deleted, or None to delete every key.
        Returns:
            EventRegistry: This registry, for chaining.
        """
        if target is None:
            self._events.clear()
            logger.debug("Removed all events")
            return self

        address = addressing.to_address(target)

        if isinstance(address, addressing.ExactKey):
            keys = [address.key] if address.key in self._events else []
        else:
            keys = [key for key in self._events if address.matches(key)]

        for key in keys:
            del self._events[key]
            logger.debug("Removed event '%s'", key)

        return self

    remove_all_listeners = remove_event

    def _materialize(self, key: str) -> list[listener.ListenerRecord]:
        """Get the live record list of a key, creating it if needed."""
        if key not in self._events:
            self._events[key] = []
            logger.debug("Defined event '%s'", key)

        return self._events[key]

    @staticmethod
    def _check_callable(callback: Any) -> None:
        if not callable(callback):
            raise InvalidListenerError(
                f"Listener must be callable, "
                f"got {type(callback).__name__}: {callback!r}"
            )

    # -----Emitter Handling----------------------------------------------------

    def emit_event(
        self,
        target: addressing.EVENT_TARGET,
        args: Optional[Iterable[Any]] = None,
    ) -> "EventRegistry":
        """
        Call every listener of an event key, or of every existing key matching
        a pattern, with the given arguments.

        Listeners are called in registration order. Once listeners are removed
        before they are called. Any listener returning the once-return-value is
        removed after its call.

        Args:
            target (EVENT_TARGET): Event key or regex.
            args (Optional[Iterable[Any]]): Positional arguments passed to each
                listener.
        Returns:
            EventRegistry: This registry, for chaining.
        Note:
            If a listener raises, the registry's listener exception handler
            decides whether delivery for that key stops or continues. With no
            handler set the exception propagates to the caller.
        """
        args = tuple(args) if args is not None else ()

        for key, records in self.get_listeners_as_object(target).items():
            # Listeners may change the live list while this key is dispatched.
            snapshot = list(records)

            for record in snapshot:
                if record.once:
                    self._discard(key, record.callback)

                try:
                    response = record.callback(*args)
                except Exception as e:
                    if self._listener_exception_handler is None:
                        raise

                    stop = self._listener_exception_handler(record.callback, key, e)
                    if stop:
                        break

                    continue

                if not record.once and self._is_once_return_value(response):
                    self._discard(key, record.callback)

        return self

    trigger = emit_event

    def emit(self, target: addressing.EVENT_TARGET, *args: Any) -> "EventRegistry":
        """
        Emit an event, passing the positional arguments to each listener.

        Example:
            >>> registry.emit("resize", 800, 600)
        """
        return self.emit_event(target, args)

    def _is_once_return_value(self, value: Any) -> bool:
        """
        Check a listener's return value against the once-return-value.

        The value must be the sentinel itself or compare equal to it. Booleans
        only match booleans, so 1 does not match True and 0 does not match
        False, while 1.0 still matches a sentinel of 1.
        """
        sentinel = self._get_once_return_value()
        if value is sentinel:
            return True

        if isinstance(value, bool) != isinstance(sentinel, bool):
            return False

        return (value == sentinel) is True

    # -----Configuration-------------------------------------------------------

    def set_once_return_value(self, value: Any) -> "EventRegistry":
        """
        Set the value a listener returns to remove itself after being called.
        Defaults to True.
        """
        self._once_return_value = value
        return self

    def _get_once_return_value(self) -> Any:
        return self._once_return_value

    def set_listener_exception_handler(
        self, handler: Optional[handlers.LISTENER_EXCEPTION_HANDLER]
    ) -> "EventRegistry":
        """
        Set the exception handler for listener errors.
        The handler is called when a listener raises an exception during emit.

        Args:
            Optional[handlers.LISTENER_EXCEPTION_HANDLER]:
                Callable with signature (LISTENER, str, Exception) -> bool.
                Returns True to stop delivery, False to continue.
                Pass None to restore default behavior (re-raise exceptions).
        """
        self._listener_exception_handler = handler
        return self

    # -----Introspection-------------------------------------------------------

    def to_dict(self) -> dict[str, list[str]]:
        """
        Convert the registry structure to a dictionary of event keys to
        callback names, in call order. One-shot listeners are suffixed with
        ' [once]'.
        """
        data = {}

        for key, records in self._events.items():
            data[key] = [
                handlers.get_callable_name(record.callback)
                + (" [once]" if record.once else "")
                for record in records
            ]

        return data

    def to_string(self) -> str:
        """Returns a string representation of the registry."""
        return json.dumps(self.to_dict(), indent=4)
