"""
Event addressing for the registry.

Every registry operation targets either one event key by exact name or every
materialized key matching a regular expression. Callers may pass a plain
string, a compiled pattern, or one of the address types below; to_address()
normalizes them once so the registry only ever works with ExactKey or Pattern.
"""

import re
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ExactKey(object):
    """Address a single event key by name."""

    key: str
    """The event key."""


@dataclass(frozen=True)
class Pattern(object):
    """Address every materialized event key the regex matches."""

    regex: re.Pattern
    """
    Compiled expression. Keys are tested with regex.search(), so an unanchored
    expression matches anywhere in the key.
    """

    @classmethod
    def compile(cls, expression: str, flags: int = 0) -> "Pattern":
        """Build a Pattern from an uncompiled expression."""
        return cls(re.compile(expression, flags))

    def matches(self, key: str) -> bool:
        return self.regex.search(key) is not None


ADDRESS = Union[ExactKey, Pattern]
"""A normalized event address."""

EVENT_TARGET = Union[str, re.Pattern, ExactKey, Pattern]
"""Anything accepted by the registry as an event target."""


def to_address(target: EVENT_TARGET) -> ADDRESS:
    """
    Normalize an event target to an address.

    Args:
        target (EVENT_TARGET): A key name, compiled regex, ExactKey or Pattern.
    Returns:
        ADDRESS: ExactKey for key names, Pattern for regular expressions.
    Raises:
        TypeError: If the target is none of the accepted types.
    """
    if isinstance(target, (ExactKey, Pattern)):
        return target

    if isinstance(target, str):
        return ExactKey(target)

    if isinstance(target, re.Pattern):
        return Pattern(target)

    raise TypeError(
        f"Event target must be a str or compiled pattern, "
        f"got {type(target).__name__}: {target!r}"
    )
