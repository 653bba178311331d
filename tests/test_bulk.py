"""Unit tests for adding and removing many listeners in one call."""

import re

import emitter


def test_add_listeners_with_sequence() -> None:
    """Test that a sequence of callbacks is registered in the given order."""
    registry = emitter.EventRegistry()
    calls: list[str] = []

    def first() -> None:
        calls.append("first")

    def second() -> None:
        calls.append("second")

    registry.add_listeners("test.bulk", [first, second])
    registry.emit("test.bulk")

    assert calls == ["first", "second"]


def test_remove_listeners_with_sequence() -> None:
    """Test that a sequence of callbacks is removed."""
    registry = emitter.EventRegistry()

    def first() -> None:
        pass

    def second() -> None:
        pass

    def third() -> None:
        pass

    registry.add_listeners("test.bulk", [first, second, third])
    registry.remove_listeners("test.bulk", [first, third])

    assert registry.flatten_listeners(registry.get_listeners("test.bulk")) == [
        second
    ]


def test_add_listeners_with_mapping() -> None:
    """Test that a mapping of keys to callbacks registers each entry."""
    registry = emitter.EventRegistry()
    calls: list[str] = []

    def on_open() -> None:
        calls.append("open")

    def on_close() -> None:
        calls.append("close")

    def log() -> None:
        calls.append("log")

    registry.add_listeners({"test.open": on_open, "test.close": [on_close, log]})
    registry.emit("test.open")
    registry.emit("test.close")

    assert calls == ["open", "close", "log"]


def test_remove_listeners_with_mapping() -> None:
    """Test that a mapping removes each entry's callbacks."""
    registry = emitter.EventRegistry()

    def on_open() -> None:
        pass

    def on_close() -> None:
        pass

    def log() -> None:
        pass

    registry.add_listeners({"test.open": [on_open, log], "test.close": [on_close, log]})
    registry.remove_listeners({"test.open": log, "test.close": [on_close]})

    assert registry.flatten_listeners(registry.get_listeners("test.open")) == [
        on_open
    ]
    assert registry.flatten_listeners(registry.get_listeners("test.close")) == [
        log
    ]


def test_bulk_with_pattern_fans_out() -> None:
    """Test that a bulk call against a pattern reaches every matching key."""
    registry = emitter.EventRegistry()
    registry.define_events(["file.open", "file.save", "window.open"])

    def first() -> None:
        pass

    def second() -> None:
        pass

    registry.add_listeners(re.compile(r"^file\."), [first, second])

    for key in ("file.open", "file.save"):
        assert registry.flatten_listeners(registry.get_listeners(key)) == [
            first,
            second,
        ]
    assert registry.get_listeners("window.open") == []

    registry.remove_listeners({re.compile("save$"): [first, second]})

    assert registry.get_listeners("file.save") == []
    assert len(registry.get_listeners("file.open")) == 2


def test_add_listeners_without_callbacks_is_noop() -> None:
    """Test that a target with no callbacks leaves the registry unchanged."""
    registry = emitter.EventRegistry()

    registry.add_listeners(re.compile("anything"))

    assert len(registry) == 0


def test_manipulate_listeners_switches_on_remove_flag() -> None:
    """Test that manipulate_listeners() adds or removes based on its flag."""
    registry = emitter.EventRegistry()

    def handler() -> None:
        pass

    registry.manipulate_listeners(False, "test.flag", [handler])
    assert registry.has_listener("test.flag", handler)

    registry.manipulate_listeners(True, "test.flag", [handler])
    assert not registry.has_listener("test.flag", handler)
