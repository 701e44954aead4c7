"""Sample sources polled once per tick by the tile service."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Protocol

_LOG = logging.getLogger(__name__)

# Checked in this order before falling back to the first numeric field.
PREFERRED_VALUE_KEYS: tuple[str, ...] = ("value", "data", "result", "temperature", "temp", "load")


class SampleUnavailable(Exception):
    """The source could not produce a value for this tick."""


class SampleSource(Protocol):
    def poll(self) -> float: ...


class CallableSource:
    def __init__(self, fn: Callable[[], Any], name: str = "") -> None:
        self._fn = fn
        self.name = str(name or getattr(fn, "__name__", "callable"))

    def poll(self) -> float:
        try:
            raw = self._fn()
        except SampleUnavailable:
            raise
        except Exception as exc:
            raise SampleUnavailable(f"{self.name}: {exc}") from exc
        if raw is None or isinstance(raw, bool):
            raise SampleUnavailable(f"{self.name}: no value")
        try:
            return float(raw)
        except (TypeError, ValueError) as exc:
            raise SampleUnavailable(f"{self.name}: not numeric ({raw!r})") from exc


def extract_value(node: Any) -> float | None:
    if isinstance(node, bool):
        return None
    if isinstance(node, (int, float)):
        return float(node)
    if isinstance(node, dict):
        for key in PREFERRED_VALUE_KEYS:
            if key in node:
                found = extract_value(node[key])
                if found is not None:
                    return found
        for val in node.values():
            found = extract_value(val)
            if found is not None:
                return found
        return None
    if isinstance(node, list):
        if not node:
            return None
        return extract_value(node[0])
    return None


class StreamValueSource:
    """Latest-value holder fed with text messages from a stream.

    Messages that are not JSON or carry no number are ignored. Until the
    first number arrives ``poll()`` reports 0.0.
    """

    def __init__(self, initial: float = 0.0) -> None:
        self._lock = threading.Lock()
        self._value = float(initial)
        self._updates = 0

    @property
    def updates(self) -> int:
        with self._lock:
            return self._updates

    def push_message(self, text: str) -> bool:
        try:
            payload = json.loads(text)
        except (TypeError, ValueError):
            _LOG.debug("stream message is not JSON: %r", text)
            return False
        value = extract_value(payload)
        if value is None:
            _LOG.debug("stream message has no numeric field: %r", text)
            return False
        self.push_value(value)
        return True

    def push_value(self, value: float) -> None:
        with self._lock:
            self._value = float(value)
            self._updates += 1

    def poll(self) -> float:
        with self._lock:
            return self._value
