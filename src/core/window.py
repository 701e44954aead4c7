from __future__ import annotations

import threading

import numpy as np

DEFAULT_CAPACITY = 10
MAX_CAPACITY = 3600


class SlidingWindow:
    """Fixed-capacity FIFO of float32 samples backed by a ring buffer.

    The oldest sample sits at ``_head``; appending to a full window
    overwrites it and advances the head. Readers get ordered copies via
    ``snapshot()``.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        cap = int(capacity)
        if cap < 1:
            raise ValueError(f"window capacity must be >= 1, got {capacity!r}")
        self._lock = threading.Lock()
        self._buf = np.zeros(cap, dtype=np.float32)
        self._head = 0
        self._len = 0

    @property
    def capacity(self) -> int:
        return int(self._buf.shape[0])

    def __len__(self) -> int:
        with self._lock:
            return self._len

    def append(self, value: float) -> None:
        v = np.float32(value)
        with self._lock:
            cap = self.capacity
            if self._len < cap:
                self._buf[(self._head + self._len) % cap] = v
                self._len += 1
            else:
                self._buf[self._head] = v
                self._head = (self._head + 1) % cap

    def extend(self, values) -> None:
        for v in values:
            self.append(v)

    def snapshot(self) -> tuple[float, ...]:
        with self._lock:
            cap = self.capacity
            idx = (self._head + np.arange(self._len)) % cap
            return tuple(float(v) for v in self._buf[idx])

    def latest(self) -> float | None:
        with self._lock:
            if self._len == 0:
                return None
            return float(self._buf[(self._head + self._len - 1) % self.capacity])

    def clear(self) -> None:
        with self._lock:
            self._head = 0
            self._len = 0
