"""Tests for the sliding sample window.

This module tests capacity handling, FIFO eviction and snapshots.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from core.window import DEFAULT_CAPACITY, SlidingWindow


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    """Tests for window creation."""

    def test_default_capacity(self) -> None:
        """Default window should hold the standard number of samples."""
        win = SlidingWindow()
        assert win.capacity == DEFAULT_CAPACITY
        assert len(win) == 0

    def test_rejects_zero_capacity(self) -> None:
        """A window must be able to hold at least one sample."""
        with pytest.raises(ValueError):
            SlidingWindow(0)

    def test_empty_snapshot(self) -> None:
        """An empty window should snapshot to an empty tuple."""
        win = SlidingWindow(3)
        assert win.snapshot() == ()
        assert win.latest() is None


# ============================================================================
# Append / eviction
# ============================================================================


class TestAppend:
    """Tests for append and FIFO eviction."""

    def test_append_below_capacity_keeps_order(self) -> None:
        """Samples should come back in arrival order."""
        win = SlidingWindow(5)
        win.extend([1.0, 2.0, 3.0])
        assert win.snapshot() == (1.0, 2.0, 3.0)
        assert len(win) == 3

    def test_full_window_drops_oldest(self) -> None:
        """Appending to a full window should evict the front element."""
        win = SlidingWindow(3)
        win.extend([1.0, 2.0, 3.0, 4.0])
        assert win.snapshot() == (2.0, 3.0, 4.0)
        assert len(win) == 3

    def test_length_never_exceeds_capacity(self) -> None:
        """Length is bounded by capacity however many samples arrive."""
        win = SlidingWindow(4)
        for i in range(1, 50):
            win.append(float(i))
            assert len(win) == min(i, 4)
        assert win.snapshot() == (46.0, 47.0, 48.0, 49.0)

    def test_latest_is_last_appended(self) -> None:
        """latest() should report the newest sample."""
        win = SlidingWindow(2)
        win.extend([5.0, 6.0, 7.0])
        assert win.latest() == 7.0

    def test_capacity_one(self) -> None:
        """A single-slot window always holds the newest sample."""
        win = SlidingWindow(1)
        win.extend([1.0, 2.0])
        assert win.snapshot() == (2.0,)

    def test_clear(self) -> None:
        """clear() should empty the window."""
        win = SlidingWindow(3)
        win.extend([1.0, 2.0])
        win.clear()
        assert win.snapshot() == ()
        win.append(9.0)
        assert win.snapshot() == (9.0,)


# ============================================================================
# Snapshot semantics
# ============================================================================


class TestSnapshot:
    """Tests for snapshot isolation and value fidelity."""

    def test_snapshot_does_not_mutate(self) -> None:
        """Taking a snapshot should not change the window."""
        win = SlidingWindow(3)
        win.extend([1.0, 2.0])
        first = win.snapshot()
        second = win.snapshot()
        assert first == second
        assert len(win) == 2

    def test_snapshot_is_detached(self) -> None:
        """Later appends should not show up in earlier snapshots."""
        win = SlidingWindow(3)
        win.append(1.0)
        snap = win.snapshot()
        win.append(2.0)
        assert snap == (1.0,)

    def test_values_are_float32(self) -> None:
        """Samples are stored with 32-bit precision."""
        win = SlidingWindow(2)
        win.append(0.1)
        assert win.snapshot()[0] == float(np.float32(0.1))

    def test_nan_and_inf_pass_through(self) -> None:
        """Non-finite samples are stored as-is, not sanitized."""
        win = SlidingWindow(3)
        win.extend([math.nan, math.inf, -math.inf])
        snap = win.snapshot()
        assert math.isnan(snap[0])
        assert snap[1] == math.inf
        assert snap[2] == -math.inf
