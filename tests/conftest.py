"""Shared fixtures for the tile tests."""

from __future__ import annotations

from typing import Callable

import numpy as np
import pytest

from huds.common import Canvas, Rgba


def _count_pixels(canvas: Canvas, col: Rgba) -> int:
    return int(np.all(canvas.pixels == np.asarray(col, dtype=np.uint8), axis=1).sum())


@pytest.fixture
def count_pixels() -> Callable[[Canvas, Rgba], int]:
    """Count the canvas pixels that exactly equal one RGBA color."""
    return _count_pixels
