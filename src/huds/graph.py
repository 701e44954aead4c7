from __future__ import annotations

import math
from typing import Iterator, Sequence

from huds.common import (
    GRAPH_PADDING,
    TITLE_HEIGHT,
    Canvas,
    RenderConfig,
    Rgba,
)

Point = tuple[int, int]

GRADIENT_MAX_ALPHA = 0.6


def normalize_points(
    data: Sequence[float],
    min_val: float,
    max_val: float,
    width: int,
    height: int,
) -> list[Point]:
    n = len(data)
    w = max(0, int(width))
    h = max(0, int(height))
    lo = float(min_val)
    span = float(max_val) - lo
    den = float(max(n - 1, 1))

    pts: list[Point] = []
    for i, raw in enumerate(data):
        if n > 1:
            x = int(round(float(i) / den * float(w)))
        else:
            x = w // 2

        if span == 0.0:
            y = h // 2
        else:
            frac = (float(raw) - lo) / span
            if math.isnan(frac):
                frac = 0.0
            if frac < 0.0:
                frac = 0.0
            if frac > 1.0:
                frac = 1.0
            # Screen Y grows downwards: larger values sit higher.
            y = h - int(round(frac * float(h)))
        pts.append((int(x), int(y)))
    return pts


def line_points(x0: int, y0: int, x1: int, y1: int) -> Iterator[Point]:
    # Walk from the lexicographically smaller endpoint so (A, B) and (B, A)
    # yield the same pixels.
    if (int(x1), int(y1)) < (int(x0), int(y0)):
        x0, y0, x1, y1 = x1, y1, x0, y0
    x0, y0, x1, y1 = int(x0), int(y0), int(x1), int(y1)

    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy

    x = x0
    y = y0
    while True:
        yield (x, y)
        if x == x1 and y == y1:
            return
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy


def draw_line_segment(canvas: Canvas, x0: int, y0: int, x1: int, y1: int, col: Rgba) -> None:
    for x, y in line_points(x0, y0, x1, y1):
        canvas.put_pixel(x, y, col)


def draw_connected_line(
    canvas: Canvas,
    points: Sequence[Point],
    offset_x: int,
    offset_y: int,
    col: Rgba,
) -> None:
    if not points:
        return
    if len(points) == 1:
        x, y = points[0]
        canvas.put_pixel(int(x) + int(offset_x), int(y) + int(offset_y), col)
        return
    for (xa, ya), (xb, yb) in zip(points, points[1:]):
        draw_line_segment(
            canvas,
            int(xa) + int(offset_x),
            int(ya) + int(offset_y),
            int(xb) + int(offset_x),
            int(yb) + int(offset_y),
            col,
        )


def interpolate_y_at_x(points: Sequence[Point], x: int) -> int:
    if not points:
        return 0
    xi = int(x)
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        if x0 <= xi <= x1:
            if x1 == x0:
                return int(y0)
            t = float(xi - x0) / float(x1 - x0)
            return int(float(y0) + t * (float(y1) - float(y0)))

    # Flat extension outside the sampled range.
    first_x, first_y = points[0]
    if xi < int(first_x):
        return int(first_y)
    return int(points[-1][1])


def gradient_alpha(py: int, line_y: int, bottom_y: int) -> float:
    distance = float(int(py) - int(line_y))
    span = float(max(int(bottom_y) - int(line_y), 1))
    return (1.0 - (distance / span)) * GRADIENT_MAX_ALPHA


def draw_gradient_fill(
    canvas: Canvas,
    points: Sequence[Point],
    offset_x: int,
    offset_y: int,
    graph_height: int,
    col: Rgba,
) -> None:
    if not points:
        return
    min_x = min(int(p[0]) for p in points)
    max_x = max(int(p[0]) for p in points)
    bottom_y = int(graph_height)
    r, g, b = int(col[0]), int(col[1]), int(col[2])

    for x in range(min_x, max_x + 1):
        line_y = interpolate_y_at_x(points, x)
        for py in range(line_y, bottom_y + 1):
            alpha = gradient_alpha(py, line_y, bottom_y)
            a8 = int(max(0.0, min(255.0, alpha * 255.0)))
            canvas.blend_pixel(x + int(offset_x), py + int(offset_y), (r, g, b, a8))


def plot_area(canvas: Canvas, with_title: bool) -> tuple[int, int, int, int]:
    """Return ``(x0, y0, width, height)`` of the graph area."""
    band = TITLE_HEIGHT if with_title else 0
    w = canvas.width - GRAPH_PADDING * 2
    h = canvas.height - GRAPH_PADDING * 2 - band
    return GRAPH_PADDING, GRAPH_PADDING + band, max(0, w), max(0, h)


def render_graph(canvas: Canvas, config: RenderConfig, line_color: Rgba, with_title: bool = False) -> list[Point]:
    """Draw fill and line; ``with_title`` is whether a title was actually drawn."""
    x0, y0, w, h = plot_area(canvas, with_title)
    pts = normalize_points(config.samples, config.min_value, config.max_value, w, h)
    # Fill first so the line stays on top.
    draw_gradient_fill(canvas, pts, x0, y0, h, line_color)
    draw_connected_line(canvas, pts, x0, y0, line_color)
    return pts
