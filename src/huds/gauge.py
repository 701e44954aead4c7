from __future__ import annotations

import math
from dataclasses import dataclass

from huds.common import (
    ICON_SIZE,
    Canvas,
    RenderConfig,
    Rgba,
    dim_color,
)

TAU = 2.0 * math.pi

GAUGE_CENTER_X = ICON_SIZE // 2
GAUGE_CENTER_Y = ICON_SIZE // 2 + 15
GAUGE_OUTER_RADIUS = 55.0
GAUGE_THICKNESS = 18.0
GAUGE_START_DEG = 135.0
GAUGE_END_DEG = 45.0
DEFAULT_THRESHOLD_PCT = 0.8


def normalize_angle(angle: float) -> float:
    a = float(angle) % TAU
    # -1e-17 % TAU rounds to TAU itself.
    if a >= TAU:
        a = 0.0
    return a


def arc_sweep(start_angle: float, end_angle: float) -> float:
    return normalize_angle(float(end_angle) - float(start_angle))


def angle_in_arc(angle: float, start_angle: float, end_angle: float) -> bool:
    theta = normalize_angle(angle)
    start = normalize_angle(start_angle)
    end = normalize_angle(end_angle)
    if start <= end:
        return start <= theta <= end
    # Arc wraps through 0.
    return theta >= start or theta <= end


def arc_contains(
    dx: float,
    dy: float,
    inner_radius: float,
    outer_radius: float,
    start_angle: float,
    end_angle: float,
) -> bool:
    distance = math.sqrt(float(dx) * float(dx) + float(dy) * float(dy))
    if distance < float(inner_radius) or distance > float(outer_radius):
        return False
    return angle_in_arc(math.atan2(float(dy), float(dx)), start_angle, end_angle)


def draw_thick_arc(
    canvas: Canvas,
    center_x: int,
    center_y: int,
    inner_radius: float,
    outer_radius: float,
    start_angle: float,
    end_angle: float,
    col: Rgba,
) -> int:
    cx = float(center_x)
    cy = float(center_y)
    r = float(outer_radius)
    if not math.isfinite(r) or r < 0.0:
        return 0

    x_lo = max(0, int(math.floor(cx - r)))
    x_hi = min(canvas.width - 1, int(math.ceil(cx + r)))
    y_lo = max(0, int(math.floor(cy - r)))
    y_hi = min(canvas.height - 1, int(math.ceil(cy + r)))

    painted = 0
    for y in range(y_lo, y_hi + 1):
        for x in range(x_lo, x_hi + 1):
            if not arc_contains(float(x) - cx, float(y) - cy, inner_radius, outer_radius, start_angle, end_angle):
                continue
            if canvas.put_pixel(x, y, col):
                painted += 1
    return painted


def value_percentage(value: float, min_val: float, max_val: float) -> float:
    span = float(max_val) - float(min_val)
    if not span > 0.0:
        return 0.0
    pct = (float(value) - float(min_val)) / span
    if math.isnan(pct):
        return 0.0
    return max(0.0, min(1.0, pct))


@dataclass(frozen=True)
class GaugeLayout:
    percentage: float
    threshold_percentage: float
    start_angle: float
    end_angle: float
    sweep: float
    filled_angle: float
    threshold_angle: float
    use_warning_fill: bool


def gauge_layout(config: RenderConfig) -> GaugeLayout:
    start = math.radians(GAUGE_START_DEG)
    end = math.radians(GAUGE_END_DEG)
    sweep = arc_sweep(start, end)

    cur = config.current_value
    pct = value_percentage(cur if cur is not None else config.min_value, config.min_value, config.max_value)
    if config.threshold is None:
        thr_pct = DEFAULT_THRESHOLD_PCT
    elif float(config.max_value) - float(config.min_value) > 0.0:
        thr_pct = value_percentage(config.threshold, config.min_value, config.max_value)
    else:
        thr_pct = DEFAULT_THRESHOLD_PCT

    return GaugeLayout(
        percentage=pct,
        threshold_percentage=thr_pct,
        start_angle=start,
        end_angle=end,
        sweep=sweep,
        filled_angle=start + pct * sweep,
        threshold_angle=start + thr_pct * sweep,
        use_warning_fill=bool(config.threshold is not None and pct > thr_pct),
    )


def render_gauge(canvas: Canvas, config: RenderConfig) -> GaugeLayout:
    lay = gauge_layout(config)
    scheme = config.color_scheme
    outer = GAUGE_OUTER_RADIUS
    inner = GAUGE_OUTER_RADIUS - GAUGE_THICKNESS
    cx, cy = GAUGE_CENTER_X, GAUGE_CENTER_Y

    normal_bg = dim_color(scheme.normal_color)
    draw_thick_arc(canvas, cx, cy, inner, outer, lay.start_angle, lay.threshold_angle, normal_bg)

    if config.threshold is not None:
        rest_bg = dim_color(scheme.warning_color)
    else:
        rest_bg = normal_bg
    draw_thick_arc(canvas, cx, cy, inner, outer, lay.threshold_angle, lay.end_angle, rest_bg)

    fill_col = scheme.warning_color if lay.use_warning_fill else scheme.normal_color
    draw_thick_arc(canvas, cx, cy, inner, outer, lay.start_angle, lay.filled_angle, fill_col)
    return lay
