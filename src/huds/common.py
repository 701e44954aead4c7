from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any

import numpy as np
from PIL import Image, ImageDraw, ImageFont

_LOG = logging.getLogger(__name__)

# Tile geometry. Keep exact values to preserve output.
ICON_SIZE = 144
GRAPH_PADDING = 10
TITLE_HEIGHT = 35
TITLE_FONT_SIZE = 25
TITLE_CHAR_WIDTH = 12.5
TITLE_MIN_X = 5.0
TITLE_Y = 8

Rgba = tuple[int, int, int, int]

COL_BG: Rgba = (0, 0, 0, 255)
COL_NORMAL_GREEN: Rgba = (0, 255, 0, 255)
COL_WARNING_RED: Rgba = (255, 0, 0, 255)
COL_TRANSPARENT: Rgba = (0, 0, 0, 0)

DATA_URI_PREFIX = "data:image/png;base64,"

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class RenderError(RuntimeError):
    """Raised when a finished canvas cannot be encoded for the host."""


class TileKind(str, Enum):
    GRAPH = "graph"
    GAUGE = "gauge"

    @classmethod
    def parse(cls, raw: Any, default: "TileKind | None" = None) -> "TileKind":
        txt = str(raw or "").strip().lower()
        for kind in cls:
            if kind.value == txt:
                return kind
        return default if default is not None else cls.GRAPH


@dataclass(frozen=True)
class ColorScheme:
    normal_color: Rgba = COL_NORMAL_GREEN
    warning_color: Rgba = COL_WARNING_RED


@dataclass(frozen=True)
class RenderConfig:
    samples: tuple[float, ...] = ()
    min_value: float = 0.0
    max_value: float = 100.0
    threshold: float | None = None
    color_scheme: ColorScheme = field(default_factory=ColorScheme)
    title: str = ""
    kind: TileKind = TileKind.GRAPH

    @property
    def current_value(self) -> float | None:
        if not self.samples:
            return None
        return float(self.samples[-1])

    @property
    def is_warning(self) -> bool:
        cur = self.current_value
        if cur is None or self.threshold is None:
            return False
        return bool(cur > float(self.threshold))

    @property
    def state_color(self) -> Rgba:
        if self.is_warning:
            return self.color_scheme.warning_color
        return self.color_scheme.normal_color


def _coerce_rgba(col: tuple[int, ...]) -> Rgba:
    r, g, b, a = col
    return (
        int(max(0, min(255, int(r)))),
        int(max(0, min(255, int(g)))),
        int(max(0, min(255, int(b)))),
        int(max(0, min(255, int(a)))),
    )


def parse_hex_color(raw: Any) -> Rgba | None:
    txt = str(raw or "").strip()
    if txt.startswith("#"):
        txt = txt[1:]
    if len(txt) != 6:
        return None
    # int(..., 16) alone would also accept signs and underscores.
    if any(ch not in _HEX_DIGITS for ch in txt):
        return None
    return (int(txt[0:2], 16), int(txt[2:4], 16), int(txt[4:6], 16), 255)


def dim_color(col: Rgba, divisor: int = 3, alpha: int = 180) -> Rgba:
    r, g, b, _a = _coerce_rgba(col)
    return (r // int(divisor), g // int(divisor), b // int(divisor), int(alpha))


def blend_colors(bg: Rgba, fg: Rgba) -> Rgba:
    fg_alpha = float(fg[3]) / 255.0
    bg_alpha = float(bg[3]) / 255.0

    if fg_alpha == 0.0:
        return bg

    final_alpha = fg_alpha + bg_alpha * (1.0 - fg_alpha)
    if final_alpha == 0.0:
        return COL_TRANSPARENT

    def _mix(c_fg: int, c_bg: int) -> int:
        v = (float(c_fg) * fg_alpha + float(c_bg) * bg_alpha * (1.0 - fg_alpha)) / final_alpha
        return int(max(0, min(255, int(v))))

    return (
        _mix(fg[0], bg[0]),
        _mix(fg[1], bg[1]),
        _mix(fg[2], bg[2]),
        int(max(0, min(255, int(final_alpha * 255.0)))),
    )


class Canvas:
    """Fixed RGBA8 pixel grid stored row-major in one contiguous array.

    Every write goes through ``put_pixel``/``blend_pixel``; coordinates
    outside the grid are ignored there and nowhere else.
    """

    def __init__(self, width: int = ICON_SIZE, height: int = ICON_SIZE, fill: Rgba = COL_BG) -> None:
        self.width = int(width)
        self.height = int(height)
        self.pixels = np.empty((self.width * self.height, 4), dtype=np.uint8)
        self.pixels[:] = _coerce_rgba(fill)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= int(x) < self.width and 0 <= int(y) < self.height

    def _index(self, x: int, y: int) -> int:
        return int(y) * self.width + int(x)

    def get_pixel(self, x: int, y: int) -> Rgba | None:
        if not self.in_bounds(x, y):
            return None
        p = self.pixels[self._index(x, y)]
        return (int(p[0]), int(p[1]), int(p[2]), int(p[3]))

    def put_pixel(self, x: int, y: int, col: Rgba) -> bool:
        if not self.in_bounds(x, y):
            return False
        self.pixels[self._index(x, y)] = col
        return True

    def blend_pixel(self, x: int, y: int, col: Rgba) -> bool:
        bg = self.get_pixel(x, y)
        if bg is None:
            return False
        self.pixels[self._index(x, y)] = blend_colors(bg, col)
        return True

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels.tobytes())

    def load_image(self, img: Image.Image) -> None:
        rgba = img.convert("RGBA")
        if rgba.size != (self.width, self.height):
            raise ValueError(f"image size {rgba.size} does not match canvas {(self.width, self.height)}")
        self.pixels[:] = np.asarray(rgba, dtype=np.uint8).reshape(-1, 4)


@lru_cache(maxsize=16)
def load_font(size: int = TITLE_FONT_SIZE, font_path: str = "") -> Any:
    candidates = [p for p in (str(font_path or "").strip(), "DejaVuSans.ttf", "arial.ttf") if p]
    for cand in candidates:
        try:
            return ImageFont.truetype(cand, int(size))
        except Exception:
            continue
    try:
        return ImageFont.load_default(size=int(size))
    except Exception:
        # Pillow < 10.1 (or a build without FreeType) has no sized default font.
        pass
    try:
        return ImageFont.load_default()
    except Exception:
        return None


def title_anchor(title: str, width: int = ICON_SIZE) -> tuple[int, int]:
    text_w = float(len(title)) * TITLE_CHAR_WIDTH
    x = max((float(width) - text_w) / 2.0, TITLE_MIN_X)
    return int(x), TITLE_Y


def draw_title(
    canvas: Canvas,
    title: str,
    col: Rgba,
    font_path: str = "",
    font_size: int = TITLE_FONT_SIZE,
) -> bool:
    text = str(title or "")
    if text == "":
        return False
    font_obj = load_font(int(font_size), str(font_path or ""))
    if font_obj is None:
        _LOG.debug("title font unavailable; omitting title %r", text)
        return False
    try:
        img = canvas.to_image()
        dr = ImageDraw.Draw(img)
        dr.text(title_anchor(text, canvas.width), text, fill=_coerce_rgba(col), font=font_obj)
        canvas.load_image(img)
    except Exception as exc:
        _LOG.debug("title draw failed (%s); omitting title", exc)
        return False
    return True


def encode_png(canvas: Canvas) -> bytes:
    buf = io.BytesIO()
    try:
        canvas.to_image().save(buf, format="PNG")
    except Exception as exc:
        raise RenderError(f"PNG encoding failed: {exc}") from exc
    return buf.getvalue()


def to_data_uri(canvas: Canvas) -> str:
    payload = base64.b64encode(encode_png(canvas)).decode("ascii")
    return DATA_URI_PREFIX + payload
