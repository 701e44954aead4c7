"""Tests for shared tile primitives.

This module tests the canvas buffer, color parsing, alpha blending,
title placement and the PNG/data-URI boundary.
"""

from __future__ import annotations

import base64
import io

import pytest
from PIL import Image

import huds.common as common
from huds.common import (
    COL_BG,
    DATA_URI_PREFIX,
    ICON_SIZE,
    Canvas,
    RenderError,
    TileKind,
    blend_colors,
    dim_color,
    draw_title,
    encode_png,
    parse_hex_color,
    title_anchor,
    to_data_uri,
)


# ============================================================================
# Canvas
# ============================================================================


class TestCanvas:
    """Tests for the contiguous pixel buffer."""

    def test_starts_opaque_black(self, count_pixels) -> None:
        """A new canvas is entirely opaque black."""
        canvas = Canvas()
        assert canvas.width == ICON_SIZE
        assert canvas.height == ICON_SIZE
        assert count_pixels(canvas, COL_BG) == ICON_SIZE * ICON_SIZE

    def test_row_major_layout(self) -> None:
        """Pixel (x, y) lives at index y * width + x."""
        canvas = Canvas(10, 6)
        canvas.put_pixel(3, 2, (1, 2, 3, 4))
        assert tuple(int(v) for v in canvas.pixels[2 * 10 + 3]) == (1, 2, 3, 4)

    @pytest.mark.parametrize("x,y", [(-1, 0), (0, -1), (10, 0), (0, 6), (99, 99)])
    def test_out_of_bounds_writes_ignored(self, x: int, y: int, count_pixels) -> None:
        """Writes outside the grid are skipped."""
        canvas = Canvas(10, 6)
        assert canvas.put_pixel(x, y, (255, 255, 255, 255)) is False
        assert canvas.blend_pixel(x, y, (255, 255, 255, 128)) is False
        assert canvas.get_pixel(x, y) is None
        assert count_pixels(canvas, COL_BG) == 60

    def test_image_roundtrip(self) -> None:
        """The Pillow view matches the buffer contents."""
        canvas = Canvas(4, 3)
        canvas.put_pixel(1, 2, (10, 20, 30, 255))
        img = canvas.to_image()
        assert img.size == (4, 3)
        assert img.mode == "RGBA"
        assert img.getpixel((1, 2)) == (10, 20, 30, 255)

    def test_load_image_size_mismatch(self) -> None:
        """Loading a differently sized image is refused."""
        canvas = Canvas(4, 3)
        with pytest.raises(ValueError):
            canvas.load_image(Image.new("RGBA", (5, 5)))


# ============================================================================
# Colors
# ============================================================================


class TestParseHexColor:
    """Tests for #RRGGBB parsing."""

    def test_valid(self) -> None:
        """A well-formed color parses to opaque RGBA."""
        assert parse_hex_color("#FF00AA") == (255, 0, 170, 255)

    def test_lowercase(self) -> None:
        """Hex digits are case-insensitive."""
        assert parse_hex_color("#ff00aa") == (255, 0, 170, 255)

    def test_without_hash(self) -> None:
        """A bare six-digit string is accepted as well."""
        assert parse_hex_color("00FF00") == (0, 255, 0, 255)

    @pytest.mark.parametrize("raw", ["", None, "#FFF", "#FF00AA00", "#GG0000", "#+F00AA", "#F_00AA", "red"])
    def test_invalid(self, raw) -> None:
        """Malformed strings yield None instead of raising."""
        assert parse_hex_color(raw) is None


class TestBlendColors:
    """Tests for source-over compositing."""

    def test_transparent_foreground_keeps_background(self) -> None:
        """A zero-alpha foreground returns the background unchanged."""
        bg = (10, 20, 30, 200)
        assert blend_colors(bg, (255, 255, 255, 0)) == bg

    def test_opaque_foreground_replaces(self) -> None:
        """An opaque foreground wins completely."""
        assert blend_colors((10, 20, 30, 255), (200, 100, 50, 255)) == (200, 100, 50, 255)

    def test_half_over_black(self) -> None:
        """Half alpha over opaque black halves the channels."""
        r, g, b, a = blend_colors((0, 0, 0, 255), (200, 100, 0, 128))
        assert abs(r - 100) <= 1
        assert abs(g - 50) <= 1
        assert b == 0
        assert a >= 254

    def test_over_transparent_background(self) -> None:
        """Over a transparent pixel the foreground color is kept at its own alpha."""
        r, g, b, a = blend_colors((0, 0, 0, 0), (100, 0, 0, 128))
        assert abs(r - 100) <= 1
        assert abs(a - 128) <= 1


class TestDimColor:
    """Tests for the gauge background shade."""

    def test_divides_channels(self) -> None:
        """Channels are divided by three with a fixed alpha."""
        assert dim_color((255, 0, 100, 255)) == (85, 0, 33, 180)


class TestTileKind:
    """Tests for visualization selector parsing."""

    def test_parse(self) -> None:
        """Known names parse; anything else falls back to graph."""
        assert TileKind.parse("gauge") is TileKind.GAUGE
        assert TileKind.parse(" Graph ") is TileKind.GRAPH
        assert TileKind.parse("pie") is TileKind.GRAPH
        assert TileKind.parse(None) is TileKind.GRAPH


# ============================================================================
# Title
# ============================================================================


class TestTitle:
    """Tests for title placement and delegation to the font renderer."""

    def test_anchor_centered(self) -> None:
        """Short titles are centered with the per-character width estimate."""
        assert title_anchor("CPU Temp") == (22, 8)

    def test_anchor_clamped_left(self) -> None:
        """Long titles start at the minimum left margin."""
        assert title_anchor("A very long title text") == (5, 8)

    def test_empty_title_is_noop(self, count_pixels) -> None:
        """An empty title draws nothing."""
        canvas = Canvas()
        assert draw_title(canvas, "", (0, 255, 0, 255)) is False
        assert count_pixels(canvas, COL_BG) == ICON_SIZE * ICON_SIZE

    def test_missing_font_omits_title(self, monkeypatch, count_pixels) -> None:
        """Without a usable font the title is silently skipped."""
        monkeypatch.setattr(common, "load_font", lambda *a, **k: None)
        canvas = Canvas()
        assert draw_title(canvas, "CPU", (0, 255, 0, 255)) is False
        assert count_pixels(canvas, COL_BG) == ICON_SIZE * ICON_SIZE

    def test_title_drawn_in_band(self, count_pixels) -> None:
        """A title only touches the top band."""
        canvas = Canvas()
        assert draw_title(canvas, "CPU", (0, 255, 0, 255)) is True
        assert count_pixels(canvas, COL_BG) < ICON_SIZE * ICON_SIZE
        for y in range(60, ICON_SIZE):
            for x in range(0, ICON_SIZE, 7):
                assert canvas.get_pixel(x, y) == COL_BG


# ============================================================================
# Encoding boundary
# ============================================================================


class TestEncoding:
    """Tests for PNG and data-URI output."""

    def test_png_signature(self) -> None:
        """Encoded bytes are a PNG stream."""
        assert encode_png(Canvas()).startswith(b"\x89PNG\r\n\x1a\n")

    def test_data_uri_format(self) -> None:
        """The data URI wraps base64 PNG bytes behind the fixed prefix."""
        canvas = Canvas()
        canvas.put_pixel(5, 6, (1, 2, 3, 255))
        uri = to_data_uri(canvas)
        assert uri.startswith(DATA_URI_PREFIX)
        png = base64.b64decode(uri[len(DATA_URI_PREFIX):])
        img = Image.open(io.BytesIO(png))
        assert img.size == (ICON_SIZE, ICON_SIZE)
        assert img.convert("RGBA").getpixel((5, 6)) == (1, 2, 3, 255)

    def test_encoding_failure_raises_render_error(self) -> None:
        """Encoder failures surface as RenderError."""

        class _BrokenImage:
            def save(self, *_a, **_k) -> None:
                raise OSError("disk on fire")

        class _BrokenCanvas:
            def to_image(self) -> _BrokenImage:
                return _BrokenImage()

        with pytest.raises(RenderError):
            encode_png(_BrokenCanvas())  # type: ignore[arg-type]
