"""Tile compositor: background, title, then exactly one graph or gauge layer."""

from __future__ import annotations

from huds.common import (
    TITLE_FONT_SIZE,
    Canvas,
    RenderConfig,
    TileKind,
    draw_title,
    to_data_uri,
)
from huds.gauge import render_gauge
from huds.graph import render_graph


def render_tile(
    config: RenderConfig,
    font_path: str = "",
    font_size: int = TITLE_FONT_SIZE,
) -> Canvas:
    canvas = Canvas()

    if not config.samples:
        # Nothing to plot yet; the title still tells the user what the tile is.
        draw_title(canvas, config.title, config.color_scheme.normal_color, font_path, font_size)
        return canvas

    state_col = config.state_color
    titled = draw_title(canvas, config.title, state_col, font_path, font_size)

    if config.kind == TileKind.GAUGE:
        render_gauge(canvas, config)
    else:
        render_graph(canvas, config, state_col, with_title=titled)
    return canvas


def render_data_uri(
    config: RenderConfig,
    font_path: str = "",
    font_size: int = TITLE_FONT_SIZE,
) -> str:
    """Render one frame and wrap it for the host.

    Raises ``RenderError`` only when PNG encoding fails.
    """
    return to_data_uri(render_tile(config, font_path=font_path, font_size=font_size))
