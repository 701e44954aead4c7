"""Command line entry point: render single frames or drive a tile from stdin."""

from __future__ import annotations

import argparse
import base64
import logging
import sys
from pathlib import Path
from typing import Sequence

from core.cfg import APP_NAME, APP_VERSION, load_cfg
from core.log import configure_logging, make_logger
from core.models import TileSettings
from core.resources import get_resource_path
from core.sources import StreamValueSource
from core.tile_service import TileService
from huds.common import DATA_URI_PREFIX, RenderError, encode_png
from huds.compose import render_data_uri, render_tile

_LOG = logging.getLogger(__name__)


def _parse_samples(raw: str) -> list[float]:
    out: list[float] = []
    for part in str(raw or "").replace(";", ",").split(","):
        txt = part.strip()
        if txt == "":
            continue
        try:
            out.append(float(txt))
        except ValueError:
            raise argparse.ArgumentTypeError(f"not a number: {txt!r}") from None
    return out


def _settings_from_args(args: argparse.Namespace) -> TileSettings:
    data = {
        "dataSource": args.source,
        "metricType": args.metric,
        "visualizationType": args.kind,
        "normalColor": args.normal_color,
        "warningColor": args.warning_color,
        "minValue": args.min,
        "maxValue": args.max,
        "threshold": args.threshold,
        "showValueText": args.show_value,
    }
    if args.title is not None:
        data["title"] = args.title
    return TileSettings.from_dict(data)


class FileHost:
    """Host stand-in that writes every received frame to one PNG file."""

    def __init__(self, out_path: Path) -> None:
        self.out_path = out_path
        self.title: str | None = None

    def set_image(self, data_uri: str) -> None:
        if not data_uri.startswith(DATA_URI_PREFIX):
            raise ValueError("unexpected image payload")
        png = base64.b64decode(data_uri[len(DATA_URI_PREFIX):])
        self.out_path.parent.mkdir(parents=True, exist_ok=True)
        self.out_path.write_bytes(png)

    def set_title(self, text: str | None) -> None:
        self.title = text


def _cmd_render(args: argparse.Namespace, samples: list[float], cfg, log) -> int:
    settings = _settings_from_args(args)
    config = settings.to_render_config(samples)
    log.kv("kind", config.kind.value)
    log.kv("samples", len(config.samples))
    log.kv("range", f"{config.min_value}..{config.max_value}")
    log.kv("threshold", config.threshold)
    log.kv("warning", config.is_warning)

    try:
        if args.data_uri:
            sys.stdout.write(render_data_uri(config, font_path=cfg.font_path, font_size=cfg.font_size) + "\n")
            return 0
        png = encode_png(render_tile(config, font_path=cfg.font_path, font_size=cfg.font_size))
    except RenderError as exc:
        log.kv("error", exc)
        _LOG.error("%s", exc)
        return 1

    out = Path(args.out).resolve()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(png)
    log.kv("out", str(out))
    return 0


def _cmd_stream(args: argparse.Namespace, cfg, log) -> int:
    settings = _settings_from_args(args)
    source = StreamValueSource()
    host = FileHost(Path(args.out).resolve())
    service = TileService.from_cfg(cfg)
    inst = service.add_instance("stdin", settings, source, host)
    log.kv("out", str(host.out_path))
    log.kv("interval_s", cfg.update_interval_s)

    service.start()
    accepted = 0
    try:
        for line in sys.stdin:
            txt = line.strip()
            if txt and source.push_message(txt):
                accepted += 1
    except KeyboardInterrupt:
        pass
    finally:
        # One last frame so the file reflects the final value.
        inst.post_tick()
        inst.wait_idle()
        service.stop()

    log.kv("messages", accepted)
    log.kv("frames", inst.frames)
    log.kv("skipped", inst.skipped)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog=APP_NAME, description="Render metric tiles (graph or gauge) as 144x144 PNG.")
    ap.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    ap.add_argument("--config", default="config/defaults.ini", help="INI file relative to the project root")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--kind", choices=("graph", "gauge"), default="graph")
    common.add_argument("--source", choices=("lmsensors", "websocket"), default="websocket")
    common.add_argument("--metric", default="cputemp", help="metric preset for defaults and title")
    common.add_argument("--min", type=float, default=None)
    common.add_argument("--max", type=float, default=None)
    common.add_argument("--threshold", type=float, default=None)
    common.add_argument("--normal-color", default="", help="#RRGGBB")
    common.add_argument("--warning-color", default="", help="#RRGGBB")
    common.add_argument("--title", default=None)
    common.add_argument("--show-value", action="store_true")

    sub = ap.add_subparsers(dest="cmd", required=True)

    p_render = sub.add_parser("render", parents=[common], help="render one frame from explicit samples")
    p_render.add_argument("--samples", required=True, help="comma separated values, oldest first")
    grp = p_render.add_mutually_exclusive_group()
    grp.add_argument("--out", default="tile.png")
    grp.add_argument("--data-uri", action="store_true", help="print the data URI instead of writing a file")

    p_stream = sub.add_parser("stream", parents=[common], help="read JSON values from stdin, update a PNG every tick")
    p_stream.add_argument("--out", default="tile.png")
    return ap


def main(argv: Sequence[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    project_root = get_resource_path()
    cfg = load_cfg(project_root, args.config)
    configure_logging(cfg.log_level)
    log = make_logger(project_root, name=args.cmd)

    log.msg(f"{APP_NAME} {APP_VERSION} start")
    log.kv("config", str(cfg.config_file))
    log.kv("cmd", args.cmd)

    if args.cmd == "render":
        try:
            samples = _parse_samples(args.samples)
        except argparse.ArgumentTypeError as exc:
            ap.error(str(exc))
        rc = _cmd_render(args, samples, cfg, log)
    else:
        rc = _cmd_stream(args, cfg, log)

    log.kv("exit", rc)
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
