from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path

from core.window import DEFAULT_CAPACITY, MAX_CAPACITY
from huds.common import TITLE_FONT_SIZE

APP_VERSION = "0.1.0"

APP_NAME = "tilegraph"

DEFAULT_UPDATE_INTERVAL_S = 1.0
MIN_UPDATE_INTERVAL_S = 0.05


@dataclass(frozen=True)
class Cfg:
    root: Path
    config_file: Path
    window_capacity: int = DEFAULT_CAPACITY
    update_interval_s: float = DEFAULT_UPDATE_INTERVAL_S
    font_path: str = ""
    font_size: int = TITLE_FONT_SIZE
    log_level: str = "INFO"


def load_cfg(project_root: str | Path, config_file: str | Path = "config/defaults.ini") -> Cfg:
    root = Path(project_root).resolve()
    cfg_path = (root / config_file).resolve()

    cp = configparser.ConfigParser()
    cp.read(cfg_path, encoding="utf-8")

    capacity = _get_int(cp, "tile", "window_capacity", DEFAULT_CAPACITY)
    capacity = max(1, min(MAX_CAPACITY, capacity))

    interval = _get_float(cp, "tile", "update_interval_s", DEFAULT_UPDATE_INTERVAL_S)
    if not interval >= MIN_UPDATE_INTERVAL_S:
        interval = MIN_UPDATE_INTERVAL_S

    font_size = _get_int(cp, "tile", "font_size", TITLE_FONT_SIZE)
    if font_size < 1:
        font_size = TITLE_FONT_SIZE

    font_path = _get_str(cp, "tile", "font_path", "")
    if font_path and not Path(font_path).is_absolute() and (root / font_path).exists():
        font_path = str((root / font_path).resolve())

    return Cfg(
        root=root,
        config_file=cfg_path,
        window_capacity=capacity,
        update_interval_s=interval,
        font_path=font_path,
        font_size=font_size,
        log_level=_get_str(cp, "log", "level", "INFO").upper() or "INFO",
    )


def _get_int(cp: configparser.ConfigParser, section: str, key: str, default: int) -> int:
    try:
        return int(cp.get(section, key, fallback=str(default)).strip())
    except Exception:
        return int(default)


def _get_float(cp: configparser.ConfigParser, section: str, key: str, default: float) -> float:
    try:
        return float(cp.get(section, key, fallback=str(default)).strip())
    except Exception:
        return float(default)


def _get_str(cp: configparser.ConfigParser, section: str, key: str, default: str) -> str:
    try:
        return str(cp.get(section, key, fallback=default)).strip()
    except Exception:
        return str(default)
