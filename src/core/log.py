from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

LOG_FILE_ENV = "TILEGRAPH_LOG_FILE"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LOG = logging.getLogger(__name__)
_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]+")


def _fmt_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


@dataclass
class Logger:
    """Append-only key/value session log for one CLI run.

    Every line is also echoed to the ``logging`` tree at DEBUG so a run
    can be followed on the console with ``[log] level = DEBUG``.
    """

    log_file: Path
    lines: int = field(default=0, init=False)

    def kv(self, key: str, value: Any) -> None:
        self._write(f"{key}={_fmt_value(value)}")

    def msg(self, text: str) -> None:
        self._write(str(text))

    def _write(self, line: str) -> None:
        text = line.rstrip("\n")
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as f:
            f.write(text + "\n")
        self.lines += 1
        _LOG.debug("%s", text)


def build_log_file_path(project_root: str | Path, name: str = "main") -> Path:
    root = Path(project_root).resolve()
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    safe = _UNSAFE_NAME.sub("_", str(name or "main")).strip("_") or "main"
    return root / "_logs" / f"{ts}_{safe}.txt"


def make_logger(project_root: str | Path, name: str = "main", log_file: Path | None = None) -> Logger:
    if log_file is None:
        env_path = str(os.environ.get(LOG_FILE_ENV) or "").strip()
        log_file = Path(env_path) if env_path else build_log_file_path(project_root, name)
    return Logger(log_file=Path(log_file))


def configure_logging(level: str = "INFO") -> int:
    """Install a console handler on the root logger; returns the level used."""
    lvl = logging.getLevelName(str(level or "INFO").strip().upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO
    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    logging.getLogger().setLevel(lvl)
    return lvl
