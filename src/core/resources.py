"""Project-root and bundled resource lookup."""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

_ROOT_MARKER = "pyproject.toml"


@lru_cache(maxsize=1)
def _checkout_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / _ROOT_MARKER).is_file():
            return parent
    # src/core/resources.py -> repository root
    return here.parents[2]


def project_root() -> Path:
    """Root holding ``config/``: the frozen bundle dir or the checkout."""
    bundle = getattr(sys, "_MEIPASS", None)
    if bundle:
        return Path(bundle)
    return _checkout_root()


def get_resource_path(*parts: str) -> Path:
    return project_root().joinpath(*(str(p) for p in parts))
