"""Where ruledeck finds its files, from a checkout, a wheel or a frozen bundle."""

from __future__ import annotations

import sys
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parents[1]


def is_frozen_runtime() -> bool:
    return bool(getattr(sys, "frozen", False))


def install_root() -> Path:
    """Folder holding the executable when frozen, else the project checkout."""
    if is_frozen_runtime():
        return Path(sys.executable).resolve().parent
    return _PACKAGE_DIR.parents[1]


def package_root() -> Path:
    bundle_dir = getattr(sys, "_MEIPASS", None)
    if is_frozen_runtime() and bundle_dir:
        return Path(bundle_dir) / "ruledeck"
    return _PACKAGE_DIR


def package_path(*parts: str) -> Path:
    return package_root().joinpath(*parts)


def fallback_settings_path() -> Path:
    return install_root() / "config" / "settings.json"
