from __future__ import annotations

from typing import Iterable

from ruledeck.app.runtime_paths import package_path
from ruledeck.app.styles import StyleHandle, StyleInjector


_THEME_DIR = package_path("ui", "theme")
_DEFAULT_QSS_FILES: tuple[str, ...] = ("config_items.qss",)


def load_stylesheet(file_names: Iterable[str] | None = None) -> str:
    selected_files = tuple(file_names) if file_names is not None else _DEFAULT_QSS_FILES

    parts: list[str] = []
    for file_name in selected_files:
        qss_path = _THEME_DIR / file_name
        if not qss_path.exists():
            continue
        stylesheet = qss_path.read_text(encoding="utf-8").strip()
        if stylesheet:
            parts.append(stylesheet)
    return "\n\n".join(parts)


def install_config_theme(
    injector: StyleInjector,
    *,
    file_names: Iterable[str] | None = None,
) -> StyleHandle:
    """Push the base look of rendered config items through ``injector``."""
    return injector.append(load_stylesheet(file_names))
