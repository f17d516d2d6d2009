from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtWidgets import QApplication


StyleSink = Callable[[str], None]


def apply_to_application(stylesheet: str) -> None:
    app = QApplication.instance()
    if app is None:
        return
    app.setStyleSheet(stylesheet)


class StyleHandle:
    """One stylesheet owned by a `StyleInjector`; its text can keep growing."""

    def __init__(self, injector: StyleInjector, text: str) -> None:
        self._injector = injector
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    def append(self, text: str) -> None:
        if not text:
            return
        self._text = f"{self._text}\n{text}" if self._text else text
        self._injector.refresh()

    def set_text(self, text: str) -> None:
        self._text = text or ""
        self._injector.refresh()


class StyleInjector:
    """Combines stylesheet handles and pushes the result to the application."""

    def __init__(self, apply: StyleSink | None = None, *, logger: logging.Logger | None = None) -> None:
        self._apply = apply or apply_to_application
        self._handles: list[StyleHandle] = []
        self._logger = logger or logging.getLogger("ruledeck.styles")

    @property
    def handles(self) -> tuple[StyleHandle, ...]:
        return tuple(self._handles)

    def append(self, text: str) -> StyleHandle:
        handle = StyleHandle(self, text or "")
        self._handles.append(handle)
        self.refresh()
        return handle

    def stylesheet(self) -> str:
        return "\n".join(handle.text for handle in self._handles if handle.text)

    def refresh(self) -> None:
        stylesheet = self.stylesheet()
        self._logger.debug("Applying %d stylesheet handle(s)", len(self._handles))
        self._apply(stylesheet)
