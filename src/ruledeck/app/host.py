from __future__ import annotations

import logging
from typing import Any, Callable

from PySide6.QtCore import QTimer

from ruledeck.core.registry import Registry


ReadyCallback = Callable[[], Any]


class ReadyHook:
    """Runs registered callbacks once, when the host signals it is ready."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._callbacks: list[ReadyCallback] = []
        self._ready = False
        self._logger = logger or logging.getLogger("ruledeck.host")

    @property
    def ready(self) -> bool:
        return self._ready

    def on_ready(self, callback: ReadyCallback) -> None:
        if self._ready:
            self._run(callback)
            return
        self._callbacks.append(callback)

    def signal_ready(self) -> None:
        if self._ready:
            return
        self._ready = True
        callbacks = tuple(self._callbacks)
        self._callbacks.clear()
        for callback in callbacks:
            self._run(callback)

    def _run(self, callback: ReadyCallback) -> None:
        try:
            callback()
        except Exception as exc:
            self._logger.warning("Ready callback %r failed: %s", callback, exc)


def install_rules(registry: Registry, hook: ReadyHook) -> None:
    hook.on_ready(registry.init_rules)


def schedule_on_event_loop(hook: ReadyHook) -> None:
    QTimer.singleShot(0, hook.signal_ready)
