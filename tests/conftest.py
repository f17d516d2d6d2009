from __future__ import annotations

import os

# Must be set before PySide6 creates the application.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from ruledeck.app.settings_store import MemorySettingsStore
from ruledeck.core.registry import Registry


class RecordingHandle:
    def __init__(self, text: str = "") -> None:
        self.text = text
        self.appended: list[str] = []

    def append(self, text: str) -> None:
        self.appended.append(text)
        self.text = f"{self.text}\n{text}" if self.text else text


class RecordingStyles:
    """Style injector stand-in that never touches Qt."""

    def __init__(self) -> None:
        self.handles: list[RecordingHandle] = []

    def append(self, text: str) -> RecordingHandle:
        handle = RecordingHandle(text)
        self.handles.append(handle)
        return handle


@pytest.fixture
def store() -> MemorySettingsStore:
    return MemorySettingsStore()


@pytest.fixture
def styles() -> RecordingStyles:
    return RecordingStyles()


@pytest.fixture
def registry(store, styles):
    reg = Registry(store, styles=styles)
    yield reg
    reg.teardown()


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


def process_events(app, rounds: int = 5) -> None:
    for _ in range(rounds):
        app.processEvents()
