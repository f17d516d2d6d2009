from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

import pytest

from ruledeck.app.runtime_paths import fallback_settings_path, package_path
from ruledeck.app.settings_store import (
    JsonSettingsStore,
    MemorySettingsStore,
    load_settings,
    settings_path,
)


def test_listeners_see_new_and_old_values():
    store = MemorySettingsStore({"a": 1})
    calls = []
    store.add_listener("a", lambda new, old: calls.append((new, old)))

    store.set("a", 2)
    store.set("a", 2)
    store.set("b", 3)

    assert calls == [(2, 1)]


def test_removed_listeners_stay_silent():
    store = MemorySettingsStore()
    calls = []
    subscription = store.add_listener("a", lambda new, old: calls.append(new))

    subscription.remove_listener()
    subscription.remove_listener()
    store.set("a", True)

    assert calls == []
    assert store.listener_count() == 0


def test_failing_listener_does_not_stop_the_others(caplog):
    store = MemorySettingsStore()
    calls = []

    def broken(new, old):
        raise ValueError("listener broke")

    store.add_listener("a", broken)
    store.add_listener("a", lambda new, old: calls.append(new))

    with caplog.at_level(logging.WARNING, logger="ruledeck.store"):
        store.set("a", "x")

    assert calls == ["x"]
    assert "listener broke" in caplog.text


def test_values_are_copied_in_and_out():
    store = MemorySettingsStore()
    value = [1, 2]
    store.set("a", value)
    value.append(3)

    read = store.get("a")
    read.append(4)

    assert store.get("a") == [1, 2]


def test_json_store_persists_each_change(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    store = JsonSettingsStore(path)

    store.set("video.quality", "hd")
    store.set("flag", True)

    assert json.loads(path.read_text(encoding="utf-8")) == {"flag": True, "video.quality": "hd"}
    assert JsonSettingsStore(path).get("video.quality") == "hd"


def test_json_store_reload(tmp_path):
    path = tmp_path / "settings.json"
    store = JsonSettingsStore(path)
    path.write_text(json.dumps({"a": 5}), encoding="utf-8")

    assert store.get("a") is None
    store.reload()
    assert store.get("a") == 5


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", ""])
def test_unreadable_files_load_empty(tmp_path, content):
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")

    assert load_settings(path) == {}
    assert JsonSettingsStore(path).snapshot() == {}


def test_missing_file_loads_empty(tmp_path):
    assert load_settings(tmp_path / "absent.json") == {}


def test_settings_path_env_override(monkeypatch, tmp_path):
    target = tmp_path / "custom.json"
    monkeypatch.setenv("RULEDECK_SETTINGS", str(target))

    assert settings_path() == target


@pytest.mark.skipif(os.name == "nt", reason="XDG lookup applies outside Windows")
def test_settings_path_follows_xdg(monkeypatch, tmp_path):
    monkeypatch.delenv("RULEDECK_SETTINGS", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert settings_path() == Path(tmp_path) / "ruledeck" / "settings.json"


@pytest.mark.skipif(os.name == "nt", reason="XDG lookup applies outside Windows")
def test_settings_path_defaults_to_home_config(monkeypatch, tmp_path):
    monkeypatch.delenv("RULEDECK_SETTINGS", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert settings_path() == Path(tmp_path) / ".config" / "ruledeck" / "settings.json"


def test_settings_fall_back_next_to_a_frozen_executable(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "frozen", True, raising=False)
    monkeypatch.setattr(sys, "executable", str(tmp_path / "ruledeck-demo"))

    assert fallback_settings_path() == tmp_path.resolve() / "config" / "settings.json"


def test_package_resources_resolve_in_a_checkout(monkeypatch):
    monkeypatch.delattr(sys, "frozen", raising=False)

    assert package_path("ui", "theme", "config_items.qss").is_file()
