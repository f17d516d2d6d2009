from __future__ import annotations

import json
import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

from ruledeck.app.runtime_paths import fallback_settings_path

_APP_SETTINGS_DIRNAME = "ruledeck"
_SETTINGS_ENV_VAR = "RULEDECK_SETTINGS"

StoreListener = Callable[[Any, Any], None]


class StoreSubscription(Protocol):
    def remove_listener(self) -> None: ...


class SettingsStore(Protocol):
    """Key-value store the config items persist into.

    Keys are dot-separated item ids. Listeners receive ``(new, old)`` and are
    called synchronously from ``set`` when the stored value actually changes.
    """

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def add_listener(self, key: str, callback: StoreListener) -> StoreSubscription: ...


def settings_path() -> Path:
    env = os.environ
    override = str(env.get(_SETTINGS_ENV_VAR, "") or "").strip()
    if override:
        return Path(override).expanduser()
    if os.name == "nt":
        appdata = str(env.get("APPDATA", "") or "").strip()
        if appdata:
            return Path(appdata) / _APP_SETTINGS_DIRNAME / "settings.json"
        localappdata = str(env.get("LOCALAPPDATA", "") or "").strip()
        if localappdata:
            return Path(localappdata) / _APP_SETTINGS_DIRNAME / "settings.json"
    else:
        xdg_config_home = str(env.get("XDG_CONFIG_HOME", "") or "").strip()
        if xdg_config_home:
            return Path(xdg_config_home) / _APP_SETTINGS_DIRNAME / "settings.json"
        home = str(env.get("HOME", "") or "").strip()
        if home:
            return Path(home) / ".config" / _APP_SETTINGS_DIRNAME / "settings.json"

    return fallback_settings_path()


def load_settings(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw)
    except Exception:
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def save_settings(path: Path, settings: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(dict(settings), indent=2, sort_keys=True), encoding="utf-8")


def _same_value(left: Any, right: Any) -> bool:
    try:
        return json.dumps(left, sort_keys=True) == json.dumps(right, sort_keys=True)
    except (TypeError, ValueError):
        return left == right


class _Subscription:
    def __init__(self, store: MemorySettingsStore, key: str, callback: StoreListener) -> None:
        self._store = store
        self.key = key
        self.callback = callback

    def remove_listener(self) -> None:
        self._store._remove_subscription(self)


class MemorySettingsStore:
    """Dict-backed store; the base for the JSON file store."""

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._values: dict[str, Any] = deepcopy(dict(values or {}))
        self._subscriptions: dict[str, list[_Subscription]] = {}
        self._logger = logger or logging.getLogger("ruledeck.store")

    def get(self, key: str) -> Any:
        return deepcopy(self._values.get(key))

    def set(self, key: str, value: Any) -> None:
        old_value = self._values.get(key)
        new_value = deepcopy(value)
        changed = key not in self._values or not _same_value(old_value, new_value)
        self._values[key] = new_value
        if not changed:
            return
        self._persist()
        self._notify(key, new_value, old_value)

    def add_listener(self, key: str, callback: StoreListener) -> _Subscription:
        subscription = _Subscription(self, key, callback)
        self._subscriptions.setdefault(key, []).append(subscription)
        return subscription

    def listener_count(self, key: str | None = None) -> int:
        if key is not None:
            return len(self._subscriptions.get(key, ()))
        return sum(len(items) for items in self._subscriptions.values())

    def snapshot(self) -> dict[str, Any]:
        return deepcopy(self._values)

    def _persist(self) -> None:
        return None

    def _notify(self, key: str, new_value: Any, old_value: Any) -> None:
        for subscription in tuple(self._subscriptions.get(key, ())):
            try:
                subscription.callback(deepcopy(new_value), deepcopy(old_value))
            except Exception as exc:
                self._logger.warning("Settings listener failed for %s: %s", key, exc)

    def _remove_subscription(self, subscription: _Subscription) -> None:
        items = self._subscriptions.get(subscription.key)
        if not items or subscription not in items:
            return
        items.remove(subscription)
        if not items:
            del self._subscriptions[subscription.key]


class JsonSettingsStore(MemorySettingsStore):
    """Store persisted as one flat JSON object of ``{dot.key: value}``."""

    def __init__(self, path: Path | None = None, *, logger: logging.Logger | None = None) -> None:
        self._path = Path(path) if path is not None else settings_path()
        super().__init__(load_settings(self._path), logger=logger)

    @property
    def path(self) -> Path:
        return self._path

    def reload(self) -> None:
        self._values = load_settings(self._path)

    def _persist(self) -> None:
        try:
            save_settings(self._path, self._values)
        except OSError as exc:
            self._logger.warning("Could not write settings to %s: %s", self._path, exc)
