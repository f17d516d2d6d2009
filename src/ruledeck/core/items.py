from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping

from ruledeck.core.errors import MissingIdError
from ruledeck.core.kinds import ConfigKind, SelectOption, VariantSpec, build_variant, parse_kind
from ruledeck.core.template import TextSource, resolve_text, summarize

if TYPE_CHECKING:
    from ruledeck.app.settings_store import SettingsStore, StoreSubscription
    from ruledeck.core.registry import Registry


ConfigListener = Callable[[Any, Any], None]

_ITEM_KEYS = frozenset(
    {"id", "type", "template", "ref", "select", "min", "max", "step", "icon", "always", "after_render"}
)


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


@dataclass(slots=True)
class ConfigBinding:
    key: str
    store: SettingsStore
    sync_subscription: StoreSubscription


class ConfigSubscription:
    """Handle returned by `ConfigItem.add_config_listener`."""

    def __init__(self, item: ConfigItem, callback: ConfigListener, subscription: StoreSubscription) -> None:
        self._item = item
        self._callback = callback
        self._subscription: StoreSubscription | None = subscription

    @property
    def active(self) -> bool:
        return self._subscription is not None

    def remove_config_listener(self) -> None:
        if self._subscription is None:
            return
        self._subscription.remove_listener()
        self._subscription = None
        self._item._forget_subscription(self)

    remove = remove_config_listener


class ConfigItem:
    """A node that may carry a persisted, normalized value and a template.

    The declaration mapping is copied, never mutated. Entries of its ``ref``
    mapping become child items whose ids extend this item's id with their key.
    The persisted value is bound lazily: nothing touches the store until the
    first ``get_config``, ``set_config`` or ``add_config_listener`` call.
    """

    # Declaration keys read by the item itself; the rest is kept in `extras`.
    consumed_keys: frozenset[str] = _ITEM_KEYS

    def __init__(
        self,
        declaration: Mapping[str, Any] | None,
        *,
        registry: Registry,
        context: ConfigItem | None = None,
        key: str | None = None,
        kind: ConfigKind | None = None,
    ) -> None:
        decl = dict(declaration or {})
        self._registry = registry
        self.context = context
        self.kind = kind if kind is not None else parse_kind(decl.get("type"))
        self.variant: VariantSpec = build_variant(self.kind, decl)
        self.render_id = registry.render_ids.next_id()
        self.template: TextSource = decl.get("template")
        self.icon = str(decl.get("icon") or "ask")
        self.always = bool(decl.get("always", False))
        self.after_render: Callable[[Any], Any] | None = decl.get("after_render")
        self.id = self._resolve_id(decl.get("id"), key)
        self.extras: Mapping[str, Any] = MappingProxyType(
            {name: value for name, value in decl.items() if name not in self.consumed_keys}
        )

        self._binding: ConfigBinding | None = None
        self._subscriptions: list[ConfigSubscription] = []

        refs: dict[str, ConfigItem] = {}
        for ref_key, entry in dict(decl.get("ref") or {}).items():
            if isinstance(entry, ConfigItem):
                refs[ref_key] = entry
            else:
                refs[ref_key] = ConfigItem(entry, registry=registry, context=self, key=ref_key)
        self.ref: Mapping[str, ConfigItem] = MappingProxyType(refs)
        registry.track(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind.value} id={self.id!r} render_id={self.render_id!r}>"

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def options(self) -> tuple[SelectOption, ...]:
        return self.variant.options

    @property
    def initial(self) -> Any:
        return self.variant.initial()

    @property
    def config_bound(self) -> bool:
        return self._binding is not None

    def describe(self) -> str:
        return self.id or self.render_id

    def normalize(self, value: Any) -> Any:
        return self.variant.normalize(value)

    def get_config(self) -> Any:
        binding = self._ensure_binding()
        raw = binding.store.get(binding.key)
        value = self.normalize(raw)
        if raw is not None and canonical_json(raw) != canonical_json(value):
            logging.getLogger("ruledeck.store").debug(
                "Rewriting stale value for %s: %r -> %r", binding.key, raw, value
            )
            binding.store.set(binding.key, value)
        return value

    def set_config(self, value: Any) -> Any:
        binding = self._ensure_binding()
        normalized = self.normalize(value)
        binding.store.set(binding.key, normalized)
        return normalized

    def add_config_listener(self, callback: ConfigListener) -> ConfigSubscription:
        """Call ``callback(new_value, old_value)`` whenever the stored value changes.

        Do not keep references to rendered widgets inside the callback; the
        subscription outlives them until it is removed.
        """
        binding = self._ensure_binding()
        subscription = ConfigSubscription(self, callback, binding.store.add_listener(binding.key, callback))
        self._subscriptions.append(subscription)
        return subscription

    def remove_config_listener(self, callback: ConfigListener) -> bool:
        self._ensure_binding()
        for subscription in list(self._subscriptions):
            if subscription._callback is callback:
                subscription.remove_config_listener()
                return True
        return False

    def is_enabled(self) -> bool:
        return self.always or bool(self.get_config())

    def text(self, is_root: bool = True) -> str:
        return summarize(resolve_text(self.template), self.ref, logger=self._registry.logger)

    def release(self) -> None:
        """Drop every listener this item registered on the store."""
        for subscription in list(self._subscriptions):
            subscription.remove_config_listener()
        if self._binding is not None:
            self._binding.sync_subscription.remove_listener()

    def _forget_subscription(self, subscription: ConfigSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _ensure_binding(self) -> ConfigBinding:
        if self._binding is not None:
            return self._binding
        if not self.id:
            raise MissingIdError(f"{self!r} has no id; it cannot hold a setting")
        store = self._registry.store
        sync_subscription = store.add_listener(self.id, self._on_config_changed)
        self._binding = ConfigBinding(key=self.id, store=store, sync_subscription=sync_subscription)
        return self._binding

    def _on_config_changed(self, new_value: Any, old_value: Any) -> None:
        self._registry.sync_rendered(self)

    def _resolve_id(self, declared: Any, key: str | None) -> str | None:
        if not self.kind.persisted:
            return None
        local_id = str(declared).strip() if declared is not None else (key or "")
        if not local_id:
            return None
        if self.context is not None and self.context.id:
            return f"{self.context.id}.{local_id}"
        return local_id
