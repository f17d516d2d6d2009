from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from ruledeck.core.errors import RuleExecutionError, StructuralError
from ruledeck.core.items import ConfigItem
from ruledeck.core.render_ids import RenderIdAllocator
from ruledeck.core.tree import NodeType, RuleFilter, RuleNode, query

if TYPE_CHECKING:
    from ruledeck.app.settings_store import SettingsStore
    from ruledeck.app.styles import StyleHandle, StyleInjector


RenderSyncHook = Callable[[ConfigItem], None]


class Registry:
    """Owns one settings tree: its tabs, rule index, render ids and store.

    Independent registries never share state, so several trees can live in
    one process side by side.
    """

    def __init__(
        self,
        store: SettingsStore,
        *,
        styles: StyleInjector | None = None,
        logger: logging.Logger | None = None,
        render_ids: RenderIdAllocator | None = None,
    ) -> None:
        self.store = store
        self.styles = styles
        self.logger = logger or logging.getLogger("ruledeck.rules")
        self.render_ids = render_ids or RenderIdAllocator()
        self.style_handle: StyleHandle | None = None

        self._tabs: list[RuleNode] = []
        self._rules: dict[str, RuleNode] = {}
        self._items: list[ConfigItem] = []
        self._render_sync_hooks: list[RenderSyncHook] = []
        self._initialized = False
        self._errors: tuple[RuleExecutionError, ...] = ()

    @property
    def tabs(self) -> tuple[RuleNode, ...]:
        return tuple(self._tabs)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def errors(self) -> tuple[RuleExecutionError, ...]:
        return self._errors

    def item(self, declaration: Mapping[str, Any] | None) -> ConfigItem:
        return ConfigItem(declaration, registry=self)

    def tab(self, declaration: Mapping[str, Any] | None) -> RuleNode:
        return self._declare(declaration, NodeType.TAB)

    def group(self, declaration: Mapping[str, Any] | None) -> RuleNode:
        return self._declare(declaration, NodeType.GROUP)

    def rule(self, declaration: Mapping[str, Any] | None) -> RuleNode:
        return self._declare(declaration, NodeType.RULE)

    def text(self, declaration: Mapping[str, Any] | None) -> RuleNode:
        return self._declare(declaration, NodeType.TEXT)

    def get_rule(self, rule_id: str) -> RuleNode | None:
        return self._rules.get(rule_id)

    def query(
        self,
        base: Iterable[RuleNode] | None = None,
        where: RuleFilter | None = None,
    ) -> list[RuleNode]:
        return query(self._tabs if base is None else base, where=where)

    def track(self, item: ConfigItem) -> None:
        self._items.append(item)

    def add_render_sync(self, hook: RenderSyncHook) -> Callable[[], None]:
        if hook not in self._render_sync_hooks:
            self._render_sync_hooks.append(hook)

        def _remove() -> None:
            if hook in self._render_sync_hooks:
                self._render_sync_hooks.remove(hook)

        return _remove

    def sync_rendered(self, item: ConfigItem) -> None:
        for hook in tuple(self._render_sync_hooks):
            hook(item)

    def init_rules(self) -> tuple[RuleExecutionError, ...]:
        """Execute every rule once, in query order.

        All rule styles go into one style handle created here; the errors of
        failing rules are collected and returned.
        """
        if self._initialized:
            return self._errors
        self._initialized = True
        if self.styles is not None:
            self.style_handle = self.styles.append("")
        errors: list[RuleExecutionError] = []
        for rule in self.query():
            error = rule.execute(self.style_handle, logger=self.logger)
            if error is not None:
                errors.append(error)
        self._errors = tuple(errors)
        if errors:
            self.logger.warning("%d of the registered rules failed to execute", len(errors))
        return self._errors

    def teardown(self) -> None:
        for item in self._items:
            item.release()
        self._items.clear()
        self._tabs.clear()
        self._rules.clear()
        self._render_sync_hooks.clear()

    def _declare(self, declaration: Mapping[str, Any] | None, node_type: NodeType) -> RuleNode:
        decl = dict(declaration or {})
        rule_id = decl.get("id")
        if node_type.is_rule and rule_id is not None and str(rule_id).strip() in self._rules:
            raise StructuralError(f"Rule id already registered: {rule_id}")
        node = RuleNode(decl, registry=self, node_type=node_type)
        if node.parent is not None:
            node.parent.children.append(node)
        if node_type is NodeType.TAB:
            self._tabs.append(node)
        if node_type.is_rule and node.id:
            self._rules[node.id] = node
        return node
