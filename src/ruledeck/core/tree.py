from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional, Union

from ruledeck.core.errors import RuleExecutionError, StructuralError
from ruledeck.core.items import ConfigItem
from ruledeck.core.kinds import ConfigKind

if TYPE_CHECKING:
    from ruledeck.app.styles import StyleHandle
    from ruledeck.core.registry import Registry


RuleFilter = Callable[["RuleNode"], bool]
StyleSource = Union[str, Callable[..., str], None]
RuleCallback = Optional[Callable[..., Any]]

_NODE_KEYS = frozenset({"parent", "css", "acss", "init", "ainit"})


class NodeType(str, Enum):
    TAB = "tab"
    GROUP = "group"
    RULE = "rule"
    TEXT = "text"

    @property
    def is_rule(self) -> bool:
        return self in (NodeType.RULE, NodeType.TEXT)

    @property
    def is_container(self) -> bool:
        return self in (NodeType.TAB, NodeType.GROUP)


# Required parent type per node type; None means the node is top-level.
_PARENT_TYPES: dict[NodeType, NodeType | None] = {
    NodeType.TAB: None,
    NodeType.GROUP: NodeType.TAB,
    NodeType.RULE: NodeType.GROUP,
    NodeType.TEXT: NodeType.GROUP,
}


class RuleNode(ConfigItem):
    """A Tab, Group, Rule or Text entry of the settings tree.

    Every node is a boolean config item. Tabs, groups and text nodes are
    ``always`` enabled and show no checkbox; plain rules are toggled by the
    user unless declared with ``always=True``.

    Rules contribute to the page once, when the host becomes ready:

    * ``css``   style text applied whether or not the rule is enabled
    * ``acss``  style text applied only while enabled
    * ``init``  callback invoked whether or not the rule is enabled
    * ``ainit`` callback invoked only while enabled

    Style fields may be literal strings or callables; callbacks may take the
    rule as their only argument.
    """

    consumed_keys = ConfigItem.consumed_keys | _NODE_KEYS

    def __init__(
        self,
        declaration: Mapping[str, Any] | None,
        *,
        registry: Registry,
        node_type: NodeType,
    ) -> None:
        decl = dict(declaration or {})
        parent = decl.get("parent")
        check_parent(node_type, parent, registry)
        if node_type is not NodeType.RULE:
            decl["always"] = True
        super().__init__(decl, registry=registry, kind=ConfigKind.BOOLEAN)
        self.node_type = node_type
        self.parent: RuleNode | None = parent
        self.children: list[RuleNode] = []
        self.css: StyleSource = decl.get("css")
        self.acss: StyleSource = decl.get("acss")
        self.init: RuleCallback = decl.get("init")
        self.ainit: RuleCallback = decl.get("ainit")
        self.executed = False

    def __repr__(self) -> str:
        return f"<RuleNode {self.node_type.value} id={self.id!r} render_id={self.render_id!r}>"

    @property
    def is_rule(self) -> bool:
        return self.node_type.is_rule

    def execute(
        self,
        styles: StyleHandle | None = None,
        logger: logging.Logger | None = None,
    ) -> RuleExecutionError | None:
        """Apply this rule's styles and callbacks, once.

        Failures are logged and returned, never raised, so one broken rule
        cannot stop the rules declared after it.
        """
        if self.executed:
            return None
        self.executed = True
        log = logger or self.registry.logger
        step = "enabled"
        try:
            enabled = self.is_enabled()
            step = "css"
            chunks = [_resolve_style(self.css, self)]
            if enabled:
                step = "acss"
                chunks.append(_resolve_style(self.acss, self))
            style_text = "\n".join(chunk for chunk in chunks if chunk)
            if style_text and styles is not None:
                styles.append(style_text)
            if callable(self.init):
                step = "init"
                _invoke_callable(self.init, self)
            if enabled and callable(self.ainit):
                step = "ainit"
                _invoke_callable(self.ainit, self)
        except Exception as exc:
            error = RuleExecutionError(self.describe(), step, exc)
            log.error("%s", error, exc_info=exc)
            return error
        return None


def check_parent(node_type: NodeType, parent: Any, registry: Registry) -> None:
    expected = _PARENT_TYPES[node_type]
    if expected is None:
        if parent is not None:
            raise StructuralError(f"{node_type.value.title()} nodes are top-level and take no parent")
        return
    if not isinstance(parent, RuleNode) or parent.node_type is not expected:
        raise StructuralError(
            f"{node_type.value.title()} must be declared inside a {expected.value.title()}"
        )
    if parent.registry is not registry:
        raise StructuralError("Parent node belongs to a different registry")


def query(base: Iterable[RuleNode], where: RuleFilter | None = None) -> list[RuleNode]:
    """Flatten ``base`` depth-first into rules, each reported once."""
    found: dict[RuleNode, None] = {}

    def visit(nodes: Iterable[RuleNode]) -> None:
        for node in nodes:
            if node.node_type.is_container:
                visit(node.children)
            if not node.node_type.is_rule:
                continue
            if where is not None and not where(node):
                continue
            found.setdefault(node, None)

    visit(base)
    return list(found)


def _resolve_style(source: StyleSource, rule: RuleNode) -> str:
    if source is None:
        return ""
    if callable(source):
        value = _invoke_callable(source, rule)
        return "" if value is None else str(value)
    return str(source)


def _invoke_callable(func: Callable[..., Any], *preferred_args: Any) -> Any:
    """Call a function while tolerating smaller signatures for declaration callbacks."""
    if not preferred_args:
        return func()

    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return func(*preferred_args)

    params = list(signature.parameters.values())
    if any(param.kind == inspect.Parameter.VAR_POSITIONAL for param in params):
        return func(*preferred_args)

    positional_params = [
        param
        for param in params
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    if not positional_params:
        return func()

    count = min(len(positional_params), len(preferred_args))
    return func(*preferred_args[:count])
