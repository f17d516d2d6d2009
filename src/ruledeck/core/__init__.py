from __future__ import annotations

from ruledeck.core.errors import (
    InvalidBoundsError,
    InvalidOptionsError,
    MissingIdError,
    RuleDeckError,
    RuleExecutionError,
    StructuralError,
)
from ruledeck.core.items import ConfigItem, ConfigSubscription
from ruledeck.core.kinds import ConfigKind, NumberBounds, SelectOption, VariantSpec
from ruledeck.core.registry import Registry
from ruledeck.core.render_ids import RenderIdAllocator
from ruledeck.core.template import RenderMode, TemplateToken, TokenKind, tokenize
from ruledeck.core.tree import NodeType, RuleNode, query

__all__ = [
    "ConfigItem",
    "ConfigKind",
    "ConfigSubscription",
    "InvalidBoundsError",
    "InvalidOptionsError",
    "MissingIdError",
    "NodeType",
    "NumberBounds",
    "Registry",
    "RenderIdAllocator",
    "RenderMode",
    "RuleDeckError",
    "RuleExecutionError",
    "RuleNode",
    "SelectOption",
    "StructuralError",
    "TemplateToken",
    "TokenKind",
    "VariantSpec",
    "query",
    "tokenize",
]
