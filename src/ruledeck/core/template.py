"""Tokenizer for the item template grammar.

Templates are short strings mixing literal text with references::

    {{name}}   child item from the owning item's ``ref`` mapping
    [[id]]     rule registered under ``id`` (root renders only)
    | or ||    start a new label; ``||`` also starts a new row
    &amp;      the only entity that gets decoded

Anything the grammar does not recognise is skipped silently.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Mapping, Protocol, Union


TextSource = Union[str, Callable[[], str], None]

_TOKEN_RE = re.compile(
    "|".join(
        (
            r"\{\{([^}]+)\}\}",
            r"\[\[([^\]]+)\]\]",
            r"(\|\||\|)",
            r"([^|\[{&]+|&[^;]+;)",
        )
    )
)
_ENTITIES: dict[str, str] = {"&amp;": "&"}


class TokenKind(str, Enum):
    CHILD = "child"
    RULE = "rule"
    SPLITTER = "splitter"
    TEXT = "text"


class RenderMode(str, Enum):
    NORMAL = "normal"
    RECURSIVE = "recursive"
    TEXT = "text"


MODE_KINDS: dict[RenderMode, frozenset[TokenKind]] = {
    RenderMode.NORMAL: frozenset({TokenKind.CHILD, TokenKind.SPLITTER, TokenKind.TEXT}),
    RenderMode.RECURSIVE: frozenset(
        {TokenKind.CHILD, TokenKind.SPLITTER, TokenKind.TEXT, TokenKind.RULE}
    ),
    RenderMode.TEXT: frozenset({TokenKind.CHILD, TokenKind.TEXT}),
}

# Group order in _TOKEN_RE decides priority when forms overlap.
_GROUP_KINDS: tuple[TokenKind, ...] = (
    TokenKind.CHILD,
    TokenKind.RULE,
    TokenKind.SPLITTER,
    TokenKind.TEXT,
)


@dataclass(frozen=True, slots=True)
class TemplateToken:
    kind: TokenKind
    value: str


class TextSummarizable(Protocol):
    def text(self, is_root: bool = True) -> str: ...


def resolve_text(source: TextSource) -> str:
    """Resolve a literal or zero-argument callable to its current string."""
    if source is None:
        return ""
    if callable(source):
        value = source()
        return "" if value is None else str(value)
    return str(source)


def tokenize(template: str) -> list[TemplateToken]:
    tokens: list[TemplateToken] = []
    for match in _TOKEN_RE.finditer(template or ""):
        for kind, value in zip(_GROUP_KINDS, match.groups()):
            if value:
                tokens.append(TemplateToken(kind=kind, value=value))
                break
    return tokens


def filter_tokens(
    tokens: Iterable[TemplateToken],
    mode: RenderMode | str = RenderMode.NORMAL,
) -> list[TemplateToken]:
    accepted = MODE_KINDS[RenderMode(mode)]
    return [token for token in tokens if token.kind in accepted]


def iter_tokens(template: str, mode: RenderMode | str = RenderMode.NORMAL) -> Iterator[TemplateToken]:
    yield from filter_tokens(tokenize(template), mode)


def decode_text(value: str) -> str:
    if value.startswith("&"):
        return _ENTITIES.get(value, value)
    return value


def is_line_break(token: TemplateToken) -> bool:
    return token.kind is TokenKind.SPLITTER and token.value == "||"


def summarize(
    template: str,
    ref: Mapping[str, TextSummarizable],
    *,
    logger: logging.Logger | None = None,
) -> str:
    """Render ``template`` in text mode: literal text plus child summaries."""
    log = logger or logging.getLogger("ruledeck.render")
    parts: list[str] = []
    for token in iter_tokens(template, RenderMode.TEXT):
        if token.kind is TokenKind.CHILD:
            child: Any = ref.get(token.value)
            if child is None:
                log.warning("Template references unknown child '%s'", token.value)
                continue
            parts.append(child.text(False))
        else:
            parts.append(decode_text(token.value))
    return "".join(parts).strip()
