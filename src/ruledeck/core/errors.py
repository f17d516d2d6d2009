from __future__ import annotations


class RuleDeckError(Exception):
    """Base class for rule tree and config item errors."""


class StructuralError(RuleDeckError, TypeError):
    """Raised when a node is declared under an illegal parent."""


class InvalidOptionsError(RuleDeckError, TypeError):
    """Raised when a select item is declared without usable options."""


class InvalidBoundsError(RuleDeckError, ValueError):
    """Raised when a number item is declared with a minimum above its maximum."""


class MissingIdError(RuleDeckError, LookupError):
    """Raised when an item without an id touches its persisted value."""


class RuleExecutionError(RuleDeckError):
    """Wraps a failure raised by a rule's css, acss, init or ainit step."""

    def __init__(self, rule_id: str, step: str, cause: BaseException) -> None:
        super().__init__(f"Rule '{rule_id}' failed during {step}: {cause}")
        self.rule_id = rule_id
        self.step = step
        self.__cause__ = cause
