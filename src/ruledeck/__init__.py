"""Declarative settings trees with persisted, self-syncing Qt widgets."""

__version__ = "0.1.0"
