from __future__ import annotations

import logging
import sys
from typing import Sequence

from PySide6.QtWidgets import QApplication

from ruledeck.app.host import ReadyHook, install_rules, schedule_on_event_loop
from ruledeck.app.settings_store import JsonSettingsStore, SettingsStore
from ruledeck.app.styles import StyleInjector
from ruledeck.core.registry import Registry
from ruledeck.ui.settings import RuleSettingsDialog
from ruledeck.ui.theme import install_config_theme


def build_demo_tree(registry: Registry) -> Registry:
    appearance = registry.tab({"id": "appearance", "template": "Appearance"})

    labels = registry.group({"id": "labels", "parent": appearance, "template": "Labels"})
    registry.rule(
        {
            "id": "bold_titles",
            "parent": labels,
            "template": "Bold tab titles",
            "acss": "QLabel#ConfigTabTitle { font-weight: 800; }",
        }
    )
    registry.rule(
        {
            "id": "accent",
            "parent": labels,
            "template": "Accent color {{color}}",
            "ref": {
                "color": {
                    "type": "select",
                    "select": [
                        {"value": "teal", "text": "Teal"},
                        {"value": "amber", "text": "Amber"},
                        {"value": "slate", "text": "Slate"},
                    ],
                },
            },
            "ainit": lambda rule: logging.getLogger("ruledeck.demo").info(
                "Accent color: %s", rule.ref["color"].get_config()
            ),
        }
    )
    registry.text({"parent": labels, "template": "Changes to styles apply on the next start."})

    layout = registry.group({"id": "layout", "parent": appearance, "template": "Layout"})
    registry.rule(
        {
            "id": "spacing",
            "parent": layout,
            "always": True,
            "template": "Card spacing|{{px}}||px between setting cards {{hint}}",
            "ref": {
                "px": {"type": "range", "min": 0, "max": 24, "step": 2},
                "hint": {"type": "bubble", "icon": "info", "template": "Applies to group cards only."},
            },
        }
    )
    registry.rule(
        {
            "id": "font_scale",
            "parent": layout,
            "template": "Scale fonts to {{percent}} &amp; keep icons",
            "ref": {"percent": {"type": "number", "min": 50, "max": 200, "step": 5}},
        }
    )
    registry.rule(
        {
            "id": "compact",
            "parent": layout,
            "template": "Compact mode (same as [[bold_titles]])",
        }
    )
    return registry


def main(argv: Sequence[str] | None = None, *, store: SettingsStore | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = QApplication.instance()
    if app is None:
        app = QApplication(list(argv or sys.argv))
    app.setApplicationName("RuleDeck")

    styles = StyleInjector()
    install_config_theme(styles)
    registry = build_demo_tree(Registry(store or JsonSettingsStore(), styles=styles))

    hook = ReadyHook()
    install_rules(registry, hook)
    schedule_on_event_loop(hook)

    dialog = RuleSettingsDialog(registry)
    dialog.finished.connect(app.quit)
    dialog.show()
    try:
        return app.exec()
    finally:
        registry.teardown()


if __name__ == "__main__":
    raise SystemExit(main())
