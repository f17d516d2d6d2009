from __future__ import annotations

from PySide6.QtWidgets import (
    QDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLayout,
    QLineEdit,
    QPushButton,
    QScrollArea,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from ruledeck.core.registry import Registry
from ruledeck.core.tree import NodeType, RuleNode
from ruledeck.ui.render import ConfigRenderer


class RuleSettingsDialog(QDialog):
    """One page per tab, one card per group, every rule rendered live."""

    def __init__(
        self,
        registry: Registry,
        parent: QWidget | None = None,
        *,
        renderer: ConfigRenderer | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setObjectName("RuleSettingsDialog")
        self._registry = registry
        self._renderer = renderer or ConfigRenderer(registry)
        self._refreshing = False
        self._pages: list[QVBoxLayout] = []

        self._search_input = QLineEdit(self)
        self._search_input.setObjectName("RuleSettingsSearch")
        self._search_input.setPlaceholderText("Search settings")
        self._search_input.setClearButtonEnabled(True)

        self._status_label = QLabel("", self)
        self._status_label.setObjectName("RuleSettingsStatus")

        self._tabs = QTabWidget(self)
        self._tabs.setObjectName("RuleSettingsTabs")

        footer = QHBoxLayout()
        footer.setContentsMargins(0, 0, 0, 0)
        footer.setSpacing(8)
        self._close_button = QPushButton("Close", self)
        self._close_button.setObjectName("RuleSettingsButton")
        self._close_button.setProperty("primary", "true")
        footer.addStretch(1)
        footer.addWidget(self._close_button)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)
        layout.addWidget(self._search_input)
        layout.addWidget(self._status_label)
        layout.addWidget(self._tabs, 1)
        layout.addLayout(footer)

        self._close_button.clicked.connect(self.accept)
        self._search_input.textChanged.connect(self._on_search_changed)

        self._build_pages()
        self.resize(640, 560)
        self.rebuild()

    @property
    def renderer(self) -> ConfigRenderer:
        return self._renderer

    @property
    def tab_widget(self) -> QTabWidget:
        return self._tabs

    def search_text(self) -> str:
        return self._search_input.text().strip().lower()

    def set_search_text(self, text: str) -> None:
        self._search_input.setText(text)

    def matching_rules(self, tab: RuleNode | None = None) -> list[RuleNode]:
        needle = self.search_text()
        base = None if tab is None else [tab]
        if not needle:
            return self._registry.query(base)
        return self._registry.query(base, where=lambda rule: _matches(rule, needle))

    def rebuild(self) -> None:
        if self._refreshing:
            return
        self._refreshing = True
        try:
            shown = 0
            for tab, page_layout in zip(self._registry.tabs, self._pages):
                _clear_layout(page_layout)
                matches = set(self.matching_rules(tab))
                shown += len(matches)
                for group in tab.children:
                    if group.node_type is not NodeType.GROUP:
                        continue
                    rules = [child for child in group.children if child in matches]
                    if not rules:
                        continue
                    page_layout.addWidget(self._group_card(group, rules))
                if not matches:
                    empty = QLabel("No settings match your current search.")
                    empty.setObjectName("RuleSettingsEmpty")
                    page_layout.addWidget(empty)
                page_layout.addStretch(1)
            self._set_status(shown, len(self._registry.query()))
        finally:
            self._refreshing = False

    def done(self, result: int) -> None:
        self._renderer.close()
        super().done(result)

    def _build_pages(self) -> None:
        for tab in self._registry.tabs:
            scroll = QScrollArea(self._tabs)
            scroll.setObjectName("RuleSettingsScroll")
            scroll.setWidgetResizable(True)
            scroll.setFrameShape(QFrame.Shape.NoFrame)
            host = QWidget(scroll)
            page_layout = QVBoxLayout(host)
            page_layout.setContentsMargins(4, 4, 4, 4)
            page_layout.setSpacing(10)
            scroll.setWidget(host)
            self._tabs.addTab(scroll, tab.text())
            self._pages.append(page_layout)

    def _group_card(self, group: RuleNode, rules: list[RuleNode]) -> QFrame:
        card = QFrame()
        card.setObjectName("ConfigGroupCard")
        card_layout = QVBoxLayout(card)
        card_layout.setContentsMargins(12, 10, 12, 10)
        card_layout.setSpacing(6)
        card_layout.addWidget(self._renderer.render_result(group))
        for rule in rules:
            card_layout.addWidget(self._renderer.render_result(rule))
        return card

    def _on_search_changed(self, *_unused) -> None:
        self.rebuild()

    def _set_status(self, shown: int, total: int) -> None:
        if shown != total:
            self._status_label.setText(f"Showing {shown} of {total} setting(s).")
        else:
            self._status_label.setText(f"{total} setting(s).")


def _matches(rule: RuleNode, needle: str) -> bool:
    haystack = [rule.id or "", rule.text()]
    return needle in " ".join(part.lower() for part in haystack if part)


def _clear_layout(layout: QLayout) -> None:
    while layout.count():
        item = layout.takeAt(0)
        widget = item.widget()
        child_layout = item.layout()
        if widget is not None:
            widget.setParent(None)
            widget.deleteLater()
        elif child_layout is not None:
            _clear_layout(child_layout)
