"""Render config items into PySide6 widget trees and keep them in sync.

Every rendered container carries the item's render id in the ``configItem``
property, every input the same id in ``configInput``. When a stored value
changes, the renderer scans the live widgets for that id and rewrites each
instance's display with signals blocked, so syncing never writes back.

Inputs only write on user-only signals (``clicked``, ``activated``,
``actionTriggered``, typing and stepping). Any other change of an input just
schedules a redisplay of the stored value.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import partial
from typing import Any, Callable, Iterator, TypeVar

from PySide6.QtCore import QObject, Qt, QTimer
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from ruledeck.core.items import ConfigItem
from ruledeck.core.kinds import ConfigKind
from ruledeck.core.registry import Registry
from ruledeck.core.template import (
    RenderMode,
    TokenKind,
    decode_text,
    is_line_break,
    iter_tokens,
    resolve_text,
)
from ruledeck.core.tree import NodeType, RuleNode
from ruledeck.ui.widgets.bubble import attach_bubble, bubble_icon
from ruledeck.ui.widgets.config_inputs import (
    ConfigSpinBox,
    slider_fits,
    slider_ticks,
    tick_to_value,
    value_to_tick,
)


CONFIG_ITEM_PROPERTY = "configItem"
CONFIG_INPUT_PROPERTY = "configInput"

_NODE_MARKERS: dict[NodeType, tuple[str, ...]] = {
    NodeType.GROUP: ("configGroup",),
    NodeType.RULE: ("configRule",),
    NodeType.TEXT: ("configRule", "configText"),
}

_W = TypeVar("_W", bound=QWidget)


@contextmanager
def _signals_blocked(widget: QObject) -> Iterator[None]:
    widget.blockSignals(True)
    try:
        yield
    finally:
        widget.blockSignals(False)


def _defer(widget: QObject, callback: Callable[[], Any]) -> None:
    QTimer.singleShot(0, widget, callback)


def _item_frame(item: ConfigItem, marker: str | None = None) -> QFrame:
    frame = QFrame()
    frame.setObjectName("ConfigItem")
    frame.setProperty(CONFIG_ITEM_PROPERTY, item.render_id)
    if marker:
        frame.setProperty(marker, True)
    return frame


def _inputs(container: QWidget, widget_type: type[_W], item: ConfigItem) -> list[_W]:
    return [
        widget
        for widget in container.findChildren(widget_type)
        if widget.property(CONFIG_INPUT_PROPERTY) == item.render_id
    ]


class ConfigRenderer:
    def __init__(self, registry: Registry, *, logger: logging.Logger | None = None) -> None:
        self._registry = registry
        self._logger = logger or logging.getLogger("ruledeck.render")
        self._builders: dict[ConfigKind, Callable[[ConfigItem, bool], QWidget]] = {
            ConfigKind.PLAIN: self._render_plain,
            ConfigKind.BOOLEAN: self._render_boolean,
            ConfigKind.SELECT: self._render_select,
            ConfigKind.NUMBER: self._render_number,
            ConfigKind.RANGE: self._render_range,
            ConfigKind.BUBBLE: self._render_bubble,
        }
        self._value_syncers: dict[ConfigKind, Callable[[ConfigItem, QWidget], None]] = {
            ConfigKind.BOOLEAN: self._sync_boolean,
            ConfigKind.SELECT: self._sync_select,
            ConfigKind.NUMBER: self._sync_number,
            ConfigKind.RANGE: self._sync_number,
        }
        self._remove_sync_hook: Callable[[], None] | None = registry.add_render_sync(self.sync_item)
        self._editing_spin: ConfigSpinBox | None = None

    @property
    def registry(self) -> Registry:
        return self._registry

    def close(self) -> None:
        if self._remove_sync_hook is not None:
            self._remove_sync_hook()
            self._remove_sync_hook = None

    def render(self, item: ConfigItem, is_root: bool = True) -> QWidget:
        if isinstance(item, RuleNode) and item.node_type is NodeType.TAB:
            return self._render_tab(item)
        widget = self._builders[item.kind](item, is_root)
        if isinstance(item, RuleNode):
            for marker in _NODE_MARKERS.get(item.node_type, ()):
                widget.setProperty(marker, True)
        return widget

    def render_result(self, item: ConfigItem, is_root: bool = True) -> QWidget:
        """Render ``item`` and pass the result through its ``after_render`` hook."""
        widget = self.render(item, is_root)
        if callable(item.after_render):
            replaced = item.after_render(widget)
            if replaced is not None:
                widget = replaced
        return widget

    def rendered_instances(self, item: ConfigItem) -> list[QWidget]:
        return [
            widget
            for widget in QApplication.allWidgets()
            if widget.property(CONFIG_ITEM_PROPERTY) == item.render_id
        ]

    def sync_item(self, item: ConfigItem) -> None:
        syncer = self._value_syncers.get(item.kind)
        if syncer is None:
            return
        for container in self.rendered_instances(item):
            syncer(item, container)

    def render_value(self, item: ConfigItem, container: QWidget) -> QWidget:
        syncer = self._value_syncers.get(item.kind)
        if syncer is not None:
            syncer(item, container)
        return container

    def build_template(self, item: ConfigItem, mode: RenderMode) -> tuple[QFrame, QWidget]:
        """Lay out ``item.template`` as rows of labels; return the container and first label."""
        container = _item_frame(item)
        rows = QVBoxLayout(container)
        rows.setContentsMargins(0, 0, 0, 0)
        rows.setSpacing(2)

        row_layouts: list[QHBoxLayout] = []
        row = self._new_row(rows, row_layouts)
        label = self._new_label(container, row)
        first_label = label

        for token in iter_tokens(resolve_text(item.template), mode):
            if token.kind is TokenKind.CHILD:
                child = item.ref.get(token.value)
                if child is None:
                    self._logger.warning("%s references unknown child '%s'", item.describe(), token.value)
                    continue
                label.layout().addWidget(self.render(child, False))
            elif token.kind is TokenKind.RULE:
                rule = self._registry.get_rule(token.value)
                if rule is None:
                    self._logger.warning("%s references unknown rule '%s'", item.describe(), token.value)
                    continue
                label.layout().addWidget(self.render(rule, False))
            elif token.kind is TokenKind.SPLITTER:
                if is_line_break(token):
                    row = self._new_row(rows, row_layouts)
                label = self._new_label(container, row)
            else:
                text = QLabel(decode_text(token.value), label)
                text.setObjectName("ConfigText")
                label.layout().addWidget(text)

        for row_layout in row_layouts:
            row_layout.addStretch(1)
        return container, first_label

    def _new_row(self, rows: QVBoxLayout, row_layouts: list[QHBoxLayout]) -> QHBoxLayout:
        row = QHBoxLayout()
        row.setContentsMargins(0, 0, 0, 0)
        row.setSpacing(8)
        rows.addLayout(row)
        row_layouts.append(row)
        return row

    def _new_label(self, container: QWidget, row: QHBoxLayout) -> QWidget:
        label = QWidget(container)
        label.setObjectName("ConfigLabel")
        layout = QHBoxLayout(label)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)
        row.addWidget(label)
        return label

    def _mode(self, is_root: bool) -> RenderMode:
        return RenderMode.RECURSIVE if is_root else RenderMode.NORMAL

    def _on_user_input(self, item: ConfigItem, container: QWidget, value: Any) -> None:
        item.set_config(value)
        # The store stays silent when the normalized value did not change.
        self.render_value(item, container)

    def _on_number_edited(
        self, item: ConfigItem, container: QWidget, spin: ConfigSpinBox, value: float
    ) -> None:
        self._editing_spin = spin
        try:
            self._on_user_input(item, container, value)
        finally:
            self._editing_spin = None

    def _resync_idle_spin(self, item: ConfigItem, spin: ConfigSpinBox) -> None:
        if not spin.hasFocus():
            self._show_stored_number(item, spin)

    def _render_tab(self, item: RuleNode) -> QWidget:
        title = QLabel(item.text())
        title.setObjectName("ConfigTabTitle")
        title.setProperty(CONFIG_ITEM_PROPERTY, item.render_id)
        return title

    def _render_plain(self, item: ConfigItem, is_root: bool) -> QWidget:
        container, _first_label = self.build_template(item, self._mode(is_root))
        return container

    def _render_boolean(self, item: ConfigItem, is_root: bool) -> QWidget:
        container, first_label = self.build_template(item, self._mode(is_root))
        if item.always:
            return container
        checkbox = QCheckBox(first_label)
        checkbox.setObjectName("ConfigCheckbox")
        checkbox.setProperty(CONFIG_INPUT_PROPERTY, item.render_id)
        checkbox.setChecked(bool(item.get_config()))
        first_label.layout().insertWidget(0, checkbox)

        resync = partial(self.render_value, item, container)
        checkbox.clicked.connect(partial(self._on_user_input, item, container))
        checkbox.toggled.connect(lambda _checked: _defer(checkbox, resync))
        return container

    def _render_select(self, item: ConfigItem, is_root: bool) -> QWidget:
        container = _item_frame(item, "configSelect")
        layout = QHBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)
        combo = QComboBox(container)
        combo.setObjectName("ConfigSelectInput")
        combo.setProperty(CONFIG_INPUT_PROPERTY, item.render_id)
        for option in item.options:
            combo.addItem(option.label(), option.value)
        combo.setCurrentIndex(max(0, combo.findData(item.get_config())))
        layout.addWidget(combo)

        resync = partial(self.render_value, item, container)
        combo.activated.connect(
            lambda index: self._on_user_input(item, container, combo.itemData(index))
        )
        combo.currentIndexChanged.connect(lambda _index: _defer(combo, resync))
        return container

    def _render_number(self, item: ConfigItem, is_root: bool) -> QWidget:
        container = _item_frame(item, "configNumber")
        layout = QHBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)
        spin = ConfigSpinBox(item.variant.bounds, container)
        spin.setProperty(CONFIG_INPUT_PROPERTY, item.render_id)
        spin.setValue(item.get_config())
        layout.addWidget(spin)

        spin.value_edited.connect(partial(self._on_number_edited, item, container, spin))
        spin.focus_left.connect(partial(self._show_stored_number, item, spin))
        spin.valueChanged.connect(
            lambda _value: _defer(spin, partial(self._resync_idle_spin, item, spin))
        )
        return container

    def _render_range(self, item: ConfigItem, is_root: bool) -> QWidget:
        container = self._render_number(item, is_root)
        bounds = item.variant.bounds
        if not slider_fits(bounds):
            return container
        container.setProperty("configRange", True)
        wrap = QFrame(container)
        wrap.setObjectName("ConfigRangeWrap")
        wrap_layout = QHBoxLayout(wrap)
        wrap_layout.setContentsMargins(0, 0, 0, 0)
        slider = QSlider(Qt.Orientation.Horizontal, wrap)
        slider.setObjectName("ConfigRangeInput")
        slider.setProperty(CONFIG_INPUT_PROPERTY, item.render_id)
        ticks = slider_ticks(bounds)
        slider.setRange(0, ticks)
        slider.setSingleStep(1)
        slider.setPageStep(max(1, ticks // 10))
        slider.setValue(value_to_tick(bounds, item.get_config()))
        wrap_layout.addWidget(slider)
        container.layout().addWidget(wrap)

        resync = partial(self.render_value, item, container)
        slider.actionTriggered.connect(
            lambda _action: self._on_user_input(
                item, container, tick_to_value(bounds, slider.sliderPosition())
            )
        )
        slider.valueChanged.connect(lambda _value: _defer(slider, resync))
        return container

    def _render_bubble(self, item: ConfigItem, is_root: bool) -> QWidget:
        content, _first_label = self.build_template(item, self._mode(is_root))
        container = _item_frame(item, "configBubble")
        layout = QHBoxLayout(container)
        layout.setContentsMargins(2, 0, 2, 0)
        icon = bubble_icon(item.icon, container)
        layout.addWidget(icon)
        attach_bubble(content, icon)
        return container

    def _sync_boolean(self, item: ConfigItem, container: QWidget) -> None:
        checkboxes = _inputs(container, QCheckBox, item)
        if not checkboxes:
            return
        value = bool(item.get_config())
        for checkbox in checkboxes:
            if checkbox.isChecked() != value:
                with _signals_blocked(checkbox):
                    checkbox.setChecked(value)

    def _sync_select(self, item: ConfigItem, container: QWidget) -> None:
        combos = _inputs(container, QComboBox, item)
        if not combos:
            return
        value = item.get_config()
        for combo in combos:
            index = combo.findData(value)
            if index >= 0 and combo.currentIndex() != index:
                with _signals_blocked(combo):
                    combo.setCurrentIndex(index)

    def _sync_number(self, item: ConfigItem, container: QWidget) -> None:
        spins = _inputs(container, ConfigSpinBox, item)
        sliders = _inputs(container, QSlider, item)
        if not spins and not sliders:
            return
        value = item.get_config()
        for spin in spins:
            # The box the user is typing into catches up on focus loss.
            if spin is not self._editing_spin:
                self._show_stored_number(item, spin, value)
        bounds = item.variant.bounds
        for slider in sliders:
            tick = value_to_tick(bounds, value)
            if slider.value() != tick:
                with _signals_blocked(slider):
                    slider.setValue(tick)

    def _show_stored_number(self, item: ConfigItem, spin: ConfigSpinBox, value: Any = None) -> None:
        if value is None:
            value = item.get_config()
        # Always rewrite so half-typed text is replaced by the stored value.
        with _signals_blocked(spin):
            spin.setValue(value)
