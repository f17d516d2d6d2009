from __future__ import annotations

from PySide6.QtCore import QEvent, QObject, QPoint, Qt
from PySide6.QtWidgets import QFrame, QStyle, QToolButton, QVBoxLayout, QWidget


_ICON_PIXMAPS: dict[str, QStyle.StandardPixmap] = {
    "ask": QStyle.StandardPixmap.SP_MessageBoxQuestion,
    "warn": QStyle.StandardPixmap.SP_MessageBoxWarning,
    "info": QStyle.StandardPixmap.SP_MessageBoxInformation,
}
_SHOW_EVENTS = (QEvent.Type.Enter, QEvent.Type.HoverEnter, QEvent.Type.FocusIn)
_HIDE_EVENTS = (QEvent.Type.Leave, QEvent.Type.HoverLeave, QEvent.Type.FocusOut)


class BubblePopup(QFrame):
    def __init__(self, content: QWidget, parent: QWidget | None = None) -> None:
        super().__init__(parent, Qt.WindowType.ToolTip)
        self.setObjectName("ConfigBubble")
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(0)
        content.setParent(self)
        layout.addWidget(content)
        self._content = content

    @property
    def content(self) -> QWidget:
        return self._content


class _BubbleController(QObject):
    def __init__(self, popup: BubblePopup, anchor: QWidget) -> None:
        super().__init__(anchor)
        self._popup = popup
        self._anchor = anchor
        anchor.installEventFilter(self)

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        if watched is self._anchor:
            if event.type() in _SHOW_EVENTS:
                self.show_popup()
            elif event.type() in _HIDE_EVENTS:
                self._popup.hide()
        return super().eventFilter(watched, event)

    def show_popup(self) -> None:
        self._popup.adjustSize()
        self._popup.move(self._anchor.mapToGlobal(QPoint(0, self._anchor.height() + 2)))
        self._popup.show()


def bubble_icon(icon: str, parent: QWidget | None = None) -> QToolButton:
    button = QToolButton(parent)
    button.setObjectName("ConfigBubbleIcon")
    button.setProperty("bubbleIcon", icon)
    button.setAutoRaise(True)
    button.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
    pixmap = _ICON_PIXMAPS.get(icon, _ICON_PIXMAPS["ask"])
    button.setIcon(button.style().standardIcon(pixmap))
    return button


def attach_bubble(content: QWidget, anchor: QWidget) -> BubblePopup:
    """Show ``content`` in a popup while ``anchor`` is hovered or focused."""
    popup = BubblePopup(content, anchor)
    _BubbleController(popup, anchor)
    return popup
