from __future__ import annotations

import math

from PySide6.QtCore import QLocale, Signal
from PySide6.QtGui import QFocusEvent
from PySide6.QtWidgets import QDoubleSpinBox, QWidget

from ruledeck.core.kinds import NumberBounds

# QDoubleSpinBox needs finite limits; unbounded settings use these instead.
SPIN_LIMIT = 1e12
# QSlider positions are C ints.
SLIDER_TICK_LIMIT = 2**31 - 1


class ConfigSpinBox(QDoubleSpinBox):
    """Number input that reports user edits separately from value changes.

    ``value_edited`` fires only for typing and stepping, never for
    ``setValue``; ``focus_left`` fires when the box loses focus.
    """

    value_edited = Signal(float)
    focus_left = Signal()

    def __init__(self, bounds: NumberBounds, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("ConfigNumberInput")
        self.setLocale(QLocale.c())
        self.setKeyboardTracking(True)
        self.setDecimals(bounds.decimals)
        self.setMinimum(bounds.minimum if math.isfinite(bounds.minimum) else -SPIN_LIMIT)
        self.setMaximum(bounds.maximum if math.isfinite(bounds.maximum) else SPIN_LIMIT)
        if math.isfinite(bounds.step) and bounds.step > 0:
            self.setSingleStep(bounds.step)
        self.lineEdit().textEdited.connect(self._on_text_edited)

    def stepBy(self, steps: int) -> None:
        super().stepBy(steps)
        self.value_edited.emit(self.value())

    def focusOutEvent(self, event: QFocusEvent) -> None:
        super().focusOutEvent(event)
        self.focus_left.emit()

    def _on_text_edited(self, text: str) -> None:
        try:
            number = float(text.strip())
        except ValueError:
            return
        if not math.isfinite(number):
            return
        if number < self.minimum() or number > self.maximum():
            return
        self.value_edited.emit(number)


def slider_fits(bounds: NumberBounds) -> bool:
    """Whether a slider can cover ``bounds`` one step per tick."""
    if not bounds.finite or bounds.step <= 0:
        return False
    return 0 <= (bounds.maximum - bounds.minimum) / bounds.step <= SLIDER_TICK_LIMIT


def slider_ticks(bounds: NumberBounds) -> int:
    return int(round((bounds.maximum - bounds.minimum) / bounds.step))


def value_to_tick(bounds: NumberBounds, value: float) -> int:
    return int(round((value - bounds.minimum) / bounds.step))


def tick_to_value(bounds: NumberBounds, tick: int) -> float:
    return bounds.minimum + tick * bounds.step
