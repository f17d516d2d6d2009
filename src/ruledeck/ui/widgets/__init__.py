from ruledeck.ui.widgets.bubble import BubblePopup, attach_bubble, bubble_icon
from ruledeck.ui.widgets.config_inputs import ConfigSpinBox

__all__ = [
    "BubblePopup",
    "ConfigSpinBox",
    "attach_bubble",
    "bubble_icon",
]
