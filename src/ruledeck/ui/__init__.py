from ruledeck.ui.render import ConfigRenderer

__all__ = ["ConfigRenderer"]
