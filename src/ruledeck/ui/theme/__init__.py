from ruledeck.ui.theme.loader import install_config_theme, load_stylesheet

__all__ = ["install_config_theme", "load_stylesheet"]
