from ruledeck.ui.settings.settings_dialog import RuleSettingsDialog

__all__ = ["RuleSettingsDialog"]
