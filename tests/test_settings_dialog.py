from __future__ import annotations

from PySide6.QtWidgets import QCheckBox

from ruledeck.app.main import build_demo_tree
from ruledeck.app.settings_store import MemorySettingsStore
from ruledeck.core.registry import Registry
from ruledeck.ui.settings import RuleSettingsDialog


def _tree(registry):
    general = registry.tab({"template": "General"})
    extra = registry.tab({"template": lambda: "Extra"})
    group = registry.group({"parent": general, "template": "Main"})
    alpha = registry.rule({"id": "alpha", "parent": group, "template": "Alpha toggle"})
    beta = registry.rule({"id": "beta", "parent": group, "template": "Beta toggle"})
    other = registry.group({"parent": extra, "template": "More"})
    gamma = registry.rule({"id": "gamma", "parent": other, "template": "Gamma"})
    return alpha, beta, gamma


def test_dialog_builds_one_page_per_tab(qapp, registry):
    _tree(registry)

    dialog = RuleSettingsDialog(registry)

    tabs = dialog.tab_widget
    assert tabs.count() == 2
    assert [tabs.tabText(index) for index in range(2)] == ["General", "Extra"]
    boxes = tabs.widget(0).findChildren(QCheckBox)
    assert len(boxes) == 2
    dialog.done(0)


def test_search_filters_rules_by_text(qapp, registry):
    alpha, beta, gamma = _tree(registry)
    dialog = RuleSettingsDialog(registry)

    dialog.set_search_text("BETA")

    assert dialog.matching_rules() == [beta]
    assert len(dialog.tab_widget.widget(0).findChildren(QCheckBox)) == 1

    dialog.set_search_text("")
    assert dialog.matching_rules() == [alpha, beta, gamma]
    dialog.done(0)


def test_search_matches_rule_ids(qapp, registry):
    _alpha, _beta, gamma = _tree(registry)
    dialog = RuleSettingsDialog(registry)

    dialog.set_search_text("gam")

    assert dialog.matching_rules() == [gamma]
    dialog.done(0)


def test_closing_the_dialog_detaches_the_renderer(qapp, registry):
    alpha, _beta, _gamma = _tree(registry)
    dialog = RuleSettingsDialog(registry)
    box = [
        checkbox
        for checkbox in dialog.tab_widget.widget(0).findChildren(QCheckBox)
        if checkbox.property("configInput") == alpha.render_id
    ][0]

    alpha.set_config(True)
    assert box.isChecked()

    dialog.done(0)
    alpha.set_config(False)
    assert box.isChecked()


def test_demo_tree_builds_and_initializes(qapp):
    registry = build_demo_tree(Registry(MemorySettingsStore()))

    assert [tab.text() for tab in registry.tabs] == ["Appearance"]
    assert registry.get_rule("accent").ref["color"].id == "accent.color"
    assert registry.init_rules() == ()

    dialog = RuleSettingsDialog(registry)
    assert dialog.tab_widget.count() == 1
    dialog.done(0)
    registry.teardown()
