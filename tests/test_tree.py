from __future__ import annotations

import pytest

from ruledeck.app.settings_store import MemorySettingsStore
from ruledeck.core.errors import StructuralError
from ruledeck.core.registry import Registry
from ruledeck.core.tree import NodeType


def test_group_requires_a_tab_parent(registry):
    tab = registry.tab({"template": "Tab"})
    group = registry.group({"parent": tab})

    with pytest.raises(StructuralError):
        registry.group({"parent": group})
    with pytest.raises(StructuralError):
        registry.group({})
    with pytest.raises(TypeError):
        registry.group({"parent": "tab"})

    assert tab.children == [group]


def test_rule_requires_a_group_parent(registry):
    tab = registry.tab({})

    with pytest.raises(StructuralError):
        registry.rule({"id": "r", "parent": tab})
    with pytest.raises(StructuralError):
        registry.text({"parent": tab})

    assert tab.children == []
    assert registry.get_rule("r") is None
    assert registry.query() == []


def test_tabs_take_no_parent(registry):
    tab = registry.tab({})

    with pytest.raises(StructuralError):
        registry.tab({"parent": tab})

    assert registry.tabs == (tab,)


def test_parents_must_share_the_registry(registry):
    other = Registry(MemorySettingsStore())
    foreign_tab = other.tab({})

    with pytest.raises(StructuralError):
        registry.group({"parent": foreign_tab})


def test_duplicate_rule_ids_are_rejected(registry):
    group = registry.group({"parent": registry.tab({})})
    first = registry.rule({"id": "dup", "parent": group})

    with pytest.raises(StructuralError):
        registry.rule({"id": "dup", "parent": group})

    assert group.children == [first]
    assert registry.get_rule("dup") is first


def test_containers_and_text_are_always_enabled(registry):
    tab = registry.tab({"always": False})
    group = registry.group({"parent": tab})
    text = registry.text({"parent": group, "template": "Note"})
    rule = registry.rule({"id": "r", "parent": group})

    assert tab.always and group.always and text.always
    assert rule.always is False
    assert text.node_type is NodeType.TEXT
    assert text.is_enabled()


def _two_tabs(registry):
    tab_a = registry.tab({"template": "A"})
    tab_b = registry.tab({"template": "B"})
    g1 = registry.group({"parent": tab_a})
    g2 = registry.group({"parent": tab_a})
    g3 = registry.group({"parent": tab_b})
    r1 = registry.rule({"id": "r1", "parent": g1})
    r2 = registry.text({"parent": g1})
    r3 = registry.rule({"id": "r3", "parent": g2})
    r4 = registry.rule({"id": "r4", "parent": g3})
    return tab_a, tab_b, g1, [r1, r2, r3, r4]


def test_query_walks_depth_first_in_declaration_order(registry):
    tab_a, tab_b, _g1, rules = _two_tabs(registry)

    assert registry.query() == rules
    assert registry.query([tab_b, tab_a]) == [rules[3], rules[0], rules[1], rules[2]]


def test_query_reports_each_rule_once(registry):
    tab_a, _tab_b, g1, rules = _two_tabs(registry)

    assert registry.query([tab_a, g1, tab_a]) == rules[:3]
    assert registry.query([rules[1], tab_a]) == [rules[1], rules[0], rules[2]]


def test_query_filter(registry):
    _two_tabs(registry)

    found = registry.query(where=lambda rule: rule.node_type is NodeType.RULE)

    assert [rule.id for rule in found] == ["r1", "r3", "r4"]


def test_enabled_rule_applies_both_style_blocks(registry, store, styles):
    tab = registry.tab({"template": "T"})
    group = registry.group({"parent": tab, "template": "G"})
    rule = registry.rule(
        {
            "id": "r",
            "parent": group,
            "css": ".x{color:red}",
            "acss": ".x{display:none}",
        }
    )

    assert rule.is_enabled() == rule.get_config()
    assert rule.is_enabled() is False

    rule.set_config(True)
    assert rule.is_enabled() is True

    registry.init_rules()
    sheet = styles.handles[0].text
    assert ".x{color:red}" in sheet
    assert ".x{display:none}" in sheet
    assert store.get("r") is True


def test_teardown_clears_the_tree(registry, store):
    group = registry.group({"parent": registry.tab({})})
    rule = registry.rule({"id": "r", "parent": group})
    rule.get_config()

    registry.teardown()

    assert registry.tabs == ()
    assert registry.get_rule("r") is None
    assert store.listener_count() == 0
