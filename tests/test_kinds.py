from __future__ import annotations

import math

import pytest

from ruledeck.core.errors import InvalidBoundsError, InvalidOptionsError
from ruledeck.core.kinds import (
    ConfigKind,
    NumberBounds,
    SelectOption,
    build_variant,
    parse_kind,
)


SAMPLE_VALUES = [
    None,
    True,
    False,
    0,
    -3,
    2.5,
    7,
    11,
    1e9,
    math.inf,
    -math.inf,
    math.nan,
    "",
    "4",
    "abc",
    "b",
    [1],
    {"a": 1},
]


def _variants():
    return [
        build_variant(ConfigKind.BOOLEAN, {}),
        build_variant(ConfigKind.SELECT, {"select": [{"value": "a"}, {"value": "b"}]}),
        build_variant(ConfigKind.NUMBER, {}),
        build_variant(ConfigKind.NUMBER, {"min": 0, "max": 10, "step": 3}),
        build_variant(ConfigKind.RANGE, {"min": -1, "max": 1, "step": 0.1}),
        build_variant(ConfigKind.RANGE, {"min": 5, "max": 50, "step": 5}),
    ]


def test_normalization_is_idempotent():
    for variant in _variants():
        for value in SAMPLE_VALUES:
            once = variant.normalize(value)
            assert variant.normalize(once) == once, (variant, value)


def test_numbers_stay_in_bounds_on_a_step():
    for variant in _variants():
        if not variant.kind.numeric:
            continue
        bounds = variant.bounds
        for value in SAMPLE_VALUES:
            result = variant.normalize(value)
            assert bounds.minimum <= result <= bounds.maximum
            steps = (result - bounds.minimum) / bounds.step
            assert math.isclose(steps, round(steps), abs_tol=1e-6)


def test_number_clamps_and_snaps_down():
    variant = build_variant(ConfigKind.NUMBER, {"min": 0, "max": 10, "step": 3})

    assert variant.normalize(10) == 9
    assert variant.normalize(-5) == 0
    assert variant.normalize("4") == 3
    assert variant.normalize(5.9) == 3


def test_non_finite_numbers_reset_to_initial():
    variant = build_variant(ConfigKind.NUMBER, {"min": 2, "max": 8})

    assert variant.initial() == 2
    assert variant.normalize(math.nan) == 2
    assert variant.normalize(math.inf) == 2
    assert variant.normalize("abc") == 2
    assert variant.normalize(None) == 2


def test_fractional_steps_round_to_the_step_precision():
    variant = build_variant(ConfigKind.RANGE, {"min": 0, "max": 1, "step": 0.1})

    assert variant.normalize(0.35) == 0.3
    assert variant.normalize(0.3) == 0.3
    assert variant.bounds.decimals == 1


def test_integral_numbers_come_back_as_int():
    variant = build_variant(ConfigKind.NUMBER, {})

    result = variant.normalize(4.0)

    assert result == 4
    assert isinstance(result, int)


def test_number_initial_without_finite_minimum():
    variant = build_variant(ConfigKind.NUMBER, {"min": -math.inf, "max": -3})

    assert variant.initial() == -3
    assert NumberBounds(minimum=-math.inf).snaps is False


def test_boolean_normalization():
    variant = build_variant(ConfigKind.BOOLEAN, {})

    assert variant.initial() is False
    assert variant.normalize(None) is False
    assert variant.normalize(1) is True
    assert variant.normalize("") is False


def test_select_falls_back_to_first_option():
    variant = build_variant(
        ConfigKind.SELECT,
        {"select": [{"value": "a", "text": "Alpha"}, {"value": "b", "name": "Beta"}]},
    )

    assert variant.initial() == "a"
    assert variant.normalize("b") == "b"
    assert variant.normalize("z") == "a"
    assert variant.normalize(1) == "a"
    assert [option.label() for option in variant.options] == ["Alpha", "Beta"]


def test_select_option_labels_resolve_lazily():
    option = SelectOption(value="x", text=lambda: "Translated")

    assert option.label() == "Translated"
    assert SelectOption(value="y").label() == "y"


@pytest.mark.parametrize(
    "options",
    [None, [], "ab", [{"value": 3}], ["a"], {"value": "a"}],
)
def test_select_rejects_bad_options(options):
    with pytest.raises(InvalidOptionsError):
        build_variant(ConfigKind.SELECT, {"select": options})


def test_unknown_kinds_are_plain():
    assert parse_kind("slider") is ConfigKind.PLAIN
    assert parse_kind(None) is ConfigKind.PLAIN
    assert parse_kind(" Range ") is ConfigKind.RANGE
    assert ConfigKind.BUBBLE.persisted is False


def test_huge_integers_clamp_instead_of_overflowing():
    variant = build_variant(ConfigKind.NUMBER, {"min": 0, "max": 10, "step": 1})

    assert variant.normalize(10**400) == 10
    assert variant.normalize(-(10**400)) == 0
    assert variant.normalize(variant.normalize(10**400)) == 10


def test_snapping_never_passes_the_maximum():
    variant = build_variant(ConfigKind.NUMBER, {"min": 0, "max": 2.9999999995, "step": 1})

    result = variant.normalize(100)

    assert result == 2
    assert result <= variant.bounds.maximum
    assert variant.normalize(result) == result


def test_inverted_bounds_are_rejected():
    with pytest.raises(InvalidBoundsError):
        build_variant(ConfigKind.RANGE, {"min": 10, "max": 5})
    with pytest.raises(ValueError):
        build_variant(ConfigKind.NUMBER, {"min": 1, "max": 0})


def test_huge_integer_bounds_count_as_unbounded():
    variant = build_variant(ConfigKind.NUMBER, {"max": 10**400})

    assert variant.bounds.maximum == math.inf
    assert variant.normalize(5) == 5
