from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from ruledeck.core.errors import InvalidBoundsError, InvalidOptionsError
from ruledeck.core.template import TextSource, resolve_text


_SNAP_EPSILON = 1e-9


class ConfigKind(str, Enum):
    PLAIN = "plain"
    BOOLEAN = "boolean"
    SELECT = "select"
    NUMBER = "number"
    RANGE = "range"
    BUBBLE = "bubble"

    @property
    def persisted(self) -> bool:
        return self is not ConfigKind.BUBBLE

    @property
    def numeric(self) -> bool:
        return self in (ConfigKind.NUMBER, ConfigKind.RANGE)


@dataclass(frozen=True, slots=True)
class SelectOption:
    value: str
    text: TextSource = None

    def label(self) -> str:
        return resolve_text(self.text) or self.value


@dataclass(frozen=True, slots=True)
class NumberBounds:
    minimum: float = 0
    maximum: float = math.inf
    step: float = 1

    @property
    def finite(self) -> bool:
        return all(math.isfinite(value) for value in (self.minimum, self.maximum, self.step))

    @property
    def snaps(self) -> bool:
        return math.isfinite(self.minimum) and math.isfinite(self.step) and self.step > 0

    @property
    def decimals(self) -> int:
        places = [_decimal_places(self.step)]
        if math.isfinite(self.minimum):
            places.append(_decimal_places(self.minimum))
        return max(places)


@dataclass(frozen=True, slots=True)
class VariantSpec:
    """Value rules for one config item: its kind plus kind-specific settings."""

    kind: ConfigKind = ConfigKind.PLAIN
    options: tuple[SelectOption, ...] = ()
    bounds: NumberBounds = field(default_factory=NumberBounds)

    def initial(self) -> Any:
        return _INITIALS[self.kind](self)

    def normalize(self, value: Any) -> Any:
        return _NORMALIZERS[self.kind](self, value)

    def option_values(self) -> tuple[str, ...]:
        return tuple(option.value for option in self.options)


def parse_kind(value: Any) -> ConfigKind:
    if isinstance(value, ConfigKind):
        return value
    text = str(value or "").strip().lower()
    try:
        return ConfigKind(text)
    except ValueError:
        return ConfigKind.PLAIN


def parse_options(raw: Any) -> tuple[SelectOption, ...]:
    if raw is None or isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        raise InvalidOptionsError("Select items require a `select` list of options")
    if not raw:
        raise InvalidOptionsError("Select items require at least one option")
    options: list[SelectOption] = []
    for entry in raw:
        if isinstance(entry, SelectOption):
            option = entry
        elif isinstance(entry, Mapping):
            option = SelectOption(
                value=entry.get("value"),
                text=entry.get("text", entry.get("name")),
            )
        else:
            raise InvalidOptionsError("Select options must be mappings with a `value`")
        if not isinstance(option.value, str):
            raise InvalidOptionsError("Select option values must be strings")
        options.append(option)
    return tuple(options)


def parse_bounds(declaration: Mapping[str, Any]) -> NumberBounds:
    defaults = NumberBounds()
    bounds = NumberBounds(
        minimum=_read_bound(declaration.get("min"), defaults.minimum),
        maximum=_read_bound(declaration.get("max"), defaults.maximum),
        step=_read_bound(declaration.get("step"), defaults.step),
    )
    if bounds.minimum > bounds.maximum:
        raise InvalidBoundsError(
            f"Number items need min <= max, got min={bounds.minimum} max={bounds.maximum}"
        )
    return bounds


def build_variant(kind: ConfigKind, declaration: Mapping[str, Any]) -> VariantSpec:
    if kind is ConfigKind.SELECT:
        return VariantSpec(kind=kind, options=parse_options(declaration.get("select")))
    if kind.numeric:
        return VariantSpec(kind=kind, bounds=parse_bounds(declaration))
    return VariantSpec(kind=kind)


def coerce_number(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            # Integers past the float range still clamp like any large number.
            return sys.float_info.max if value > 0 else -sys.float_info.max
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return None
    return None


def tidy_number(value: float) -> int | float:
    if math.isfinite(value) and float(value).is_integer():
        return int(value)
    return value


def _read_bound(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    try:
        number = float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf
    if math.isnan(number):
        return default
    return value


def _decimal_places(value: float) -> int:
    exponent = Decimal(repr(value)).as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def _plain_initial(spec: VariantSpec) -> Any:
    return None


def _plain_normalize(spec: VariantSpec, value: Any) -> Any:
    return value


def _boolean_initial(spec: VariantSpec) -> bool:
    return False


def _boolean_normalize(spec: VariantSpec, value: Any) -> bool:
    if value is None:
        return spec.initial()
    return bool(value)


def _select_initial(spec: VariantSpec) -> str | None:
    if not spec.options:
        return None
    return spec.options[0].value


def _select_normalize(spec: VariantSpec, value: Any) -> str | None:
    if isinstance(value, str) and value in spec.option_values():
        return value
    return spec.initial()


def _number_initial(spec: VariantSpec) -> int | float:
    bounds = spec.bounds
    if math.isfinite(bounds.minimum):
        return tidy_number(bounds.minimum)
    return tidy_number(min(max(0, bounds.minimum), bounds.maximum))


def _number_normalize(spec: VariantSpec, value: Any) -> int | float:
    number = coerce_number(value)
    if number is None or not math.isfinite(number):
        return spec.initial()
    bounds = spec.bounds
    number = min(max(number, bounds.minimum), bounds.maximum)
    if bounds.snaps:
        steps = math.floor((number - bounds.minimum) / bounds.step + _SNAP_EPSILON)
        number = round(bounds.minimum + steps * bounds.step, bounds.decimals)
        if number > bounds.maximum:
            number = round(number - bounds.step, bounds.decimals)
    return tidy_number(number)


_INITIALS: dict[ConfigKind, Callable[[VariantSpec], Any]] = {
    ConfigKind.PLAIN: _plain_initial,
    ConfigKind.BOOLEAN: _boolean_initial,
    ConfigKind.SELECT: _select_initial,
    ConfigKind.NUMBER: _number_initial,
    ConfigKind.RANGE: _number_initial,
    ConfigKind.BUBBLE: _plain_initial,
}

_NORMALIZERS: dict[ConfigKind, Callable[[VariantSpec, Any], Any]] = {
    ConfigKind.PLAIN: _plain_normalize,
    ConfigKind.BOOLEAN: _boolean_normalize,
    ConfigKind.SELECT: _select_normalize,
    ConfigKind.NUMBER: _number_normalize,
    ConfigKind.RANGE: _number_normalize,
    ConfigKind.BUBBLE: _plain_normalize,
}
