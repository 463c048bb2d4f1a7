"""Built-in value converters.

A converter claims target types through `can_convert` and turns a
non-empty raw string into a value of that type. Converters raise
`ValueError` (or `ConversionError`) on malformed input; the engine
reports both as `ConversionError`.
"""

import re
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from enum import Enum
from math import cos, radians, sin
from typing import Any

from .values import (
    NAMED_COLORS,
    TRANSPARENT,
    Brush,
    Color,
    CornerRadius,
    FontWeight,
    GradientStop,
    GridLength,
    GridUnitType,
    LinearGradientBrush,
    Point,
    RadialGradientBrush,
    SolidColorBrush,
    Thickness,
)

SEPARATORS = re.compile(r'[\s,]+')
HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$')

TRUE_WORDS = frozenset({'true', '1', 'yes', 'y', 'si', 'sí', 'on'})
FALSE_WORDS = frozenset({'false', '0', 'no', 'n', 'off'})

LINEAR_GRADIENT_PREFIX = 'lineargradient:'
RADIAL_GRADIENT_PREFIX = 'radialgradient:'

FONT_WEIGHT_ALIASES = {
    'hairline': FontWeight.THIN,
    'ultralight': FontWeight.EXTRA_LIGHT,
    'semilight': FontWeight.SEMI_LIGHT,
    'regular': FontWeight.NORMAL,
    'demibold': FontWeight.SEMI_BOLD,
    'ultrabold': FontWeight.EXTRA_BOLD,
    'heavy': FontWeight.BLACK,
    'ultrablack': FontWeight.EXTRA_BLACK,
}


def _is_subclass(target: Any, base: type) -> bool:  # noqa: ANN401
    """Safe `issubclass` accepting non-class targets."""
    return isinstance(target, type) and issubclass(target, base)


def _compact(value: str) -> str:
    """Fold a symbolic name: case, spaces, dashes and underscores."""
    return re.sub(r'[\s_-]+', '', value).casefold()


def split_numbers(value: str) -> list[float]:
    """Split a comma or space separated list of numbers."""
    return [float(part) for part in SEPARATORS.split(value.strip()) if part]


class ValueConverter(ABC):
    """Conversion strategy for one family of target types."""

    @abstractmethod
    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        """Check whether the converter claims a target type."""

    @abstractmethod
    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        """Convert a non-empty raw string into the target type.

        Raises:
            ValueError: If the value is malformed for the target.
        """

    def __repr__(self) -> str:
        """String represenatation."""
        return f'{type(self).__name__}()'


class PrimitiveConverter(ValueConverter):
    """Converter for `str`, `int`, `float`, `bool`, `Decimal` and `complex`.

    Numbers are parsed independently of the locale; booleans accept
    `true/false`, `1/0`, `yes/no`, `si/sí` and `on/off`.
    """

    TYPES = (str, bool, int, float, Decimal, complex)

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return target in self.TYPES

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        if target is str:
            return value

        text = value.strip()

        if target is bool:
            word = text.casefold()
            if word in TRUE_WORDS:
                return True
            if word in FALSE_WORDS:
                return False
            raise ValueError(f'{value!r} is not a boolean')

        if target is Decimal:
            try:
                return Decimal(text)
            except InvalidOperation as base:
                raise ValueError(f'{value!r} is not a decimal number') from base

        if target is complex:
            return complex(text.replace(' ', ''))

        return target(text)


class EnumConverter(ValueConverter):
    """Converter for enumerations by member name or value.

    Names are matched case-insensitively, ignoring spaces, dashes and
    underscores (`semi-bold`, `SemiBold` and `SEMI_BOLD` are equal).
    """

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return _is_subclass(target, Enum)

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        key = _compact(value)
        for member in target:
            if _compact(member.name) == key:
                return member

        for member in target:
            if isinstance(member.value, str) and _compact(member.value) == key:
                return member

        try:
            return target(int(value.strip()))
        except ValueError:
            pass

        names = ', '.join(member.name for member in target)
        raise ValueError(f'{value!r} is not one of {target.__name__} members: {names}')


class FontWeightConverter(EnumConverter):
    """Converter for font weights by name, alias or OpenType number."""

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return target is FontWeight

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        if alias := FONT_WEIGHT_ALIASES.get(_compact(value)):
            return alias

        return super().convert(value, target)


class ThicknessConverter(ValueConverter):
    """Converter for `uniform`, `horizontal,vertical` or `l,t,r,b` spacing."""

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return target is Thickness

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        match split_numbers(value):
            case [uniform]:
                return Thickness.uniform(uniform)
            case [horizontal, vertical]:
                return Thickness(left=horizontal, top=vertical,
                                 right=horizontal, bottom=vertical)
            case [left, top, right, bottom]:
                return Thickness(left=left, top=top, right=right, bottom=bottom)

        raise ValueError(f'{value!r} must have 1, 2 or 4 components')


class CornerRadiusConverter(ValueConverter):
    """Converter for uniform or per-corner radii."""

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return target is CornerRadius

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        match split_numbers(value):
            case [uniform]:
                return CornerRadius.uniform(uniform)
            case [top_left, top_right, bottom_right, bottom_left]:
                return CornerRadius(top_left=top_left, top_right=top_right,
                                    bottom_right=bottom_right, bottom_left=bottom_left)

        raise ValueError(f'{value!r} must have 1 or 4 components')


class GridLengthConverter(ValueConverter):
    """Converter for `Auto`, `*`, `N*` and pixel grid lengths."""

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return target is GridLength

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        text = value.strip()

        if text.casefold() == 'auto':
            return GridLength(value=1.0, unit=GridUnitType.AUTO)

        if text.endswith('*'):
            weight = text[:-1].strip()
            return GridLength(value=float(weight) if weight else 1.0,
                              unit=GridUnitType.STAR)

        return GridLength(value=float(text), unit=GridUnitType.PIXEL)


def parse_color(value: str) -> Color:
    """Parse `#RGB`, `#RRGGBB`, `#RRGGBBAA` or a named color.

    Raises:
        ValueError: If the value is not a color.
    """
    text = value.strip()

    if HEX_COLOR.match(text):
        digits = text[1:]
        if len(digits) == 3:  # noqa: PLR2004
            digits = ''.join(digit * 2 for digit in digits)
        channels = [int(digits[index:index + 2], 16) for index in range(0, len(digits), 2)]
        return Color(r=channels[0], g=channels[1], b=channels[2],
                     a=channels[3] if len(channels) > 3 else 255)  # noqa: PLR2004

    name = _compact(text)
    if name == TRANSPARENT:
        return Color(a=0)

    if rgb := NAMED_COLORS.get(name):
        red, green, blue = rgb
        return Color(r=red, g=green, b=blue)

    raise ValueError(f'{value!r} is not a color')


def is_color(value: str) -> bool:
    """Check whether a value names or encodes a color."""
    try:
        parse_color(value)
    except ValueError:
        return False

    return True


class ColorConverter(ValueConverter):
    """Converter for hexadecimal and named colors."""

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return target is Color

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        return parse_color(value)


def _gradient_stops(colors: list[str]) -> tuple[GradientStop, ...]:
    """Spread colors evenly from offset 0 to offset 1."""
    if len(colors) < 2:  # noqa: PLR2004
        raise ValueError('A gradient needs at least two colors')

    last = len(colors) - 1
    return tuple(
        GradientStop(color=parse_color(color), offset=index / last)
        for index, color in enumerate(colors)
    )


class BrushConverter(ValueConverter):
    """Converter for solid and gradient brushes.

    Accepted forms:
        - a color (`#FF0000`, `Red`) for a solid brush;
        - `LinearGradient:c1,c2[,...][,angle]` where a numeric last part
          of a list with more than two parts is the angle in degrees;
        - `RadialGradient:c1,c2[,...]`.
    """

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return _is_subclass(target, Brush)

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        text = value.strip()
        lowered = text.casefold()

        if lowered.startswith(LINEAR_GRADIENT_PREFIX):
            brush = self._linear(text[len(LINEAR_GRADIENT_PREFIX):])
        elif lowered.startswith(RADIAL_GRADIENT_PREFIX):
            parts = [part.strip() for part in text[len(RADIAL_GRADIENT_PREFIX):].split(',')]
            brush = RadialGradientBrush(stops=_gradient_stops(parts))
        else:
            brush = SolidColorBrush(color=parse_color(text))

        if not isinstance(brush, target):
            raise ValueError(f'{value!r} describes a {type(brush).__name__}, '
                             f'not a {target.__name__}')

        return brush

    @staticmethod
    def _linear(definition: str) -> LinearGradientBrush:
        """Build a linear gradient from `c1,c2[,...][,angle]`."""
        parts = [part.strip() for part in definition.split(',')]

        angle = 0.0
        if len(parts) > 2:  # noqa: PLR2004
            try:
                angle = float(parts[-1])
            except ValueError:
                pass
            else:
                parts.pop()

        dx = cos(radians(angle)) * 0.5
        dy = sin(radians(angle)) * 0.5

        return LinearGradientBrush(
            stops=_gradient_stops(parts),
            start=Point(x=0.5 - dx, y=0.5 - dy),
            end=Point(x=0.5 + dx, y=0.5 + dy),
        )


def default_converters() -> list[ValueConverter]:
    """Create the built-in converters in priority order."""
    return [
        BrushConverter(),
        ColorConverter(),
        FontWeightConverter(),
        GridLengthConverter(),
        CornerRadiusConverter(),
        ThicknessConverter(),
        EnumConverter(),
        PrimitiveConverter(),
    ]
