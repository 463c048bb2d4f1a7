"""String to typed value conversion.

`TypeConversionEngine` turns raw property strings into the declared
types of node properties using an ordered chain of `ValueConverter`
strategies, with a Pydantic-based structural fallback.
"""

from .converters import (
    BrushConverter,
    ColorConverter,
    CornerRadiusConverter,
    EnumConverter,
    FontWeightConverter,
    GridLengthConverter,
    PrimitiveConverter,
    ThicknessConverter,
    ValueConverter,
    default_converters,
    parse_color,
)
from .engine import TypeConversionEngine, unwrap_optional, zero_value
from .values import (
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

__all__ = (
    'Brush',
    'BrushConverter',
    'Color',
    'ColorConverter',
    'CornerRadius',
    'CornerRadiusConverter',
    'EnumConverter',
    'FontWeight',
    'FontWeightConverter',
    'GradientStop',
    'GridLength',
    'GridLengthConverter',
    'GridUnitType',
    'LinearGradientBrush',
    'Point',
    'PrimitiveConverter',
    'RadialGradientBrush',
    'SolidColorBrush',
    'Thickness',
    'ThicknessConverter',
    'TypeConversionEngine',
    'ValueConverter',
    'default_converters',
    'parse_color',
    'unwrap_optional',
    'zero_value',
)
