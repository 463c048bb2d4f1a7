"""Immutable value types produced by the built-in converters.

These types are toolkit-neutral stand-ins for the layout primitives of
a UI toolkit: spacing, corner radii, grid track sizes, font weights,
colors and brushes.
"""

from enum import IntEnum, StrEnum

from pydantic import Field

from dynui.models import SchemaModel


class Thickness(SchemaModel):
    """Four-sided spacing such as a margin, padding or border width."""

    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0

    @classmethod
    def uniform(cls, value: float) -> 'Thickness':
        """Create a thickness with the same value on every side."""
        return cls(left=value, top=value, right=value, bottom=value)


class CornerRadius(SchemaModel):
    """Radii of the four corners of a rectangle."""

    top_left: float = 0.0
    top_right: float = 0.0
    bottom_right: float = 0.0
    bottom_left: float = 0.0

    @classmethod
    def uniform(cls, value: float) -> 'CornerRadius':
        """Create a radius with the same value on every corner."""
        return cls(top_left=value, top_right=value, bottom_right=value, bottom_left=value)


class GridUnitType(StrEnum):
    """Unit of a grid track size."""

    AUTO = 'auto'
    PIXEL = 'pixel'
    STAR = 'star'


class GridLength(SchemaModel):
    """Size of a grid row or column (`Auto`, `120` or `2*`)."""

    value: float = Field(default=1.0, ge=0)
    unit: GridUnitType = GridUnitType.STAR

    @property
    def is_auto(self) -> bool:
        """Whether the track is sized to its content."""
        return self.unit is GridUnitType.AUTO

    @property
    def is_star(self) -> bool:
        """Whether the track takes a share of the remaining space."""
        return self.unit is GridUnitType.STAR

    def __str__(self) -> str:
        if self.is_auto:
            return 'Auto'
        if self.is_star:
            return '*' if self.value == 1 else f'{self.value:g}*'
        return f'{self.value:g}'


class FontWeight(IntEnum):
    """OpenType font weight classes."""

    THIN = 100
    EXTRA_LIGHT = 200
    LIGHT = 300
    SEMI_LIGHT = 350
    NORMAL = 400
    MEDIUM = 500
    SEMI_BOLD = 600
    BOLD = 700
    EXTRA_BOLD = 800
    BLACK = 900
    EXTRA_BLACK = 950


class Color(SchemaModel):
    """32-bit RGBA color."""

    r: int = Field(default=0, ge=0, le=255)
    g: int = Field(default=0, ge=0, le=255)
    b: int = Field(default=0, ge=0, le=255)
    a: int = Field(default=255, ge=0, le=255)

    @property
    def hex(self) -> str:
        """`#RRGGBBAA` notation of the color."""
        return f'#{self.r:02X}{self.g:02X}{self.b:02X}{self.a:02X}'

    def __str__(self) -> str:
        return self.hex


class Point(SchemaModel):
    """Point in relative (0..1) brush coordinates."""

    x: float = 0.0
    y: float = 0.0


class GradientStop(SchemaModel):
    """Color at a relative offset along a gradient."""

    color: Color
    offset: float = Field(ge=0, le=1)


class Brush(SchemaModel):
    """Base class of all brushes."""

    opacity: float = Field(default=1.0, ge=0, le=1)


class SolidColorBrush(Brush):
    """Brush painting a single color."""

    color: Color = Field(default_factory=Color)


class LinearGradientBrush(Brush):
    """Brush painting a gradient along a line."""

    stops: tuple[GradientStop, ...] = ()
    start: Point = Field(default_factory=lambda: Point(x=0.0, y=0.5))
    end: Point = Field(default_factory=lambda: Point(x=1.0, y=0.5))


class RadialGradientBrush(Brush):
    """Brush painting a gradient from the center outwards."""

    stops: tuple[GradientStop, ...] = ()
    center: Point = Field(default_factory=lambda: Point(x=0.5, y=0.5))
    radius: float = Field(default=0.5, gt=0)


#: CSS and toolkit named colors as `(r, g, b)` triples.
NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    'aliceblue': (240, 248, 255),
    'aqua': (0, 255, 255),
    'azure': (240, 255, 255),
    'beige': (245, 245, 220),
    'black': (0, 0, 0),
    'blue': (0, 0, 255),
    'brown': (165, 42, 42),
    'coral': (255, 127, 80),
    'crimson': (220, 20, 60),
    'cyan': (0, 255, 255),
    'darkblue': (0, 0, 139),
    'darkgray': (169, 169, 169),
    'darkgreen': (0, 100, 0),
    'darkred': (139, 0, 0),
    'dimgray': (105, 105, 105),
    'fuchsia': (255, 0, 255),
    'gold': (255, 215, 0),
    'gray': (128, 128, 128),
    'green': (0, 128, 0),
    'grey': (128, 128, 128),
    'indigo': (75, 0, 130),
    'ivory': (255, 255, 240),
    'khaki': (240, 230, 140),
    'lavender': (230, 230, 250),
    'lightblue': (173, 216, 230),
    'lightgray': (211, 211, 211),
    'lightgreen': (144, 238, 144),
    'lime': (0, 255, 0),
    'magenta': (255, 0, 255),
    'maroon': (128, 0, 0),
    'navy': (0, 0, 128),
    'olive': (128, 128, 0),
    'orange': (255, 165, 0),
    'orchid': (218, 112, 214),
    'pink': (255, 192, 203),
    'purple': (128, 0, 128),
    'red': (255, 0, 0),
    'salmon': (250, 128, 114),
    'silver': (192, 192, 192),
    'skyblue': (135, 206, 235),
    'steelblue': (70, 130, 180),
    'tan': (210, 180, 140),
    'teal': (0, 128, 128),
    'tomato': (255, 99, 71),
    'turquoise': (64, 224, 208),
    'violet': (238, 130, 238),
    'white': (255, 255, 255),
    'whitesmoke': (245, 245, 245),
    'yellow': (255, 255, 0),
}

#: Fully transparent color.
TRANSPARENT = 'transparent'
