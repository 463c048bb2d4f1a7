"""Property setters and the setter chain.

A setter claims `(node, property)` pairs through `can_handle` and
assigns a raw value in `apply`, raising on failure. The chain asks
setters in order and the first claimant wins; the accessor-table setter
is the last, catch-all member of the built-in chain.
"""

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import TYPE_CHECKING, Any

from dynui.conversion import GridLength
from dynui.errors import ConversionError
from dynui.nodes import find_accessor, property_key
from dynui.widgets import Dock

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dynui.conversion import TypeConversionEngine

logger = logging.getLogger(__name__)

CLASSES_NAMES = frozenset({'classes', 'class'})

#: Normalized layout name to attached property name and value type.
ATTACHED_PROPERTIES: dict[str, tuple[str, type]] = {
    'x': ('Canvas.Left', float),
    'y': ('Canvas.Top', float),
    'canvas.left': ('Canvas.Left', float),
    'canvas.top': ('Canvas.Top', float),
    'canvas.right': ('Canvas.Right', float),
    'canvas.bottom': ('Canvas.Bottom', float),
    'zindex': ('ZIndex', int),
    'row': ('Grid.Row', int),
    'column': ('Grid.Column', int),
    'rowspan': ('Grid.RowSpan', int),
    'columnspan': ('Grid.ColumnSpan', int),
    'grid.row': ('Grid.Row', int),
    'grid.column': ('Grid.Column', int),
    'grid.rowspan': ('Grid.RowSpan', int),
    'grid.columnspan': ('Grid.ColumnSpan', int),
    'dock': ('DockPanel.Dock', Dock),
    'dockpanel.dock': ('DockPanel.Dock', Dock),
}

GRID_DEFINITIONS = {
    'columndefinitions': 'column_definitions',
    'rowdefinitions': 'row_definitions',
}

TOOLTIP_NAME = 'tooltip'
TOOLTIP_PROPERTY = 'ToolTip.Tip'

IMAGE_SOURCE_NAMES = frozenset({'source', 'image', 'imagen'})


class PropertySetter(ABC):
    """Assignment strategy for a family of properties."""

    @abstractmethod
    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        """Check whether the setter claims a property of a node."""

    @abstractmethod
    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        """Assign a raw value.

        Args:
            node: Node being built.
            name: Property name as written in the source.
            value: Raw value.
            conversion: Conversion engine of the owning registry.

        Raises:
            Exception: Any failure; the builder reports it for the property.
        """

    def __repr__(self) -> str:
        """String represenatation."""
        return f'{type(self).__name__}()'


class AsyncPropertySetter(PropertySetter):
    """Setter with an awaitable assignment used by asynchronous builds.

    Synchronous builds call `apply`; asynchronous builds await
    `apply_async` instead.
    """

    @abstractmethod
    async def apply_async(self, node: Any, name: str, value: str, *,  # noqa: ANN401
                          conversion: 'TypeConversionEngine') -> None:
        """Assign a raw value asynchronously."""


def _attached(node: Any) -> dict[str, Any] | None:  # noqa: ANN401
    """Return the attached property bag of a node, if it has one."""
    attached = getattr(node, 'attached', None)
    return attached if isinstance(attached, dict) else None


class ClassesSetter(PropertySetter):
    """Appends comma separated style classes to `node.classes`."""

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        return (
            property_key(name) in CLASSES_NAMES
            and isinstance(getattr(node, 'classes', None), list)
        )

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        for item in value.split(','):
            if (item := item.strip()) and item not in node.classes:
                node.classes.append(item)


class AttachedPropertySetter(PropertySetter):
    """Stores layout properties owned by the parent container.

    Short names (`Row`, `X`, `Dock`) and qualified names (`Grid.Row`,
    `Canvas.Left`, `DockPanel.Dock`) land in `node.attached` under their
    qualified name.
    """

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        return property_key(name) in ATTACHED_PROPERTIES and _attached(node) is not None

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        qualified, target = ATTACHED_PROPERTIES[property_key(name)]
        _attached(node)[qualified] = conversion.convert(value, target)


class GridDefinitionSetter(PropertySetter):
    """Parses `ColumnDefinitions` / `RowDefinitions` track lists."""

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        attribute = GRID_DEFINITIONS.get(property_key(name))
        return attribute is not None and isinstance(getattr(node, attribute, None), list)

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        tracks = [
            conversion.convert(item.strip(), GridLength)
            for item in value.split(',')
            if item.strip()
        ]
        setattr(node, GRID_DEFINITIONS[property_key(name)], tracks)


class ToolTipSetter(PropertySetter):
    """Stores tooltips as the `ToolTip.Tip` attached property."""

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        return property_key(name) == TOOLTIP_NAME and _attached(node) is not None

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        _attached(node)[TOOLTIP_PROPERTY] = value


class ImageSourceSetter(PropertySetter):
    """Accepts `Source`, `Image` and `Imagen` for the image source."""

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        return (
            property_key(name) in IMAGE_SOURCE_NAMES
            and find_accessor(node, 'source') is not None
            and 'image' in type(node).__name__.casefold()
        )

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        find_accessor(node, 'source').set(node, value.strip())


class AccessorPropertySetter(PropertySetter):
    """Catch-all setter driven by the node accessor table.

    Values are converted to the declared type; when conversion fails and
    the property also accepts text, the raw string is assigned instead.
    """

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        return find_accessor(node, name) is not None

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        accessor = find_accessor(node, name)

        if accessor.target in {str, object, Any}:
            accessor.set(node, value)
            return

        try:
            converted = conversion.convert(value, accessor.annotation)

        except ConversionError:
            if not accessor.accepts_text:
                raise
            logger.debug('Assigning raw text to %s.%s', type(node).__name__, accessor.name)
            converted = value

        accessor.set(node, converted)


def default_setters() -> list[PropertySetter]:
    """Create the built-in setters in priority order."""
    return [
        ClassesSetter(),
        AttachedPropertySetter(),
        GridDefinitionSetter(),
        ToolTipSetter(),
        ImageSourceSetter(),
        AccessorPropertySetter(),
    ]


class SetterChain:
    """Ordered list of property setters; the first claimant wins."""

    def __init__(self, setters: 'Iterable[PropertySetter] | None' = None) -> None:
        """Initialize a chain.

        Args:
            setters: Initial setters; the built-in set when omitted.
        """
        self._lock = RLock()
        self._setters = list(default_setters() if setters is None else setters)

    @property
    def setters(self) -> tuple[PropertySetter, ...]:
        """Registered setters in priority order."""
        with self._lock:
            return tuple(self._setters)

    def register(self, setter: PropertySetter) -> None:
        """Register a setter ahead of all existing ones."""
        with self._lock:
            self._setters.insert(0, setter)

    def remove(self, setter: PropertySetter) -> bool:
        """Remove a setter.

        Returns:
            True if the setter was registered.
        """
        with self._lock:
            if setter not in self._setters:
                return False
            self._setters.remove(setter)
            return True

    def find(self, node: Any, name: str) -> PropertySetter | None:  # noqa: ANN401
        """Return the first setter claiming a property of a node."""
        for setter in self.setters:
            if setter.can_handle(node, name):
                return setter

        return None
