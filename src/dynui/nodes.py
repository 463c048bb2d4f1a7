"""Node capability model and property accessor tables.

Toolkit objects are plain Python classes. Their settable properties are
the class-level annotations (including inherited ones); `describe` turns
them into a case-insensitive accessor table once per class. Layout names
are matched ignoring case and underscores, so `FontSize`, `fontsize`
and `font_size` all address the `font_size` attribute.

Three attachment capabilities are recognized by the builder:

- `PanelNode`: ordered list of children;
- `ContentNode`: a single content slot;
- `ItemsNode`: an item collection.
"""

from functools import cache
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, get_origin, get_type_hints

from pydantic import Field

from dynui.conversion import unwrap_optional
from dynui.models import SchemaModel

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dynui.binding import Binding


def property_key(name: str) -> str:
    """Normalize a property or attribute name for lookups."""
    return name.replace('_', '').casefold()


def pascal_name(attribute: str) -> str:
    """Render a snake_case attribute as a PascalCase layout name."""
    return ''.join(part[:1].upper() + part[1:] for part in attribute.split('_'))


class PropertyAccessor(SchemaModel):
    """Typed getter and setter of one node property."""

    name: str = Field(
        title='Name',
        description='Layout-facing property name.',
    )

    attribute: str = Field(
        title='Attribute',
        description='Python attribute backing the property.',
    )

    annotation: Any = Field(
        title='Annotation',
        description='Declared type, possibly Optional.',
    )

    @property
    def target(self) -> Any:  # noqa: ANN401
        """Declared type with `Optional` removed."""
        return unwrap_optional(self.annotation)

    @property
    def accepts_text(self) -> bool:
        """Whether a raw string is a valid value for the property."""
        target = self.target
        if target in {str, object, Any}:
            return True

        return str in getattr(target, '__args__', ())

    def get(self, node: object) -> Any:  # noqa: ANN401
        """Read the current value from a node."""
        return getattr(node, self.attribute, None)

    def set(self, node: object, value: Any) -> None:  # noqa: ANN401
        """Assign a value to a node."""
        setattr(node, self.attribute, value)


@cache
def describe(cls: type) -> 'Mapping[str, PropertyAccessor]':
    """Build the accessor table of a class.

    Args:
        cls: Node class.

    Returns:
        Read-only mapping of normalized property name to accessor.
    """
    try:
        hints = get_type_hints(cls)
    except (NameError, TypeError):
        hints = {
            name: value
            for klass in reversed(cls.__mro__)
            for name, value in getattr(klass, '__annotations__', {}).items()
        }

    table: dict[str, PropertyAccessor] = {}
    for attribute, annotation in hints.items():
        if attribute.startswith('_') or get_origin(annotation) is ClassVar:
            continue
        table[property_key(attribute)] = PropertyAccessor(
            name=pascal_name(attribute),
            attribute=attribute,
            annotation=annotation,
        )

    return MappingProxyType(table)


def find_accessor(node: object, name: str) -> PropertyAccessor | None:
    """Look up the accessor of a property on a node instance."""
    return describe(type(node)).get(property_key(name))


class Node:
    """Base class of toolkit objects built from layouts.

    Non-property state lives in instance attributes so that it never
    appears in the accessor table.
    """

    def __init__(self) -> None:
        """Initialize a detached node."""
        self.parent: Node | None = None
        self.data_context: Any = None
        self.classes: list[str] = []
        self.attached: dict[str, Any] = {}
        self.bindings: dict[str, Binding] = {}

    def __repr__(self) -> str:
        """String represenatation."""
        if name := getattr(self, 'name', None):
            return f'<{type(self).__name__} {name!r}>'

        return f'<{type(self).__name__}>'


class PanelNode(Node):
    """Node holding an ordered list of children."""

    def __init__(self) -> None:
        super().__init__()
        self.children: list[Node] = []

    def add_child(self, child: Node) -> None:
        """Append a child and take ownership of it."""
        child.parent = self
        self.children.append(child)


class ContentNode(Node):
    """Node holding a single content slot.

    The slot is also a regular property, so `Content=Save` stores text.
    """

    content: Any = None

    def set_content(self, child: Any) -> None:  # noqa: ANN401
        """Replace the content and take ownership of a child node."""
        if isinstance(child, Node):
            child.parent = self
        self.content = child


class ItemsNode(Node):
    """Node holding an item collection."""

    def __init__(self) -> None:
        super().__init__()
        self.items: list[Any] = []

    def add_item(self, item: Any) -> None:  # noqa: ANN401
        """Append an item and take ownership of it when it is a node."""
        if isinstance(item, Node):
            item.parent = self
        self.items.append(item)
