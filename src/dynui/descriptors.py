"""Format-agnostic intermediate representation of a layout.

Every parser produces a forest of `NodeDescriptor` objects, the builder
consumes them. Property names are matched case-insensitively everywhere;
the original spelling of the first occurrence is kept for reporting.
"""

from typing import TYPE_CHECKING

from pydantic import Field

from dynui.models import MutableModel, SchemaModel

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class PropertyEntry(SchemaModel):
    """A single `name=value` pair as written in the source.

    A `raw_value` of `None` denotes a bare token (a name without `=`).
    Bare entries are never converted; the builder skips them with a warning.
    """

    name: str = Field(
        title='Name',
        description='Property name as written in the source.',
    )

    raw_value: str | None = Field(
        default=None,
        title='Raw value',
        description='Unconverted textual value, or None for a bare token.',
    )

    @property
    def key(self) -> str:
        """Case-insensitive lookup key."""
        return self.name.casefold()

    @property
    def is_bare(self) -> bool:
        """Whether the entry was written without a value."""
        return self.raw_value is None


class NodeDescriptor(MutableModel):
    """Parsed description of one node and its subtree.

    Property order is significant: setters run in descriptor order and
    a later entry with the same name overrides an earlier one.
    """

    type_name: str = Field(
        title='Type name',
        description='Name resolved through the type registry.',
    )

    properties: list[PropertyEntry] = Field(
        default_factory=list,
        title='Properties',
    )

    group_name: str | None = Field(
        default=None,
        title='Group',
        description='Logical group used to resolve a shared data context.',
    )

    children: list['NodeDescriptor'] = Field(
        default_factory=list,
        title='Children',
    )

    source_file: str | None = Field(
        default=None,
        title='Source file',
    )

    def get(self, name: str) -> str | None:
        """Return the effective raw value of a property.

        Args:
            name: Property name, matched case-insensitively.

        Returns:
            Raw value of the last entry with that name, or `None`.
        """
        key = name.casefold()
        for entry in reversed(self.properties):
            if entry.key == key:
                return entry.raw_value

        return None

    def has(self, name: str) -> bool:
        """Check whether a property with the given name is present."""
        key = name.casefold()
        return any(entry.key == key for entry in self.properties)

    def names(self) -> set[str]:
        """Return the case-folded names of all present properties."""
        return {entry.key for entry in self.properties}

    def set(self, name: str, raw_value: str | None) -> None:
        """Override a property in place or append it.

        The first entry with the same name keeps its position and takes
        the new value; any later duplicates are dropped.

        Args:
            name: Property name, matched case-insensitively.
            raw_value: New raw value.
        """
        key = name.casefold()
        entry = PropertyEntry(name=name, raw_value=raw_value)

        updated: list[PropertyEntry] = []
        replaced = False
        for item in self.properties:
            if item.key != key:
                updated.append(item)
            elif not replaced:
                updated.append(entry)
                replaced = True

        if not replaced:
            updated.append(entry)

        self.properties = updated

    def merge_defaults(self, defaults: 'Iterable[PropertyEntry]') -> None:
        """Prepend defaults whose names are not already present.

        Args:
            defaults: Default entries declared for the node type.
        """
        present = self.names()
        missing = []
        for entry in defaults:
            if entry.key not in present:
                missing.append(entry)
                present.add(entry.key)

        self.properties = [*missing, *self.properties]

    def pop(self, *names: str) -> list[PropertyEntry]:
        """Remove and return all entries matching any of the names.

        Args:
            names: Property names, matched case-insensitively.

        Returns:
            Removed entries in their original order.
        """
        keys = {name.casefold() for name in names}

        removed = [entry for entry in self.properties if entry.key in keys]
        if removed:
            self.properties = [
                entry for entry in self.properties
                if entry.key not in keys
            ]

        return removed

    def stamp_source(self, source_file: str) -> None:
        """Set the source file on this subtree where it is not set yet."""
        for node in self.walk():
            if node.source_file is None:
                node.source_file = source_file

    def walk(self) -> 'Iterator[NodeDescriptor]':
        """Iterate over this node and its descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def count(self) -> int:
        """Return the number of nodes in this subtree."""
        return sum(1 for _ in self.walk())
