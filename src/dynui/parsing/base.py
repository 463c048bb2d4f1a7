"""Parser contract and helpers shared by all layout formats."""

from abc import ABC, abstractmethod
from json import dumps
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from dynui.descriptors import NodeDescriptor, PropertyEntry
from dynui.errors import ErrorContext, FormatError

if TYPE_CHECKING:
    from os import PathLike

type PathLikeStr = str | PathLike[str]


class FormatParser(ABC):
    """Grammar parser turning one source file into node descriptors.

    Subclasses declare the file extensions they claim and implement
    `parse`. Whole-source problems raise `FormatError`; problems with
    a single line or element are logged and that item is skipped.
    """

    #: Short human-readable format name.
    name: ClassVar[str] = 'abstract'

    #: Lower-case file extensions, including the leading dot.
    extensions: ClassVar[tuple[str, ...]] = ()

    def can_parse(self, path: PathLikeStr) -> bool:
        """Check whether this parser claims the given path."""
        return Path(path).suffix.lower() in self.extensions

    @abstractmethod
    def parse(self, path: PathLikeStr) -> list[NodeDescriptor]:
        """Parse a source file into a forest of root descriptors.

        Args:
            path: Path to the source file.

        Returns:
            Root descriptors in document order.

        Raises:
            FormatError: If the source cannot be read or is malformed.
        """

    def __repr__(self) -> str:
        """String represenatation."""
        return f'{type(self).__name__}({', '.join(self.extensions)})'


class DefaultsTable:
    """Per-type default properties declared by a source.

    Type names and property names are case-insensitive; a later default
    for the same property replaces the earlier one.
    """

    def __init__(self) -> None:
        """Initialize an empty table."""
        self._types: dict[str, dict[str, PropertyEntry]] = {}

    def __contains__(self, type_name: str) -> bool:
        return type_name.casefold() in self._types

    def declare(self, type_name: str) -> None:
        """Open a (possibly empty) defaults block for a type."""
        self._types.setdefault(type_name.casefold(), {})

    def add(self, type_name: str, name: str, raw_value: str | None) -> None:
        """Declare a default property value for a type."""
        entry = PropertyEntry(name=name, raw_value=raw_value)
        self._types.setdefault(type_name.casefold(), {})[entry.key] = entry

    def entries(self, type_name: str) -> list[PropertyEntry]:
        """Return default entries of a type in declaration order."""
        return list(self._types.get(type_name.casefold(), {}).values())

    def seed(self, type_name: str, *,
             group_name: str | None = None) -> NodeDescriptor:
        """Create a descriptor pre-populated with the type defaults.

        Specific properties are then applied with `NodeDescriptor.set`,
        which overrides a default in place.
        """
        return NodeDescriptor(
            type_name=type_name,
            properties=self.entries(type_name),
            group_name=group_name,
        )

    def apply(self, descriptor: NodeDescriptor) -> None:
        """Prepend defaults missing from an already built descriptor."""
        descriptor.merge_defaults(self.entries(descriptor.type_name))


def read_source(path: PathLikeStr) -> str:
    """Read a UTF-8 source file.

    Args:
        path: Path to the source file.

    Returns:
        File contents with a leading byte order mark removed.

    Raises:
        FormatError: If the file is missing or cannot be decoded.
    """
    source = Path(path)
    context = ErrorContext(filename=str(source))

    try:
        text = source.read_text(encoding='utf-8')

    except FileNotFoundError as base:
        raise FormatError('Source file not found', context=context) from base

    except UnicodeDecodeError as base:
        raise FormatError('Source file is not valid UTF-8', context=context) from base

    except OSError as base:
        raise FormatError(f'Cannot read source file: {base.strerror}', context=context) from base

    return text.removeprefix('\ufeff')


def render_scalar(value: object) -> str | None:
    """Render a decoded document value as a raw property string.

    Strings are kept verbatim and `None` becomes a bare entry; any other
    value is rendered as compact JSON text (`true`, `2.5`, `[1, 2]`).
    """
    if value is None or isinstance(value, str):
        return value

    return dumps(value, ensure_ascii=False)
