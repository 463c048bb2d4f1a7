"""Line-oriented Text DSL parser.

Grammar summary::

    # comment
    Grupo=Main                      group of the following nodes
    Control=Button                  opens a defaults block for Button
    Width=120                       default, stored not emitted
    StackPanel;Orientation=Vertical
      Button;Text="Save; close"     child by deeper indentation
      ;Text=Ok                      type taken from the defaults block

Fragments are separated by `;` outside of double quotes; a backslash
escapes the next character. Values may be quoted and may contain the
escapes `\\n`, `\\t`, `\\r`, `\\\\`, `\\"`, `\\;` and `\\=`.

Nesting is derived from the raw count of leading whitespace characters;
tabs are not expanded. Errors on one line are logged and only that line
is skipped.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from dynui.descriptors import NodeDescriptor, PropertyEntry
from dynui.errors import DynUIError, ErrorContext, FormatError, ParseError

from .base import DefaultsTable, FormatParser, read_source

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from .base import PathLikeStr

logger = logging.getLogger(__name__)

GROUP_KEYWORD = 'grupo='
CONTROL_KEYWORD = 'control='
COMMENT_PREFIX = '#'

PROPERTIES_FILE_NAMES = ('PropertiesFile', 'LoadProps', 'PropsFile')
CHILDREN_FILE_NAMES = ('Children', 'ChildrenFile', 'LoadChildren')
CONTENT_NAME = 'Content'
CHILDREN_FILE_SUFFIX = '.txt'

ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
}


def strip_quotes(value: str) -> str:
    """Remove one pair of surrounding double quotes."""
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]

    return value


def unescape(value: str) -> str:
    """Decode backslash escapes; unknown escapes keep the character."""
    if '\\' not in value:
        return value

    chars: list[str] = []
    escaped = False
    for char in value:
        if escaped:
            chars.append(ESCAPES.get(char, char))
            escaped = False
        elif char == '\\':
            escaped = True
        else:
            chars.append(char)

    if escaped:
        chars.append('\\')

    return ''.join(chars)


def split_fragments(line: str, separator: str = ';') -> list[str]:
    """Split a node line on unquoted, unescaped separators.

    Quotes and escape sequences are kept verbatim in the fragments so
    that property parsing can interpret them. Empty fragments are dropped.

    Args:
        line: Stripped source line.
        separator: Fragment separator character.

    Returns:
        Trimmed non-empty fragments.
    """
    fragments: list[str] = []
    current: list[str] = []
    quoted = escaped = False

    for char in line:
        if escaped:
            current.append(char)
            escaped = False
            continue

        if char == '\\':
            current.append(char)
            escaped = True
            continue

        if char == '"':
            quoted = not quoted
        elif char == separator and not quoted:
            if fragment := ''.join(current).strip():
                fragments.append(fragment)
            current = []
            continue

        current.append(char)

    if fragment := ''.join(current).strip():
        fragments.append(fragment)

    return fragments


def find_assignment(fragment: str) -> int:
    """Return the index of the first unquoted, unescaped `=`, or -1."""
    quoted = escaped = False

    for index, char in enumerate(fragment):
        if escaped:
            escaped = False
        elif char == '\\':
            escaped = True
        elif char == '"':
            quoted = not quoted
        elif char == '=' and not quoted:
            return index

    return -1


def parse_property(fragment: str) -> PropertyEntry:
    """Parse a `name=value` fragment.

    A fragment without an assignment yields a bare entry whose value
    is `None`.

    Args:
        fragment: A single fragment of a node line.

    Returns:
        Parsed property entry.
    """
    index = find_assignment(fragment)
    if index < 0:
        return PropertyEntry(name=fragment.strip())

    name = fragment[:index].strip()
    value = strip_quotes(fragment[index + 1:].strip())

    return PropertyEntry(name=name, raw_value=unescape(value))


class _SourceState:
    """Mutable state of a single source file being parsed."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.group: str | None = None
        self.control_type: str | None = None
        self.defaults = DefaultsTable()
        self.roots: list[NodeDescriptor] = []
        self.stack: list[tuple[int, NodeDescriptor]] = []
        self.skipped_indent: int | None = None

    def attach(self, indent: int, node: NodeDescriptor) -> None:
        """Place a node in the tree by its indentation."""
        if self.stack and indent > self.stack[-1][0]:
            self.stack[-1][1].children.append(node)
        else:
            while self.stack and self.stack[-1][0] >= indent:
                self.stack.pop()
            if self.stack:
                self.stack[-1][1].children.append(node)
            else:
                self.roots.append(node)

        self.stack.append((indent, node))


class TextFormatParser(FormatParser):
    """Parser for the line-oriented Text DSL.

    Attributes:
        group_normalizer: Optional callable transforming group names,
            applied to every `Grupo=` value including nested files.
    """

    name: ClassVar[str] = 'text'
    extensions: ClassVar[tuple[str, ...]] = ('.txt', '.ui', '.dui')

    def __init__(self, *,
                 group_normalizer: 'Callable[[str], str] | None' = None) -> None:
        """Initialize a parser.

        Args:
            group_normalizer: Optional group name transformation.
        """
        self.group_normalizer = group_normalizer

    def parse(self, path: 'PathLikeStr') -> list[NodeDescriptor]:
        """Parse a Text DSL file.

        Args:
            path: Path to the source file.

        Returns:
            Root descriptors in document order.

        Raises:
            FormatError: If the source file cannot be read.
        """
        source = Path(path)
        return self._parse_file(source, frozenset({source.resolve()}))

    def _parse_file(self, path: Path,
                    active: frozenset[Path]) -> list[NodeDescriptor]:
        """Parse a file while tracking the chain of including files."""
        state = _SourceState(path)

        for line_num, line in enumerate(read_source(path).splitlines()):
            try:
                self._parse_line(state, line, active)

            except DynUIError as error:
                if error.context is None:
                    error.context = ErrorContext(filename=str(path))
                error.context.setdefault('filename', str(path))
                error.context['line_num'] = line_num
                logger.warning('Skipped line: %s', error)

            except Exception as base:  # noqa: BLE001
                error = ParseError(f'Unexpected error: {base}', context=ErrorContext(
                    filename=str(path),
                    line_num=line_num,
                    error=base,
                ))
                logger.warning('Skipped line: %s', error)

        return state.roots

    def _parse_line(self, state: _SourceState, line: str,
                    active: frozenset[Path]) -> None:
        """Interpret one raw source line."""
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_PREFIX):
            return

        indent = len(line) - len(line.lstrip())
        lowered = stripped.casefold()

        if lowered.startswith(GROUP_KEYWORD):
            group = strip_quotes(stripped[len(GROUP_KEYWORD):].strip())
            if self.group_normalizer is not None:
                group = self.group_normalizer(group)
            state.group = group or None
            return

        if lowered.startswith(CONTROL_KEYWORD):
            control_type = strip_quotes(stripped[len(CONTROL_KEYWORD):].strip())
            if not control_type:
                raise ParseError('Empty type in defaults block')
            state.control_type = control_type
            state.defaults.declare(control_type)
            return

        if state.control_type and '=' in stripped and ';' not in stripped:
            entry = parse_property(stripped)
            if entry.raw_value is not None:
                state.defaults.add(state.control_type, entry.name, entry.raw_value)
            return

        # Lines nested under a skipped node line go with it.
        if state.skipped_indent is not None:
            if indent > state.skipped_indent:
                raise ParseError('Parent line was skipped')
            state.skipped_indent = None

        try:
            node = self._parse_node(state, stripped, active)
        except Exception:
            state.skipped_indent = indent
            raise

        state.attach(indent, node)

    def _parse_node(self, state: _SourceState, line: str,
                    active: frozenset[Path]) -> NodeDescriptor:
        """Build a descriptor from a node line."""
        fragments = split_fragments(line)
        if not fragments:
            raise ParseError('Empty node line')

        type_name = state.control_type
        if find_assignment(fragments[0]) < 0:
            type_name = strip_quotes(fragments.pop(0))

        if not type_name:
            raise ParseError('Node line without a type and outside of a defaults block')

        node = NodeDescriptor(
            type_name=type_name,
            group_name=state.group,
            source_file=str(state.path),
        )
        for fragment in fragments:
            entry = parse_property(fragment)
            if entry.name:
                node.properties.append(entry)

        self._load_properties_files(state, node)
        self._load_children_files(state, node, active)

        state.defaults.apply(node)

        return node

    def _resolve_include(self, state: _SourceState, value: str | None) -> Path | None:
        """Resolve an include path relative to the including file."""
        if not value or not (value := strip_quotes(value.strip())):
            return None

        path = Path(value)
        if not path.is_absolute():
            path = state.path.parent / path

        return path

    def _load_properties_files(self, state: _SourceState,
                               node: NodeDescriptor) -> None:
        """Append missing properties from external `key=value` files."""
        for entry in node.pop(*PROPERTIES_FILE_NAMES):
            if (path := self._resolve_include(state, entry.raw_value)) is None:
                continue

            if not path.is_file():
                logger.warning('Properties file not found: %s', path)
                continue

            for line in read_source(path).splitlines():
                stripped = line.strip()
                if not stripped or stripped.startswith(COMMENT_PREFIX):
                    continue
                prop = parse_property(stripped)
                if prop.name and prop.raw_value is not None and not node.has(prop.name):
                    node.properties.append(prop)

    def _load_children_files(self, state: _SourceState, node: NodeDescriptor,
                             active: frozenset[Path]) -> None:
        """Parse nested Text DSL files and append their roots as children."""
        includes = node.pop(*CHILDREN_FILE_NAMES)

        content = node.get(CONTENT_NAME)
        if content and strip_quotes(content.strip()).lower().endswith(CHILDREN_FILE_SUFFIX):
            includes.extend(node.pop(CONTENT_NAME))

        for entry in includes:
            if (path := self._resolve_include(state, entry.raw_value)) is None:
                continue

            if not path.is_file():
                logger.warning('Children file not found: %s', path)
                continue

            resolved = path.resolve()
            if resolved in active:
                raise ParseError(f'Recursive include of {str(path)!r}')

            try:
                node.children.extend(self._parse_file(path, active | {resolved}))

            except FormatError as error:
                logger.warning('Children file skipped: %s', error)
