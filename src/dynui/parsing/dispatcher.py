"""Format dispatcher selecting a parser by file extension."""

import logging
from pathlib import Path
from threading import RLock
from typing import TYPE_CHECKING

from dynui.errors import ErrorContext, FormatError, UnsupportedFormatError

from .json_format import JsonFormatParser
from .text_format import TextFormatParser
from .xml_format import XmlFormatParser
from .yaml_format import YamlFormatParser

if TYPE_CHECKING:
    from collections.abc import Iterable

if TYPE_CHECKING:
    from dynui.descriptors import NodeDescriptor

    from .base import FormatParser, PathLikeStr

logger = logging.getLogger(__name__)


def default_parsers() -> list['FormatParser']:
    """Create the built-in parsers in priority order."""
    return [
        TextFormatParser(),
        JsonFormatParser(),
        XmlFormatParser(),
        YamlFormatParser(),
    ]


class FormatDispatcher:
    """Ordered set of format parsers.

    The first parser whose `can_parse` accepts a path wins. Parsers
    registered at runtime take priority over the built-in ones.
    """

    def __init__(self, parsers: 'Iterable[FormatParser] | None' = None) -> None:
        """Initialize a dispatcher.

        Args:
            parsers: Initial parsers; the built-in set when omitted.
        """
        self._lock = RLock()
        self._parsers = list(default_parsers() if parsers is None else parsers)

    @property
    def parsers(self) -> tuple['FormatParser', ...]:
        """Registered parsers in priority order."""
        with self._lock:
            return tuple(self._parsers)

    def register(self, parser: 'FormatParser') -> None:
        """Register a parser ahead of all existing ones."""
        with self._lock:
            self._parsers.insert(0, parser)

    def remove(self, parser: 'FormatParser') -> bool:
        """Remove a parser.

        Returns:
            True if the parser was registered.
        """
        with self._lock:
            if parser not in self._parsers:
                return False
            self._parsers.remove(parser)
            return True

    def find(self, path: 'PathLikeStr') -> 'FormatParser | None':
        """Return the parser claiming a path, if any."""
        for parser in self.parsers:
            if parser.can_parse(path):
                return parser

        return None

    def parse_file(self, path: 'PathLikeStr') -> list['NodeDescriptor']:
        """Parse a file with the first parser claiming it.

        Every descriptor of the resulting forest is stamped with the
        source path unless it already carries one (nodes included from
        other files keep their own).

        Args:
            path: Path to the source file.

        Returns:
            Root descriptors in document order.

        Raises:
            UnsupportedFormatError: If no parser claims the file.
            FormatError: If the file is missing or malformed.
        """
        source = Path(path)
        context = ErrorContext(filename=str(source))

        if (parser := self.find(source)) is None:
            raise UnsupportedFormatError(
                f'No parser available for {source.suffix or "files without extension"!r}',
                context=context,
            )

        if not source.is_file():
            raise FormatError('Source file not found', context=context)

        logger.debug('Parsing %s with %r', source, parser)
        nodes = parser.parse(source)

        for node in nodes:
            node.stamp_source(str(source))

        return nodes
