"""YAML layout parser.

Documents are loaded with `yaml.BaseLoader`: every scalar stays a
string, so `Width: 120` and `IsEnabled: yes` reach the conversion engine
exactly as written. Only the `defaults` and `controls` top-level keys
are accepted.
"""

from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from pydantic import ValidationError
from yaml import BaseLoader, load
from yaml.error import MarkedYAMLError, YAMLError

from dynui.errors import ErrorContext, FormatError

from .base import FormatParser, read_source
from .document import LayoutDocument

if TYPE_CHECKING:
    from dynui.descriptors import NodeDescriptor

if TYPE_CHECKING:
    from .base import PathLikeStr


class YamlFormatParser(FormatParser):
    """Parser for the YAML subset of the structured document format."""

    name: ClassVar[str] = 'yaml'
    extensions: ClassVar[tuple[str, ...]] = ('.yaml', '.yml')

    def parse(self, path: 'PathLikeStr') -> list['NodeDescriptor']:
        """Parse a YAML layout file.

        Args:
            path: Path to the source file.

        Returns:
            Root descriptors in document order.

        Raises:
            FormatError: If the file is missing, is not valid YAML or
                does not follow the document structure.
        """
        filename = str(Path(path))

        try:
            data = load(read_source(path), Loader=BaseLoader)  # noqa: S506

        except MarkedYAMLError as base:
            raise FormatError.from_yaml_error(base, filename) from base

        except YAMLError as base:
            raise FormatError('Invalid YAML', context=ErrorContext(
                filename=filename,
                error=base,
            )) from base

        if data is None or data == '':
            return []

        try:
            document = LayoutDocument.model_validate(data)

        except ValidationError as base:
            raise FormatError.from_pydantic_error(base, data=data, filename=filename) from base

        return document.to_descriptors()
