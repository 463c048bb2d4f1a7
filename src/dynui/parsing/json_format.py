"""JSON layout parser."""

from json import JSONDecodeError, loads
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from pydantic import ValidationError

from dynui.errors import FormatError

from .base import FormatParser, read_source
from .document import LayoutDocument

if TYPE_CHECKING:
    from dynui.descriptors import NodeDescriptor

if TYPE_CHECKING:
    from .base import PathLikeStr


class JsonFormatParser(FormatParser):
    """Parser for `{"defaults": ..., "controls": [...]}` documents.

    Non-string scalar values are kept as their JSON text, so `true`
    and `2.5` reach the conversion engine unchanged; `null` yields a
    bare entry.
    """

    name: ClassVar[str] = 'json'
    extensions: ClassVar[tuple[str, ...]] = ('.json',)

    def parse(self, path: 'PathLikeStr') -> list['NodeDescriptor']:
        """Parse a JSON layout file.

        Args:
            path: Path to the source file.

        Returns:
            Root descriptors in document order.

        Raises:
            FormatError: If the file is missing, is not valid JSON or
                does not follow the document structure.
        """
        filename = str(Path(path))

        try:
            data = loads(read_source(path))

        except JSONDecodeError as base:
            raise FormatError.from_json_error(base, filename) from base

        try:
            document = LayoutDocument.model_validate(data)

        except ValidationError as base:
            raise FormatError.from_pydantic_error(base, data=data, filename=filename) from base

        return document.to_descriptors()
