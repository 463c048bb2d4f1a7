"""Layout grammar parsers.

Each parser turns one source file into a forest of node descriptors:

- `TextFormatParser` for the line-oriented Text DSL (`.txt`, `.ui`, `.dui`);
- `JsonFormatParser` for JSON documents (`.json`);
- `XmlFormatParser` for XML documents (`.xml`);
- `YamlFormatParser` for YAML documents (`.yaml`, `.yml`).

`FormatDispatcher` selects a parser by file extension.
"""

from .base import DefaultsTable, FormatParser
from .dispatcher import FormatDispatcher, default_parsers
from .document import ControlModel, LayoutDocument
from .json_format import JsonFormatParser
from .text_format import TextFormatParser, parse_property, split_fragments, unescape
from .xml_format import XmlFormatParser
from .yaml_format import YamlFormatParser

__all__ = (
    'ControlModel',
    'DefaultsTable',
    'FormatDispatcher',
    'FormatParser',
    'JsonFormatParser',
    'LayoutDocument',
    'TextFormatParser',
    'XmlFormatParser',
    'YamlFormatParser',
    'default_parsers',
    'parse_property',
    'split_fragments',
    'unescape',
)
