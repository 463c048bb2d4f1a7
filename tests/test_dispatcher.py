"""Tests for format dispatching."""

from typing import TYPE_CHECKING, ClassVar

import pytest

from dynui.descriptors import NodeDescriptor
from dynui.errors import FormatError, UnsupportedFormatError
from dynui.parsing import (
    FormatDispatcher,
    FormatParser,
    JsonFormatParser,
    TextFormatParser,
    XmlFormatParser,
    YamlFormatParser,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


class IniParser(FormatParser):
    """Parser producing one node per file, for dispatching tests."""

    name: ClassVar[str] = 'ini'
    extensions: ClassVar[tuple[str, ...]] = ('.ini', '.txt')

    def parse(self, path: 'str | Path') -> list[NodeDescriptor]:
        return [NodeDescriptor(type_name='Ini')]


@pytest.mark.parametrize(('name', 'expected'), (
    pytest.param('layout.txt', TextFormatParser, id='text'),
    pytest.param('layout.UI', TextFormatParser, id='text upper case'),
    pytest.param('layout.dui', TextFormatParser, id='text dui'),
    pytest.param('layout.json', JsonFormatParser, id='json'),
    pytest.param('layout.Xml', XmlFormatParser, id='xml'),
    pytest.param('layout.yaml', YamlFormatParser, id='yaml'),
    pytest.param('layout.yml', YamlFormatParser, id='yml'),
))
def test_find_parser(name: str, expected: type[FormatParser]) -> None:
    """Verify selection of built-in parsers by extension."""
    assert isinstance(FormatDispatcher().find(name), expected)


def test_unsupported_extension(write_file: 'Callable[[str, str], Path]') -> None:
    """Verify failure when no parser claims a file."""
    path = write_file('layout.ini', '[layout]\n')

    with pytest.raises(UnsupportedFormatError, match=r"^No parser available for '\.ini'"):
        FormatDispatcher().parse_file(path)


def test_missing_file(tmp_path: 'Path') -> None:
    """Verify failure on a missing source file."""
    with pytest.raises(FormatError, match=r'^Source file not found'):
        FormatDispatcher().parse_file(tmp_path / 'missing.json')


def test_registered_parser_priority(write_file: 'Callable[[str, str], Path]') -> None:
    """Verify that parsers registered at runtime take priority."""
    path = write_file('layout.txt', 'Button\n')
    dispatcher = FormatDispatcher()
    parser = IniParser()

    dispatcher.register(parser)
    assert dispatcher.parsers[0] is parser
    assert [node.type_name for node in dispatcher.parse_file(path)] == ['Ini']

    assert dispatcher.remove(parser)
    assert not dispatcher.remove(parser)
    assert [node.type_name for node in dispatcher.parse_file(path)] == ['Button']


def test_source_stamping(write_file: 'Callable[[str, str], Path]') -> None:
    """Verify that every descriptor carries its source file."""
    nested = write_file('parts/items.txt', 'Button;Content=A\n')
    path = write_file('layout.json', (
        '{"controls": [{"type": "StackPanel", "children": [{"type": "TextBlock"}]}]}'
    ))

    (panel,) = FormatDispatcher().parse_file(path)

    assert [node.source_file for node in panel.walk()] == [str(path), str(path)]

    path = write_file('layout.txt', 'StackPanel;Children=parts/items.txt\n')
    (panel,) = FormatDispatcher().parse_file(path)

    assert panel.source_file == str(path)
    assert panel.children[0].source_file == str(nested)
