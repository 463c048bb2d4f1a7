"""XML layout parser.

Document layout::

    <Layout>
      <Defaults>
        <Button Width="120" />
      </Defaults>
      <Controls>
        <Control Type="StackPanel" Group="Main" Orientation="Vertical">
          <Control Type="Button" Text="Save" />
          <ToolTip>Stores the document</ToolTip>
        </Control>
      </Controls>
    </Layout>

Attributes and child elements of a `<Control>` become properties, with
child elements overriding attributes; nested `<Control>` elements become
child nodes. The `Type` and `Group` attributes are matched
case-insensitively.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar
from xml.etree.ElementTree import Element, ParseError as XMLParseError, fromstring

from dynui.errors import ErrorContext, FormatError, ParseError

from .base import DefaultsTable, FormatParser, read_source

if TYPE_CHECKING:
    from dynui.descriptors import NodeDescriptor

if TYPE_CHECKING:
    from .base import PathLikeStr

logger = logging.getLogger(__name__)

DEFAULTS_TAG = 'defaults'
CONTROLS_TAG = 'controls'
CONTROL_TAG = 'control'
TYPE_ATTRIBUTE = 'type'
GROUP_ATTRIBUTE = 'group'


def _local_name(tag: str) -> str:
    """Strip an XML namespace and fold the case of a tag."""
    return tag.rpartition('}')[2].casefold()


def _attribute(element: Element, name: str) -> str | None:
    """Read an attribute case-insensitively."""
    for key, value in element.attrib.items():
        if _local_name(key) == name:
            return value

    return None


class XmlFormatParser(FormatParser):
    """Parser for `<Defaults>` / `<Controls>` XML documents."""

    name: ClassVar[str] = 'xml'
    extensions: ClassVar[tuple[str, ...]] = ('.xml',)

    def parse(self, path: 'PathLikeStr') -> list['NodeDescriptor']:
        """Parse an XML layout file.

        Args:
            path: Path to the source file.

        Returns:
            Root descriptors in document order.

        Raises:
            FormatError: If the file is missing or is not well-formed XML.
        """
        filename = str(Path(path))

        try:
            root = fromstring(read_source(path))  # noqa: S314

        except XMLParseError as base:
            raise FormatError.from_xml_error(base, filename) from base

        defaults = DefaultsTable()
        for section in root:
            if _local_name(section.tag) != DEFAULTS_TAG:
                continue
            for element in section:
                type_name = element.tag.rpartition('}')[2]
                defaults.declare(type_name)
                for name, value in element.attrib.items():
                    defaults.add(type_name, name, value)

        nodes: list[NodeDescriptor] = []
        for section in root:
            if _local_name(section.tag) != CONTROLS_TAG:
                continue
            nodes.extend(self._parse_controls(section, defaults, filename))

        return nodes

    def _parse_controls(self, parent: Element, defaults: DefaultsTable,
                        filename: str) -> list['NodeDescriptor']:
        """Parse `<Control>` children of an element, skipping broken ones."""
        nodes: list[NodeDescriptor] = []

        for position, element in enumerate(parent):
            if _local_name(element.tag) != CONTROL_TAG:
                continue

            try:
                nodes.append(self._parse_control(element, defaults, filename))

            except ParseError as error:
                error.context = ErrorContext(
                    filename=filename,
                    element={'control': position, 'attributes': dict(element.attrib)},
                )
                logger.warning('Skipped control: %s', error)

        return nodes

    def _parse_control(self, element: Element, defaults: DefaultsTable,
                       filename: str) -> 'NodeDescriptor':
        """Build a descriptor from a single `<Control>` element."""
        type_name = (_attribute(element, TYPE_ATTRIBUTE) or '').strip()
        if not type_name:
            raise ParseError('Control element without a Type attribute')

        group_name = (_attribute(element, GROUP_ATTRIBUTE) or '').strip() or None
        node = defaults.seed(type_name, group_name=group_name)

        for name, value in element.attrib.items():
            if _local_name(name) not in {TYPE_ATTRIBUTE, GROUP_ATTRIBUTE}:
                node.set(name.rpartition('}')[2], value)

        for child in element:
            if _local_name(child.tag) == CONTROL_TAG:
                continue
            node.set(child.tag.rpartition('}')[2], (child.text or '').strip())

        node.children = self._parse_controls(element, defaults, filename)

        return node
