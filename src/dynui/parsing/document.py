"""Document schema shared by the JSON and YAML formats.

Both formats describe the same structure::

    defaults:
      Button:
        Width: 120
    controls:
      - type: StackPanel
        group: Main
        properties:
          Orientation: Vertical
        children:
          - type: Button
            properties:
              Text: Save
"""

from typing import Any

from pydantic import Field, ValidationInfo, field_validator

from dynui.descriptors import NodeDescriptor
from dynui.models import SchemaModel

from .base import DefaultsTable, render_scalar

#: Factories of values standing for an empty YAML mapping value.
EMPTY_VALUES = {
    'group': lambda: None,
    'properties': dict,
    'children': list,
    'defaults': dict,
    'controls': list,
}

#: Decoded property value before rendering to a raw string.
type DocumentValue = str | bool | int | float | list[Any] | dict[str, Any] | None


class ControlModel(SchemaModel):
    """Single control entry of a structured document."""

    type: str = Field(
        min_length=1,
        title='Type',
        description='Node type name resolved through the type registry.',
    )

    group: str | None = Field(
        default=None,
        title='Group',
    )

    properties: dict[str, DocumentValue] = Field(
        default_factory=dict,
        title='Properties',
        description='Specific properties; override type defaults in place.',
    )

    children: list['ControlModel'] = Field(
        default_factory=list,
        title='Children',
    )

    @field_validator('group', 'properties', 'children', mode='before')
    @classmethod
    def _empty_as_default(cls, value: Any, info: ValidationInfo) -> Any:  # noqa: ANN401
        """Treat an empty YAML value (`key:`) as an omitted key."""
        if value != '':
            return value

        return EMPTY_VALUES[info.field_name]()

    def to_descriptor(self, defaults: DefaultsTable) -> NodeDescriptor:
        """Convert the entry and its children into descriptors."""
        node = defaults.seed(self.type, group_name=self.group or None)

        for name, value in self.properties.items():
            node.set(name, render_scalar(value))

        node.children = [
            child.to_descriptor(defaults)
            for child in self.children
        ]

        return node


class LayoutDocument(SchemaModel):
    """Root of a structured (JSON or YAML) layout document."""

    defaults: dict[str, dict[str, DocumentValue]] = Field(
        default_factory=dict,
        title='Defaults',
        description='Default properties keyed by type name.',
    )

    controls: list[ControlModel] = Field(
        default_factory=list,
        title='Controls',
    )

    @field_validator('defaults', 'controls', mode='before')
    @classmethod
    def _empty_as_default(cls, value: Any, info: ValidationInfo) -> Any:  # noqa: ANN401
        """Treat an empty YAML value (`key:`) as an omitted key."""
        if value != '':
            return value

        return EMPTY_VALUES[info.field_name]()

    def to_descriptors(self) -> list[NodeDescriptor]:
        """Convert the document into root descriptors."""
        table = DefaultsTable()
        for type_name, values in self.defaults.items():
            table.declare(type_name)
            for name, value in values.items():
                table.add(type_name, name, render_scalar(value))

        return [control.to_descriptor(table) for control in self.controls]
