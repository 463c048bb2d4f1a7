"""Registration records and plugin summaries."""

from collections.abc import Callable  # noqa: TC003
from typing import TYPE_CHECKING, Any

from pydantic import Field

from dynui.models import MutableModel, SchemaModel
from dynui.registry import NodeType  # noqa: TC001

if TYPE_CHECKING:
    from typing import Self

    from .base import Plugin


class TypeRegistration(SchemaModel):
    """Node type registered by a plugin."""

    name: str
    node_type: NodeType
    previous: NodeType | None = Field(
        default=None,
        description='Entry shadowed by the registration, restored on unload.',
    )


class PluginRegistration(MutableModel):
    """Everything a plugin registered while initializing.

    Unloading reverses exactly these records, nothing else.
    """

    plugin_name: str
    types: list[TypeRegistration] = Field(default_factory=list)
    setters: list[Any] = Field(default_factory=list)
    validators: list[Any] = Field(default_factory=list)
    converters: list[Any] = Field(default_factory=list)
    cleanups: list[Callable[[], Any]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether nothing has been recorded."""
        return not (self.types or self.setters or self.validators
                    or self.converters or self.cleanups)


class PluginInfo(SchemaModel):
    """Summary of a loaded plugin."""

    name: str
    version: str
    description: str = ''
    types: int = 0
    setters: int = 0
    validators: int = 0
    converters: int = 0
    type_names: tuple[str, ...] = ()

    @classmethod
    def from_registration(cls, plugin: 'Plugin',
                          registration: PluginRegistration) -> 'Self':
        """Summarize a plugin and its registration record."""
        return cls(
            name=plugin.name,
            version=plugin.version,
            description=plugin.description,
            types=len(registration.types),
            setters=len(registration.setters),
            validators=len(registration.validators),
            converters=len(registration.converters),
            type_names=tuple(item.name for item in registration.types),
        )
