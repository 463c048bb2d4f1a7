"""Type registry and the shared registry value.

`Registry` bundles everything plugins can extend: node types, setters,
validators and converters. It is owned explicitly by whoever builds and
passed to the builder and the plugin manager; there is no process-wide
instance.
"""

import logging
from collections.abc import Callable  # noqa: TC003
from importlib import import_module
from threading import RLock
from types import ModuleType
from typing import TYPE_CHECKING, Any

from pydantic import Field

from dynui.conversion import TypeConversionEngine
from dynui.models import SchemaModel
from dynui.nodes import Node, describe
from dynui.setters import SetterChain
from dynui.validation import PropertyValidationEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from dynui.nodes import PropertyAccessor

logger = logging.getLogger(__name__)


class NodeType(SchemaModel):
    """Registered node type: a factory plus its accessor table."""

    name: str = Field(
        title='Name',
        description='Registered type name as given at registration.',
    )

    cls: type = Field(
        title='Class',
        description='Class of the created objects.',
    )

    factory: Callable[[], Any] = Field(
        title='Factory',
        description='Zero-argument callable creating a new object.',
    )

    @property
    def accessors(self) -> 'Mapping[str, PropertyAccessor]':
        """Accessor table of the class."""
        return describe(self.cls)

    def create(self) -> Any:  # noqa: ANN401
        """Create a new object of this type."""
        return self.factory()


class TypeRegistry:
    """Case-insensitive mapping of type names to node types."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._lock = RLock()
        self._types: dict[str, NodeType] = {}

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name.casefold() in self._types

    def __len__(self) -> int:
        with self._lock:
            return len(self._types)

    def names(self) -> list[str]:
        """Registered type names in registration order."""
        with self._lock:
            return [entry.name for entry in self._types.values()]

    def entries(self) -> dict[str, NodeType]:
        """Snapshot of the registry keyed by case-folded name."""
        with self._lock:
            return dict(self._types)

    def register(self, name: str, cls: type,
                 factory: 'Callable[[], Any] | None' = None) -> NodeType | None:
        """Register a node type, replacing an entry with the same name.

        The accessor table is built eagerly.

        Args:
            name: Type name used in layouts.
            cls: Class of the created objects.
            factory: Zero-argument factory; `cls` itself when omitted.

        Returns:
            The replaced entry, if any.
        """
        entry = NodeType(name=name, cls=cls, factory=factory or cls)
        describe(cls)

        with self._lock:
            previous = self._types.get(name.casefold())
            self._types[name.casefold()] = entry

        if previous is not None:
            logger.debug('Type %r replaced %s with %s', name, previous.cls, cls)

        return previous

    def unregister(self, name: str) -> NodeType | None:
        """Remove a node type.

        Returns:
            The removed entry, if any.
        """
        with self._lock:
            return self._types.pop(name.casefold(), None)

    def restore(self, entry: NodeType) -> None:
        """Put back a previously removed or replaced entry."""
        with self._lock:
            self._types[entry.name.casefold()] = entry

    def resolve(self, name: str) -> NodeType | None:
        """Look up a node type by name."""
        with self._lock:
            return self._types.get(name.casefold())

    def register_module(self, module: ModuleType | str) -> int:
        """Register every public node class defined in a module.

        Args:
            module: Module object or importable module name.

        Returns:
            Number of registered types.
        """
        count = 0
        for cls in _node_classes(_import(module)):
            self.register(cls.__name__, cls)
            count += 1

        return count

    def auto_register(self, name: str,
                      modules: 'Iterable[ModuleType | str]') -> NodeType | None:
        """Resolve an unknown type name by scanning modules.

        The first public node class whose name matches case-insensitively
        is registered under its class name.

        Args:
            name: Requested type name.
            modules: Modules or importable module names to scan.

        Returns:
            The registered entry, or `None` if no class matches.
        """
        key = name.casefold()
        for module in modules:
            try:
                namespace = _import(module)
            except ImportError:
                logger.warning('Auto-registration module %r cannot be imported', module)
                continue

            for cls in _node_classes(namespace):
                if cls.__name__.casefold() == key:
                    self.register(cls.__name__, cls)
                    logger.debug('Auto-registered %s from %s', cls.__name__, namespace.__name__)
                    return self.resolve(name)

        return None


def _import(module: ModuleType | str) -> ModuleType:
    """Import a module given by name."""
    return import_module(module) if isinstance(module, str) else module


def _node_classes(module: ModuleType) -> list[type]:
    """Public node classes defined (not imported) in a module."""
    return [
        value for key, value in vars(module).items()
        if not key.startswith('_')
        and isinstance(value, type)
        and issubclass(value, Node)
        and value.__module__ == module.__name__
    ]


class Registry:
    """Shared, plugin-extensible registries used by a builder.

    Attributes:
        types: Node type registry.
        setters: Property setter chain.
        validation: Property validation engine.
        conversion: Type conversion engine.
    """

    def __init__(self, *,
                 types: TypeRegistry | None = None,
                 setters: SetterChain | None = None,
                 validation: PropertyValidationEngine | None = None,
                 conversion: TypeConversionEngine | None = None) -> None:
        """Initialize a registry with built-in members where omitted."""
        self.types = types if types is not None else TypeRegistry()
        self.setters = setters if setters is not None else SetterChain()
        self.validation = validation if validation is not None else PropertyValidationEngine()
        self.conversion = conversion if conversion is not None else TypeConversionEngine()

    def counts(self) -> dict[str, int]:
        """Number of registered members per kind."""
        return {
            'types': len(self.types),
            'setters': len(self.setters.setters),
            'validators': len(self.validation.validators),
            'converters': len(self.conversion.converters),
        }
