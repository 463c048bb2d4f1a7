"""Registration contexts handed to plugins.

`PluginContext` forwards registrations to a `Registry`.
`TrackedPluginContext` implements the same protocol by delegating to
another context while recording every call, which is what makes an
exact unload possible.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .records import PluginRegistration, TypeRegistration

if TYPE_CHECKING:
    from collections.abc import Callable
    from logging import Logger

    from dynui.conversion import ValueConverter
    from dynui.registry import NodeType, Registry
    from dynui.setters import PropertySetter
    from dynui.validation import PropertyValidator


@runtime_checkable
class RegistrationContext(Protocol):
    """Registration surface available to plugins."""

    logger: 'Logger'

    def register_type(self, name: str, cls: type,
                      factory: 'Callable[[], Any] | None' = None) -> 'NodeType | None':
        """Register a node type; returns the shadowed entry, if any."""

    def register_setter(self, setter: 'PropertySetter') -> None:
        """Register a property setter ahead of existing ones."""

    def register_validator(self, validator: 'PropertyValidator') -> None:
        """Register a property validator ahead of existing ones."""

    def register_converter(self, converter: 'ValueConverter') -> None:
        """Register a value converter ahead of existing ones."""


class PluginContext:
    """Raw context forwarding registrations to a registry."""

    def __init__(self, registry: 'Registry', logger: 'Logger') -> None:
        """Initialize a context.

        Args:
            registry: Registry receiving the registrations.
            logger: Logger dedicated to the plugin.
        """
        self.registry = registry
        self.logger = logger

    def register_type(self, name: str, cls: type,
                      factory: 'Callable[[], Any] | None' = None) -> 'NodeType | None':
        return self.registry.types.register(name, cls, factory)

    def register_setter(self, setter: 'PropertySetter') -> None:
        self.registry.setters.register(setter)

    def register_validator(self, validator: 'PropertyValidator') -> None:
        self.registry.validation.register(validator)

    def register_converter(self, converter: 'ValueConverter') -> None:
        self.registry.conversion.register(converter)


class TrackedPluginContext:
    """Recording decorator over another registration context.

    Attributes:
        registration: Record of every forwarded registration.
    """

    def __init__(self, inner: RegistrationContext, registration: PluginRegistration,
                 resolve: 'Callable[[str], NodeType | None]') -> None:
        """Initialize a tracked context.

        Args:
            inner: Context receiving the forwarded calls.
            registration: Record to fill.
            resolve: Lookup of the entry a type name maps to after
                registration, used to record what was registered.
        """
        self.inner = inner
        self.registration = registration
        self.resolve = resolve

    @property
    def logger(self) -> 'Logger':
        """Logger of the wrapped context."""
        return self.inner.logger

    def register_type(self, name: str, cls: type,
                      factory: 'Callable[[], Any] | None' = None) -> 'NodeType | None':
        previous = self.inner.register_type(name, cls, factory)
        if (registered := self.resolve(name)) is not None:
            self.registration.types.append(TypeRegistration(
                name=name,
                node_type=registered,
                previous=previous,
            ))

        return previous

    def register_setter(self, setter: 'PropertySetter') -> None:
        self.inner.register_setter(setter)
        self.registration.setters.append(setter)

    def register_validator(self, validator: 'PropertyValidator') -> None:
        self.inner.register_validator(validator)
        self.registration.validators.append(validator)

    def register_converter(self, converter: 'ValueConverter') -> None:
        self.inner.register_converter(converter)
        self.registration.converters.append(converter)

    def register_cleanup(self, callback: 'Callable[[], Any]') -> None:
        """Register a callback run before `Plugin.shutdown` on unload."""
        self.registration.cleanups.append(callback)
