"""Plugin contract."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from .context import RegistrationContext


class Plugin(ABC):
    """Unit of extension registering node types, setters, validators
    and converters through a registration context.

    Everything registered through the context during `initialize` is
    recorded and removed again when the plugin is unloaded; `shutdown`
    only has to release resources the plugin acquired itself.
    """

    #: Unique plugin name.
    name: ClassVar[str]
    #: Plugin version string.
    version: ClassVar[str] = '0.0.0'
    #: Short human-readable description.
    description: ClassVar[str] = ''

    @abstractmethod
    def initialize(self, context: 'RegistrationContext') -> None:
        """Register the plugin extensions.

        Args:
            context: Registration context of the loading manager.
        """

    def shutdown(self) -> None:  # noqa: B027
        """Release plugin resources before unloading."""
        return None

    def __repr__(self) -> str:
        """String represenatation."""
        return f'<{type(self).__name__} {self.name!r} {self.version}>'
