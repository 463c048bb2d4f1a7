"""Data binding hand-off.

Properties written as `Binding:<Target>=<path>` are not assigned by the
builder; they are passed to a binding applier, an external collaborator
that wires the target property to a path of the node data context.
"""

from typing import TYPE_CHECKING, Protocol

from pydantic import Field

from dynui.models import SchemaModel

if TYPE_CHECKING:
    from typing import Any

BINDING_PREFIX = 'binding:'


class Binding(SchemaModel):
    """Declared binding of a node property to a data context path."""

    target: str = Field(
        title='Target',
        description='Bound property name as written in the source.',
    )

    path: str = Field(
        title='Path',
        description='Path within the node data context.',
    )


class BindingApplier(Protocol):
    """Callable wiring one binding onto a node."""

    def __call__(self, node: 'Any', target: str, path: str) -> None:  # noqa: ANN401
        """Apply a binding.

        Args:
            node: Node being built.
            target: Bound property name.
            path: Binding path.
        """


def binding_target(name: str) -> str | None:
    """Extract the target of a `Binding:<Target>` property name."""
    if not name.casefold().startswith(BINDING_PREFIX):
        return None

    return name[len(BINDING_PREFIX):].strip() or None


def store_binding(node: 'Any', target: str, path: str) -> None:  # noqa: ANN401
    """Default applier recording the binding on the node.

    Raises:
        TypeError: If the node cannot hold bindings.
    """
    bindings = getattr(node, 'bindings', None)
    if not isinstance(bindings, dict):
        raise TypeError(f'{type(node).__name__} does not support bindings')

    bindings[target] = Binding(target=target, path=path)
