"""Example plugin definitions for dynui.

This module demonstrates how to declare dynui plugins using the
`Plugin` extension contract.

The example plugin (`example`):
- registers a custom node type (`Badge`),
- registers a converter for `timedelta` durations written as `HH:MM:SS`,
- registers a validator forbidding a configurable word,
- registers a setter storing `Caption` upper-cased,
- registers a cleanup callback.

The remaining plugins exercise failure and shadowing scenarios. The
module is intended for documentation and testing purposes.
"""

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from dynui.conversion import Color, ValueConverter
from dynui.nodes import Node
from dynui.plugins import Plugin
from dynui.setters import AsyncPropertySetter, PropertySetter
from dynui.validation import PropertyValidator, ValidationResult
from dynui.widgets import Control

if TYPE_CHECKING:
    from dynui.conversion import TypeConversionEngine
    from dynui.plugins import RegistrationContext


class Badge(Control):
    count: int = 0
    color: Color | None = None
    expires: timedelta | None = None


class DurationConverter(ValueConverter):
    """Converter for `HH:MM:SS` durations."""

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        return target is timedelta

    def convert(self, value: str, target: Any) -> Any:  # noqa: ANN401
        hours, minutes, seconds = (int(part) for part in value.strip().split(':'))
        return timedelta(hours=hours, minutes=minutes, seconds=seconds)


class ForbiddenWordValidator(PropertyValidator):
    """Rejects values containing a word."""

    def __init__(self, word: str) -> None:
        self.word = word

    def can_validate(self, node_type: type, name: str) -> bool:
        return True

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        result = ValidationResult()
        if value and self.word in value.casefold():
            result.add_error(f'{name}: {self.word!r} is not allowed')

        return result


class CaptionSetter(PropertySetter):
    """Stores `Caption` upper-cased into the node tag."""

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        return name.casefold() == 'caption' and hasattr(node, 'tag')

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        node.tag = value.upper()


class AsyncCaptionSetter(AsyncPropertySetter):
    """Stores `Caption` into the node tag, marking the assignment path."""

    def can_handle(self, node: Any, name: str) -> bool:  # noqa: ANN401
        return name.casefold() == 'caption' and hasattr(node, 'tag')

    def apply(self, node: Any, name: str, value: str, *,  # noqa: ANN401
              conversion: 'TypeConversionEngine') -> None:
        node.tag = f'sync:{value}'

    async def apply_async(self, node: Any, name: str, value: str, *,  # noqa: ANN401
                          conversion: 'TypeConversionEngine') -> None:
        node.tag = f'async:{value}'


class ExamplePlugin(Plugin):
    """Plugin registering one member of every kind."""

    name = 'example'
    version = '1.2.0'
    description = 'Badges, durations and captions'

    def __init__(self) -> None:
        self.cleaned = False
        self.stopped = False

    def initialize(self, context: 'RegistrationContext') -> None:
        context.register_type('Badge', Badge)
        context.register_converter(DurationConverter())
        context.register_validator(ForbiddenWordValidator('forbidden'))
        context.register_setter(CaptionSetter())
        context.register_cleanup(self.cleanup)
        context.logger.info('Example plugin initialized')

    def cleanup(self) -> None:
        self.cleaned = True

    def shutdown(self) -> None:
        self.stopped = True


class FancyButton(Control):
    fancy: bool = True


class ShadowingPlugin(Plugin):
    """Plugin replacing the built-in `Button` type."""

    name = 'shadowing'

    def initialize(self, context: 'RegistrationContext') -> None:
        context.register_type('Button', FancyButton)


class FailingPlugin(Plugin):
    """Plugin failing after a partial registration."""

    name = 'failing'

    def initialize(self, context: 'RegistrationContext') -> None:
        context.register_type('Badge', Badge)
        context.register_converter(DurationConverter())
        raise RuntimeError('backend is not available')


class BrokenShutdownPlugin(Plugin):
    """Plugin whose shutdown fails."""

    name = 'broken'

    def initialize(self, context: 'RegistrationContext') -> None:
        context.register_type('Badge', Badge)

    def shutdown(self) -> None:
        raise RuntimeError('cannot release resources')


class Unattachable(Node):
    """Node without any attachment capability."""

    label: str = ''


test = ExamplePlugin()
