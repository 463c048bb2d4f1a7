"""Built-in property validators."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dynui.conversion import EnumConverter, FontWeightConverter
from dynui.nodes import describe, find_accessor, property_key

from .result import ValidationResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

NUMERIC_RANGES: dict[str, tuple[float, float]] = {
    'width': (0, 10_000),
    'height': (0, 10_000),
    'minwidth': (0, 10_000),
    'maxwidth': (0, 10_000),
    'minheight': (0, 10_000),
    'maxheight': (0, 10_000),
    'opacity': (0, 1),
    'fontsize': (1, 1_000),
    'x': (-10_000, 10_000),
    'y': (-10_000, 10_000),
    'left': (-10_000, 10_000),
    'top': (-10_000, 10_000),
    'right': (-10_000, 10_000),
    'bottom': (-10_000, 10_000),
}
LARGE_SIZE_NAMES = frozenset({'width', 'height'})
LARGE_SIZE_THRESHOLD = 5_000

TEXT_NAMES = frozenset({'text', 'content', 'header', 'title'})
TEXT_MAX_LENGTH = 10_000
TEXT_WARNING_LENGTH = 1_000

SCRIPT_MARKERS = (
    '<script',
    '</script>',
    'javascript:',
    'vbscript:',
    'onclick=',
    'onerror=',
    'onload=',
    'eval(',
    'expression(',
    'data:text/html',
)
SQL_MARKERS = (
    'DROP TABLE',
    'DROP DATABASE',
    'DELETE FROM',
    'TRUNCATE ',
    'EXEC ',
    'EXECUTE ',
    'XP_',
    'SP_EXECUTESQL',
)
SPECIAL_CHARS_RATIO = 0.5

PATH_NAMES = frozenset({'source', 'image', 'imagen', 'filepath'})
PATH_TRAVERSAL_MARKERS = ('..', '\\\\', '<', '>', '|')
REMOTE_PREFIXES = ('http://', 'https://', 'avares://', 'resm:', 'pack://')
IMAGE_EXTENSIONS = frozenset({
    '.png', '.jpg', '.jpeg', '.gif', '.bmp', '.ico', '.svg', '.webp', '.tif', '.tiff',
})

RANGE_PAIRS = (
    ('minwidth', 'maxwidth'),
    ('minheight', 'maxheight'),
    ('minimum', 'maximum'),
)

DATA_CONTEXT_NAME = 'datacontext'

#: Directory of the layout file whose properties are being validated.
SOURCE_DIRECTORY: ContextVar[Path | None] = ContextVar('source_directory', default=None)


@contextmanager
def source_directory(source_file: str | None) -> 'Iterator[None]':
    """Resolve relative paths against the directory of a layout file.

    Args:
        source_file: Layout file the validated values come from. Without
            a file the current directory stays in effect.
    """
    if not source_file:
        yield
        return

    token = SOURCE_DIRECTORY.set(Path(source_file).parent)
    try:
        yield
    finally:
        SOURCE_DIRECTORY.reset(token)


class PropertyValidator(ABC):
    """Check applied to raw property values before conversion."""

    @abstractmethod
    def can_validate(self, node_type: type, name: str) -> bool:
        """Check whether the validator applies to a property.

        Args:
            node_type: Class of the node being built.
            name: Property name as written in the source.
        """

    @abstractmethod
    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        """Validate a raw value.

        Args:
            node: Node being built, with previously applied properties.
            name: Property name as written in the source.
            value: Raw value.

        Returns:
            Collected errors and warnings.
        """

    def __repr__(self) -> str:
        """String represenatation."""
        return f'{type(self).__name__}()'


class NumericRangeValidator(PropertyValidator):
    """Bounds of numeric layout properties."""

    def __init__(self) -> None:
        """Initialize with the built-in ranges."""
        self.ranges = dict(NUMERIC_RANGES)

    def set_range(self, name: str, minimum: float, maximum: float) -> None:
        """Add or override the accepted range of a property."""
        self.ranges[property_key(name)] = (minimum, maximum)

    def can_validate(self, node_type: type, name: str) -> bool:
        return property_key(name) in self.ranges

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        result = ValidationResult()
        if value is None or not value.strip():
            return result

        key = property_key(name)
        try:
            number = float(value)
        except ValueError:
            result.add_error(f'{name}: {value!r} is not a number')
            return result

        minimum, maximum = self.ranges[key]
        if not minimum <= number <= maximum:
            result.add_error(f'{name}: {number:g} is outside of [{minimum:g}, {maximum:g}]')
        elif key in LARGE_SIZE_NAMES and number > LARGE_SIZE_THRESHOLD:
            result.add_warning(f'{name}: {number:g} is unusually large')

        return result


class StringLengthValidator(PropertyValidator):
    """Length limits of text properties."""

    def __init__(self, names: 'Iterable[str]' = TEXT_NAMES, *,
                 max_length: int = TEXT_MAX_LENGTH,
                 warning_length: int = TEXT_WARNING_LENGTH) -> None:
        """Initialize a validator.

        Args:
            names: Checked property names.
            max_length: Hard limit, exceeding it is an error.
            warning_length: Soft limit, exceeding it is a warning.
        """
        self.names = frozenset(property_key(name) for name in names)
        self.max_length = max_length
        self.warning_length = warning_length

    def can_validate(self, node_type: type, name: str) -> bool:
        return property_key(name) in self.names

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        result = ValidationResult()
        if not value:
            return result

        if len(value) > self.max_length:
            result.add_error(f'{name}: text longer than {self.max_length} characters')
        elif len(value) > self.warning_length:
            result.add_warning(f'{name}: text longer than {self.warning_length} characters')

        if '\0' in value:
            result.add_error(f'{name}: text contains NUL characters')

        return result


class SecurityValidator(PropertyValidator):
    """Injection markers in any property value."""

    def can_validate(self, node_type: type, name: str) -> bool:
        return True

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        result = ValidationResult()
        if not value:
            return result

        lowered = value.casefold()
        for marker in SCRIPT_MARKERS:
            if marker in lowered:
                result.add_error(f'{name}: forbidden script pattern {marker!r}')

        upper = value.upper()
        for marker in SQL_MARKERS:
            if marker in upper:
                result.add_warning(f'{name}: suspicious SQL pattern {marker.strip()!r}')

        special = sum(1 for char in value if not char.isalnum() and not char.isspace())
        if special > len(value) * SPECIAL_CHARS_RATIO:
            result.add_warning(f'{name}: unusually high share of special characters')

        return result


class FilePathValidator(PropertyValidator):
    """Image source paths of image-like nodes.

    Relative paths are checked against `base_path` when given, otherwise
    against the directory of the layout file being built.

    Attributes:
        base_path: Directory relative paths are checked against.
    """

    def __init__(self, base_path: Path | None = None) -> None:
        """Initialize a validator."""
        self.base_path = base_path

    def can_validate(self, node_type: type, name: str) -> bool:
        return property_key(name) in PATH_NAMES and 'image' in node_type.__name__.casefold()

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        result = ValidationResult()
        if not value or not (text := value.strip()):
            return result

        if text.casefold().startswith(REMOTE_PREFIXES):
            return result

        for marker in PATH_TRAVERSAL_MARKERS:
            if marker in text:
                result.add_error(f'{name}: path contains forbidden sequence {marker!r}')
        if not result.is_valid:
            return result

        path = Path(text)
        if path.suffix.casefold() not in IMAGE_EXTENSIONS:
            result.add_warning(f'{name}: unexpected image extension {path.suffix or "(none)"!r}')

        base = self.base_path if self.base_path is not None else SOURCE_DIRECTORY.get()
        if base is not None and not path.is_absolute():
            path = base / path
        if not path.exists():
            result.add_warning(f'{name}: file {text!r} does not exist')

        return result


class RangeConsistencyValidator(PropertyValidator):
    """Cross-field check of minimum and maximum pairs.

    The new value is compared with the paired property when that one has
    already been assigned on the node instance; class-level defaults are
    not considered, so the check covers every assignment order.
    """

    def can_validate(self, node_type: type, name: str) -> bool:
        key = property_key(name)
        return any(key in pair for pair in RANGE_PAIRS)

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        result = ValidationResult()
        try:
            number = float(value or '')
        except ValueError:
            return result

        key = property_key(name)
        for low, high in RANGE_PAIRS:
            if key not in {low, high}:
                continue
            other = high if key == low else low
            if (accessor := find_accessor(node, other)) is None:
                continue
            if accessor.attribute not in getattr(node, '__dict__', {}):
                continue
            current = accessor.get(node)
            if not isinstance(current, int | float):
                continue
            if key == low and number > current:
                result.add_error(f'{name}: {number:g} is greater than {accessor.name} {current:g}')
            elif key == high and number < current:
                result.add_error(f'{name}: {number:g} is less than {accessor.name} {current:g}')

        return result


class EnumValidator(PropertyValidator):
    """Membership of values for enumeration-typed properties."""

    def __init__(self) -> None:
        """Initialize a validator."""
        self._converters = (FontWeightConverter(), EnumConverter())

    def can_validate(self, node_type: type, name: str) -> bool:
        accessor = describe(node_type).get(property_key(name))
        if accessor is None:
            return False

        target = accessor.target
        return isinstance(target, type) and issubclass(target, Enum)

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        result = ValidationResult()
        if not value:
            return result

        target = describe(type(node))[property_key(name)].target
        converter = next(item for item in self._converters if item.can_convert(target))
        try:
            converter.convert(value, target)
        except ValueError:
            names = ', '.join(member.name.title().replace('_', '') for member in target)
            result.add_error(f'{name}: {value!r} is not one of {names}')

        return result


class DataContextValidator(PropertyValidator):
    """Presence of a data context handle."""

    def can_validate(self, node_type: type, name: str) -> bool:
        return property_key(name) == DATA_CONTEXT_NAME

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        result = ValidationResult()
        if not value or not value.strip():
            result.add_warning(f'{name}: empty data context')

        return result


def default_validators() -> list[PropertyValidator]:
    """Create the built-in validators in evaluation order."""
    return [
        NumericRangeValidator(),
        StringLengthValidator(),
        SecurityValidator(),
        FilePathValidator(),
        RangeConsistencyValidator(),
        EnumValidator(),
        DataContextValidator(),
    ]
