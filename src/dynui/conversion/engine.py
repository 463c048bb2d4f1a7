"""Type conversion engine.

The engine keeps an ordered list of converters, the most recently
registered first, and caches which converter serves a target type. The
cache is cleared under the same lock that mutates the list, so a lookup
never returns a converter that has been removed.

Targets that no converter claims fall back to a Pydantic `TypeAdapter`,
which covers dates, UUIDs, paths, literals and models given as JSON.
"""

import logging
from decimal import Decimal
from enum import Enum
from functools import cache
from threading import RLock
from types import NoneType, UnionType
from typing import TYPE_CHECKING, Any, Union, get_args, get_origin

from pydantic import TypeAdapter, ValidationError
from pydantic_core import from_json

from dynui.errors import ConversionError

from .converters import default_converters

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .converters import ValueConverter

logger = logging.getLogger(__name__)

ZERO_VALUES: dict[Any, Any] = {
    str: '',
    int: 0,
    float: 0.0,
    bool: False,
    complex: 0j,
    Decimal: Decimal(0),
}

#: Cache marker for targets served by the structural fallback.
FALLBACK = object()


def unwrap_optional(target: Any) -> Any:  # noqa: ANN401
    """Reduce `T | None` and `Optional[T]` to `T`.

    Unions of several non-`None` members are returned unchanged.
    """
    if get_origin(target) in {Union, UnionType}:
        members = [member for member in get_args(target) if member is not NoneType]
        if len(members) == 1:
            return members[0]

    return target


def zero_value(target: Any) -> Any:  # noqa: ANN401
    """Return the zero value of a type.

    Primitives map to their zero, enumerations to their first member and
    other classes to an instance built without arguments when possible;
    anything else yields `None`.
    """
    if target in ZERO_VALUES:
        return ZERO_VALUES[target]

    if isinstance(target, type) and issubclass(target, Enum):
        return next(iter(target), None)

    if isinstance(target, type):
        try:
            return target()
        except (TypeError, ValueError, ValidationError):
            return None

    return None


@cache
def _adapter(target: Any) -> TypeAdapter[Any]:  # noqa: ANN401
    """Build (once) a Pydantic adapter for a fallback target."""
    return TypeAdapter(target)


class TypeConversionEngine:
    """Ordered, cached chain of value converters."""

    def __init__(self, converters: 'Iterable[ValueConverter] | None' = None) -> None:
        """Initialize an engine.

        Args:
            converters: Initial converters in priority order; the
                built-in set when omitted.
        """
        self._lock = RLock()
        self._converters = list(default_converters() if converters is None else converters)
        self._cache: dict[Any, Any] = {}

    @property
    def converters(self) -> tuple['ValueConverter', ...]:
        """Registered converters in priority order."""
        with self._lock:
            return tuple(self._converters)

    def register(self, converter: 'ValueConverter') -> None:
        """Register a converter ahead of all existing ones."""
        with self._lock:
            self._converters.insert(0, converter)
            self._cache.clear()

    def remove(self, converter: 'ValueConverter') -> bool:
        """Remove a converter.

        Returns:
            True if the converter was registered.
        """
        with self._lock:
            if converter not in self._converters:
                return False
            self._converters.remove(converter)
            self._cache.clear()
            return True

    def find(self, target: Any) -> 'ValueConverter | None':  # noqa: ANN401
        """Return the converter serving a target type, if any."""
        with self._lock:
            try:
                converter = self._cache.get(target)
            except TypeError:
                converter = None
                cacheable = False
            else:
                cacheable = True

            if converter is None:
                converter = next(
                    (item for item in self._converters if item.can_convert(target)),
                    FALLBACK,
                )
                if cacheable:
                    self._cache[target] = converter

        return None if converter is FALLBACK else converter

    def can_convert(self, target: Any) -> bool:  # noqa: ANN401
        """Check whether a dedicated converter serves a target type."""
        return self.find(unwrap_optional(target)) is not None

    def convert(self, value: str | None, target: Any) -> Any:  # noqa: ANN401
        """Convert a raw string to a target type.

        Args:
            value: Raw value; `None` and empty strings yield the zero value.
            target: Target type, optionally wrapped in `Optional`.

        Returns:
            Converted value.

        Raises:
            ConversionError: If the value cannot be converted.
        """
        target = unwrap_optional(target)

        if value is None or value == '':
            return zero_value(target)

        if target is Any or target is object:
            return value

        if (converter := self.find(target)) is not None:
            try:
                return converter.convert(value, target)

            except ConversionError:
                raise

            except (ValueError, TypeError, ArithmeticError, ValidationError) as base:
                raise ConversionError(
                    f'Cannot convert {value!r} to {_type_name(target)}: {base}',
                    value=value,
                    target=target,
                ) from base

        return self._fallback(value, target)

    @staticmethod
    def _fallback(value: str, target: Any) -> Any:  # noqa: ANN401
        """Convert through a Pydantic adapter, trying JSON for structures."""
        try:
            adapter = _adapter(target)
        except TypeError as base:
            raise ConversionError(
                f'No converter available for {_type_name(target)}',
                value=value,
                target=target,
            ) from base

        try:
            return adapter.validate_python(value)

        except ValidationError as base:
            error = base

        try:
            return adapter.validate_python(from_json(value))

        except (ValueError, ValidationError):
            pass

        raise ConversionError(
            f'Cannot convert {value!r} to {_type_name(target)}',
            value=value,
            target=target,
        ) from error


def _type_name(target: Any) -> str:  # noqa: ANN401
    """Readable name of a target type."""
    return getattr(target, '__name__', None) or str(target)
