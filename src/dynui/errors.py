"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report malformed layout sources, unresolved node types, blocked or
failed property assignments, conversion failures and plugin issues in a
structured and extensible way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump
from yaml.error import MarkedYAMLError

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint
    from typing import Self

if TYPE_CHECKING:
    from json import JSONDecodeError
    from xml.etree.ElementTree import ParseError as XMLParseError

    from pydantic import ValidationError

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

SCALARS = (str, bytes, int, float, bool)
MAPPINGS = (dict,)
SEQUENCES = (list, tuple)

FORMAT_REPLACER = '<runtime object>'
FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    This structure aggregates optional metadata that may be available
    at different stages of parsing, validation or building.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Zero-based line number in the source file.
    line_num: int | None
    #: Zero-based column number in the source file.
    column_num: int | None

    #: Type name of the node being processed.
    type_name: str | None
    #: Name of the property being processed.
    property: str | None

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Source element associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting layout-related errors.

    This formatter is responsible for producing human-readable
    error messages with optional source location and YAML-based
    contextual snippets.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source and node location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line,
            column, node type and property name when available.
        """
        indent = cls._ensure_indent(indent)

        filename = context.get('filename')
        if not filename:
            filename = FORMAT_FILENAME

        message = f'{indent}in "{filename}"'
        if (line_num := context.get('line_num')) is not None:
            line_num += 1
            message += f', line {line_num}'
            if (column_num := context.get('column_num')) is not None:
                column_num += 1
                message += f', column {column_num}'
        message += linesep

        if type_name := context.get('type_name'):
            message += f'{indent}on node {type_name!r}'
            if name := context.get('property'):
                message += f', property {name!r}'
            message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing element or exception data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (error := context.get('error')) and isinstance(error, MarkedYAMLError):
            if error.problem_mark is not None:
                snippet = error.problem_mark.get_snippet(indent=0) or ''
                return cls._make_indent(snippet, indent)

        if element := context.get('element'):
            snippet = f'{indent}{SNIPPET_ELLIPSIS}'
            snippet += cls._make_yaml(element, indent)
            return snippet + linesep

        return ''

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, MAPPINGS):
            return {
                key: cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [
                cls._filter_unsafe(item)
                for item in value
            ]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            allow_unicode=True,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.

        Args:
            value: Original multi-line string.
            indent: Indentation prefix.

        Returns:
            Indented string.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input.

        Args:
            indent: Indentation as string or number of spaces.

        Returns:
            A string consisting of spaces or the provided string.
        """
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class PluginWarning(UserWarning):
    """Warning emitted for non-fatal plugin-related issues.

    This warning is used when a plugin cannot be loaded, is loaded twice,
    or cannot be unloaded, but the issue does not prevent further
    execution (for example, when running in non-strict mode).
    """


class DynUIError(Exception, ErrorFormatter):
    """Base exception for all dynui errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String represenatation."""
        return self.format(self.message, self.context)


class FormatError(DynUIError):
    """Error raised when a whole layout source cannot be read.

    The source is missing, unreadable or syntactically invalid for the
    format that claimed it. Format errors abort the build of that source.
    """

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError,
                        filename: str | None = None) -> 'Self':
        """Create a format error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Name of the source file.

        Returns:
            FormatError representing the YAML parsing failure.
        """
        mark = error.problem_mark
        error_context = ErrorContext(
            filename=filename or (mark.name if mark else None),
            line_num=mark.line if mark else None,
            column_num=mark.column if mark else None,
            error=error,
        )

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{' ' * FORMAT_INDENT}{error.problem}'

        return cls(message, context=error_context)

    @classmethod
    def from_json_error(cls, error: 'JSONDecodeError',
                        filename: str | None = None) -> 'Self':
        """Create a format error from a JSON decoding failure.

        Args:
            error: Exception raised by the JSON decoder.
            filename: Name of the source file.

        Returns:
            FormatError representing the JSON decoding failure.
        """
        error_context = ErrorContext(
            filename=filename,
            line_num=error.lineno - 1,
            column_num=error.colno - 1,
            error=error,
        )

        return cls(f'Invalid JSON{linesep}{' ' * FORMAT_INDENT}{error.msg}',
                   context=error_context)

    @classmethod
    def from_xml_error(cls, error: 'XMLParseError',
                       filename: str | None = None) -> 'Self':
        """Create a format error from an XML parsing failure.

        Args:
            error: Exception raised by the XML parser.
            filename: Name of the source file.

        Returns:
            FormatError representing the XML parsing failure.
        """
        line, column = getattr(error, 'position', (None, None))
        error_context = ErrorContext(
            filename=filename,
            line_num=line - 1 if line else None,
            column_num=column,
            error=error,
        )

        return cls(f'Invalid XML{linesep}{' ' * FORMAT_INDENT}{error}',
                   context=error_context)

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None) -> 'Self':
        """Create a format error from a document schema violation.

        The message reports the first failing location, the snippet
        shows the smallest fragment of the document containing it.

        Args:
            error: ValidationError raised by Pydantic.
            data: Decoded document data.
            filename: Name of the source file.

        Returns:
            FormatError representing the validation failure.
        """
        error_context = ErrorContext(filename=filename, error=error)

        details = error.errors(include_url=False, include_input=False)
        if not details or not isinstance(data, dict):
            return cls('Invalid document structure', context=error_context)

        detail = details[0]
        location = '.'.join(str(key) for key in detail['loc'])

        element = data
        for key in detail['loc']:
            if isinstance(element, dict) and key in element:
                element = element[key]
            elif isinstance(element, list) and isinstance(key, int) and 0 <= key < len(element):
                element = element[key]
            else:
                break

        if element is not data and isinstance(element, MAPPINGS + SEQUENCES):
            error_context['element'] = element

        message = f'Invalid document structure{linesep}{' ' * FORMAT_INDENT}'
        message += f'{location}: {detail['msg']}' if location else detail['msg']

        return cls(message, context=error_context)


class UnsupportedFormatError(FormatError):
    """Error raised when no registered parser claims a source."""


class ParseError(DynUIError):
    """Error raised for a single malformed line or element.

    Parsers log these errors and skip the offending line or element;
    the rest of the source is still parsed.
    """


class ConversionError(DynUIError):
    """Error raised when a raw string cannot be converted to a type."""

    def __init__(self, message: str, *,
                 value: str | None = None,
                 target: Any = None,  # noqa: ANN401
                 context: ErrorContext | None = None) -> None:
        """Initialize a conversion error.

        Args:
            message: Human-readable error description.
            value: Raw value that failed to convert.
            target: Target type of the conversion.
            context: Error context containing optional location values.
        """
        self.value = value
        self.target = target

        super().__init__(message, context=context)


class PluginError(DynUIError):
    """Error raised for fatal plugin-related failures.

    This exception is raised when a plugin fails to initialize, or when
    an entry point is invalid, misconfigured or fails to load in strict
    mode.
    """

    def __init__(self, message: str, *,
                 plugin: str | None = None,
                 entrypoint: 'EntryPoint | None' = None) -> None:
        """Initialize a plugin error.

        Args:
            message: Human-readable error description.
            plugin: Name of the plugin associated with the error.
            entrypoint: Optional plugin entry point associated with the error.
        """
        self.plugin = plugin
        self.entrypoint = entrypoint

        super().__init__(message)


class BuildError(DynUIError):
    """Base error for failures while materializing a node tree.

    Attributes:
        report: Build report collected up to the failure, when raised
            out of a builder.
    """

    report: Any = None


class TypeResolutionError(BuildError):
    """Error raised when a node type name cannot be resolved."""


class PropertyValidationError(BuildError):
    """Error raised when validation blocks a property in stop-on-error mode."""

    def __init__(self, message: str, *,
                 errors: list[str] | None = None,
                 context: ErrorContext | None = None) -> None:
        """Initialize a validation error.

        Args:
            message: Human-readable error description.
            errors: Validation messages that blocked the assignment.
            context: Error context containing optional location values.
        """
        self.errors = list(errors or ())

        super().__init__(message, context=context)


class PropertyAssignmentError(BuildError):
    """Error raised when a setter fails in stop-on-error mode."""


class BuildCancelledError(BuildError):
    """Error raised when an asynchronous build observes cancellation.

    Nodes built before cancellation stay attached to their parents.
    """
