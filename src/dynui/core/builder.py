"""Builder orchestrator.

The builder walks a forest of node descriptors depth-first and, for
every node:

1. resolves the type name through the type registry, auto-registering
   it from the configured modules on a miss;
2. creates the object through the registered zero-argument factory;
3. resolves the group data context;
4. processes properties in descriptor order: bare entries are skipped,
   `DataContext` goes to the data context resolver, `Binding:<Name>` to
   the binding applier, anything else is validated and handed to the
   first setter claiming it;
5. attaches the object to its parent and recurses into children.

Every decision is recorded in a `BuildReport`. By default problems are
reported and the build continues; with `stop_on_error` the first
unresolved type, blocked property or failed assignment raises.
"""

import asyncio
import logging
from inspect import isawaitable
from time import perf_counter
from typing import TYPE_CHECKING, Any

from dynui.binding import binding_target, store_binding
from dynui.errors import (
    BuildCancelledError,
    BuildError,
    ErrorContext,
    PropertyAssignmentError,
    PropertyValidationError,
    TypeResolutionError,
)
from dynui.nodes import property_key
from dynui.parsing import FormatDispatcher
from dynui.plugins import PluginManager
from dynui.registry import Registry
from dynui.settings import BuilderSettings
from dynui.setters import AsyncPropertySetter
from dynui.validation import source_directory

from .report import BuildReport, NodeResult, NodeState, Severity

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from dynui.binding import BindingApplier
    from dynui.descriptors import NodeDescriptor, PropertyEntry
    from dynui.parsing.base import PathLikeStr
    from dynui.registry import NodeType
    from dynui.setters import PropertySetter

logger = logging.getLogger(__name__)

#: Resolver of data context handles (group names and `DataContext` values).
type DataContextResolver = Callable[[str], Any] | Callable[[str], Awaitable[Any]]

DATA_CONTEXT_KEY = 'datacontext'
FALLBACK_WRAPPER = 'Panel'

LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

#: Marker returned for `DataContext` properties.
DATA_CONTEXT_STEP = object()


class _Session:
    """State of a single build call."""

    def __init__(self, report: BuildReport,
                 cancel: asyncio.Event | None = None) -> None:
        self.report = report
        self.cancel = cancel
        self.started = perf_counter()
        self.wrappers: dict[int, Any] = {}

    def check_cancelled(self) -> None:
        """Raise if cancellation has been requested."""
        if self.cancel is not None and self.cancel.is_set():
            raise BuildCancelledError('Build cancelled')


def _holds_children(node: Any) -> bool:  # noqa: ANN401
    """Whether a node exposes any attachment capability."""
    return any(hasattr(node, name) for name in ('add_child', 'add_item', 'set_content'))


class Builder:
    """Materializes node descriptor trees into object graphs.

    Attributes:
        registry: Types, setters, validators and converters in use.
        settings: Behavior switches.
        dispatcher: Format dispatcher used by the file entry points.
        data_context_resolver: Callback resolving data context handles;
            handles are assigned verbatim when omitted.
        binding_applier: Callback receiving `Binding:<Name>` properties.
        plugins: Plugin manager bound to the registry.
    """

    def __init__(self, registry: Registry | None = None, *,
                 settings: BuilderSettings | None = None,
                 dispatcher: FormatDispatcher | None = None,
                 data_context_resolver: DataContextResolver | None = None,
                 binding_applier: 'BindingApplier | None' = None,
                 plugins: PluginManager | None = None) -> None:
        """Initialize a builder.

        Args:
            registry: Registry to build with; a fresh one when omitted.
            settings: Behavior switches; resolved from the environment
                when omitted.
            dispatcher: Format dispatcher; the built-in formats when omitted.
            data_context_resolver: Data context handle resolver.
            binding_applier: Binding applier; bindings are stored on
                `node.bindings` when omitted.
            plugins: Plugin manager; created for the registry when omitted.
        """
        self.registry = registry if registry is not None else Registry()
        self.settings = settings if settings is not None else BuilderSettings()
        self.dispatcher = dispatcher if dispatcher is not None else FormatDispatcher()
        self.data_context_resolver = data_context_resolver
        self.binding_applier = binding_applier if binding_applier is not None else store_binding
        self.plugins = plugins if plugins is not None else PluginManager(
            self.registry,
            strict=self.settings.strict_plugins,
        )

    def build_from_file(self, container: Any, path: 'PathLikeStr') -> BuildReport:  # noqa: ANN401
        """Parse a layout file and build it into a container.

        Args:
            container: Object receiving the root nodes.
            path: Layout source file.

        Returns:
            Report of the build.

        Raises:
            FormatError: If the source cannot be parsed.
            BuildError: On the first problem when `stop_on_error` is set.
        """
        descriptors = self.dispatcher.parse_file(path)
        return self.build(container, descriptors, source=str(path))

    def build(self, container: Any, descriptors: 'Iterable[NodeDescriptor]', *,  # noqa: ANN401
              source: str | None = None) -> BuildReport:
        """Build parsed descriptors into a container.

        Args:
            container: Object receiving the root nodes.
            descriptors: Root descriptors.
            source: Source name recorded in the report.

        Returns:
            Report of the build.

        Raises:
            BuildError: On the first problem when `stop_on_error` is set.
        """
        session = _Session(BuildReport(source_file=source))

        try:
            for descriptor in descriptors:
                self._build_node(container, descriptor, session)

        except BuildError as error:
            error.report = self._close(session)
            raise

        return self._close(session)

    async def build_from_file_async(self, container: Any, path: 'PathLikeStr',  # noqa: ANN401
                                    cancel: asyncio.Event | None = None) -> BuildReport:
        """Parse a layout file and build it asynchronously.

        Args:
            container: Object receiving the root nodes.
            path: Layout source file.
            cancel: Event checked before every node and property.

        Returns:
            Report of the build.

        Raises:
            FormatError: If the source cannot be parsed.
            BuildCancelledError: If `cancel` is set during the build.
                Nodes built so far stay attached.
            BuildError: On the first problem when `stop_on_error` is set.
        """
        descriptors = await asyncio.to_thread(self.dispatcher.parse_file, path)
        return await self.build_async(container, descriptors, cancel=cancel, source=str(path))

    async def build_async(self, container: Any,  # noqa: ANN401
                          descriptors: 'Iterable[NodeDescriptor]', *,
                          cancel: asyncio.Event | None = None,
                          source: str | None = None) -> BuildReport:
        """Build parsed descriptors asynchronously.

        Asynchronous setters are awaited and the data context resolver
        may be a coroutine function.

        Args:
            container: Object receiving the root nodes.
            descriptors: Root descriptors.
            cancel: Event checked before every node and property.
            source: Source name recorded in the report.

        Returns:
            Report of the build.

        Raises:
            BuildCancelledError: If `cancel` is set during the build.
            BuildError: On the first problem when `stop_on_error` is set.
        """
        session = _Session(BuildReport(source_file=source), cancel)

        try:
            for descriptor in descriptors:
                await self._build_node_async(container, descriptor, session)

        except BuildError as error:
            error.report = self._close(session)
            raise

        return self._close(session)

    def _build_node(self, parent: Any, descriptor: 'NodeDescriptor',  # noqa: ANN401
                    session: _Session) -> None:
        """Build one node and its subtree synchronously."""
        session.check_cancelled()

        if (created := self._create(descriptor, session)) is None:
            return
        node, result = created

        group_context = None
        if descriptor.group_name:
            group_context = self._resolved(
                self._resolve_handle(descriptor.group_name, descriptor, session),
                descriptor,
                session,
            )

        node_context = None
        for entry in descriptor.properties:
            session.check_cancelled()
            step = self._prepare(node, descriptor, entry, result, session)
            if step is DATA_CONTEXT_STEP:
                node_context = self._resolved(
                    self._resolve_handle(entry.raw_value, descriptor, session),
                    descriptor,
                    session,
                )
                result.applied += 1
            elif step is not None:
                try:
                    step.apply(node, entry.name, entry.raw_value,
                               conversion=self.registry.conversion)
                except Exception as base:  # noqa: BLE001
                    self._setter_failed(base, descriptor, entry, result, session)
                else:
                    result.applied += 1

        if self._finish(parent, node, group_context, node_context, descriptor, result, session):
            for child in descriptor.children:
                self._build_node(node, child, session)

    async def _build_node_async(self, parent: Any, descriptor: 'NodeDescriptor',  # noqa: ANN401
                                session: _Session) -> None:
        """Build one node and its subtree asynchronously."""
        session.check_cancelled()

        if (created := self._create(descriptor, session)) is None:
            return
        node, result = created

        group_context = None
        if descriptor.group_name:
            group_context = await self._awaited(
                self._resolve_handle(descriptor.group_name, descriptor, session),
                descriptor,
                session,
            )

        node_context = None
        for entry in descriptor.properties:
            session.check_cancelled()
            step = self._prepare(node, descriptor, entry, result, session)
            if step is DATA_CONTEXT_STEP:
                node_context = await self._awaited(
                    self._resolve_handle(entry.raw_value, descriptor, session),
                    descriptor,
                    session,
                )
                result.applied += 1
            elif step is not None:
                try:
                    if isinstance(step, AsyncPropertySetter):
                        await step.apply_async(node, entry.name, entry.raw_value,
                                               conversion=self.registry.conversion)
                    else:
                        step.apply(node, entry.name, entry.raw_value,
                                   conversion=self.registry.conversion)
                except Exception as base:  # noqa: BLE001
                    self._setter_failed(base, descriptor, entry, result, session)
                else:
                    result.applied += 1

        attached = self._finish(parent, node, group_context, node_context,
                                descriptor, result, session)

        await asyncio.sleep(0)

        if attached:
            for child in descriptor.children:
                await self._build_node_async(node, child, session)

    def _create(self, descriptor: 'NodeDescriptor',
                session: _Session) -> tuple[Any, NodeResult] | None:
        """Resolve the type and create the object of a node."""
        result = NodeResult(type_name=descriptor.type_name, source_file=descriptor.source_file)
        session.report.nodes.append(result)

        if (node_type := self._resolve_type(descriptor.type_name, descriptor, session)) is None:
            result.state = NodeState.FAILED
            message = f'Unknown type {descriptor.type_name!r}'
            self._emit(session, Severity.ERROR, message, descriptor)
            if self.settings.stop_on_error:
                raise TypeResolutionError(message, context=self._context(descriptor))
            self._skip_children(descriptor, session, 'parent type is unknown')
            return None

        try:
            node = node_type.create()

        except Exception as base:
            result.state = NodeState.FAILED
            message = f'Cannot create {descriptor.type_name!r}: {base}'
            self._emit(session, Severity.ERROR, message, descriptor)
            if self.settings.stop_on_error:
                raise TypeResolutionError(message, context=self._context(descriptor)) from base
            self._skip_children(descriptor, session, 'parent could not be created')
            return None

        return node, result

    def _resolve_type(self, name: str, descriptor: 'NodeDescriptor',
                      session: _Session) -> 'NodeType | None':
        """Look up a type, auto-registering it when enabled."""
        types = self.registry.types

        if (node_type := types.resolve(name)) is not None:
            return node_type

        if not self.settings.auto_register:
            return None

        if (node_type := types.auto_register(name, self.settings.auto_register_modules)) is not None:
            self._emit(session, Severity.INFO,
                       f'Auto-registered type {node_type.name!r}', descriptor)

        return node_type

    def _prepare(self, node: Any, descriptor: 'NodeDescriptor',  # noqa: ANN401
                 entry: 'PropertyEntry', result: NodeResult,
                 session: _Session) -> 'PropertySetter | object | None':
        """Run everything that precedes an assignment.

        Returns:
            The setter to apply, `DATA_CONTEXT_STEP` for a data context
            handle, or `None` if the property has been fully handled.
        """
        name = entry.name
        if not name:
            result.skipped += 1
            return None

        if entry.raw_value is None:
            self._emit(session, Severity.WARNING, 'Property has no value', descriptor, name)
            result.skipped += 1
            return None

        if (target := binding_target(name)) is not None:
            self._bind(node, target, entry, descriptor, result, session)
            return None

        if self.settings.validate_properties:
            with source_directory(descriptor.source_file):
                validation = self.registry.validation.validate(node, name, entry.raw_value)
            for warning in validation.warnings:
                self._emit(session, Severity.WARNING, warning, descriptor, name)
            if not validation.is_valid:
                result.blocked += 1
                for error in validation.errors:
                    self._emit(session, Severity.ERROR, error, descriptor, name)
                if self.settings.stop_on_error:
                    raise PropertyValidationError(
                        f'Property {name!r} rejected by validation: {'; '.join(validation.errors)}',
                        errors=validation.errors,
                        context=self._context(descriptor, name),
                    )
                return None

        if property_key(name) == DATA_CONTEXT_KEY:
            if not entry.raw_value.strip():
                result.skipped += 1
                return None
            return DATA_CONTEXT_STEP

        if (setter := self.registry.setters.find(node, name)) is None:
            self._emit(session, Severity.WARNING, 'No setter handles the property',
                       descriptor, name)
            result.skipped += 1
            return None

        return setter

    def _bind(self, node: Any, target: str, entry: 'PropertyEntry',  # noqa: ANN401
              descriptor: 'NodeDescriptor', result: NodeResult,
              session: _Session) -> None:
        """Hand a `Binding:<Name>` property to the binding applier."""
        try:
            self.binding_applier(node, target, entry.raw_value)

        except Exception as base:  # noqa: BLE001
            self._setter_failed(base, descriptor, entry, result, session)

        else:
            result.applied += 1

    def _setter_failed(self, error: Exception, descriptor: 'NodeDescriptor',
                       entry: 'PropertyEntry', result: NodeResult,
                       session: _Session) -> None:
        """Report a failed assignment, raising in stop-on-error mode."""
        result.failed += 1
        message = f'Cannot set value {entry.raw_value!r}: {error}'

        self._emit(session, Severity.ERROR, message, descriptor, entry.name)

        if self.settings.stop_on_error:
            raise PropertyAssignmentError(
                message,
                context=self._context(descriptor, entry.name),
            ) from error

    def _resolve_handle(self, handle: str, descriptor: 'NodeDescriptor',
                        session: _Session) -> Any:  # noqa: ANN401
        """Call the data context resolver; failures are only reported."""
        if self.data_context_resolver is None:
            return handle

        try:
            return self.data_context_resolver(handle)

        except Exception as base:  # noqa: BLE001
            self._emit(session, Severity.WARNING,
                       f'Data context {handle!r} could not be resolved: {base}', descriptor)
            return None

    def _resolved(self, value: Any, descriptor: 'NodeDescriptor',  # noqa: ANN401
                  session: _Session) -> Any:  # noqa: ANN401
        """Reject awaitable resolver results in synchronous builds."""
        if not isawaitable(value):
            return value

        if close := getattr(value, 'close', None):
            close()
        self._emit(session, Severity.WARNING,
                   'Asynchronous data context resolver used in a synchronous build',
                   descriptor)

        return None

    async def _awaited(self, value: Any, descriptor: 'NodeDescriptor',  # noqa: ANN401
                       session: _Session) -> Any:  # noqa: ANN401
        """Await resolver results in asynchronous builds."""
        if not isawaitable(value):
            return value

        try:
            return await value

        except Exception as base:  # noqa: BLE001
            self._emit(session, Severity.WARNING,
                       f'Data context could not be resolved: {base}', descriptor)
            return None

    def _finish(self, parent: Any, node: Any, group_context: Any,  # noqa: ANN401, PLR0913
                node_context: Any, descriptor: 'NodeDescriptor',  # noqa: ANN401
                result: NodeResult, session: _Session) -> bool:
        """Assign the data context, attach the node and check its children.

        A node the parent cannot take is reported as skipped together
        with its subtree.

        Returns:
            True if the children of the node should be built.
        """
        if (context := node_context if node_context is not None else group_context) is not None:
            try:
                node.data_context = context
            except (AttributeError, TypeError) as base:
                self._emit(session, Severity.WARNING,
                           f'Data context cannot be assigned: {base}', descriptor)

        if not self._attach(parent, node, descriptor, session):
            result.state = NodeState.SKIPPED
            self._skip_children(descriptor, session, 'parent node was dropped')
            return False

        if descriptor.children and not _holds_children(node):
            self._skip_children(descriptor, session, f'{type(node).__name__} cannot hold children')
            return False

        return True

    def _attach(self, parent: Any, child: Any,  # noqa: ANN401
                descriptor: 'NodeDescriptor', session: _Session) -> bool:
        """Attach a node using the parent attachment capability."""
        if hasattr(parent, 'add_child'):
            parent.add_child(child)
            return True

        if hasattr(parent, 'add_item'):
            parent.add_item(child)
            return True

        if hasattr(parent, 'set_content'):
            current = getattr(parent, 'content', None)

            if (wrapper := session.wrappers.get(id(parent))) is not None and current is wrapper:
                wrapper.add_child(child)
                return True

            if current is None or isinstance(current, str):
                if current:
                    self._emit(session, Severity.WARNING,
                               f'Child replaces text content of {type(parent).__name__}',
                               descriptor)
                parent.set_content(child)
                return True

            if (wrapper := self._create_wrapper(descriptor, session)) is None:
                self._emit(session, Severity.ERROR,
                           f'{type(parent).__name__} already has content '
                           'and no wrapper container is available', descriptor)
                return False

            parent.set_content(wrapper)
            wrapper.add_child(current)
            wrapper.add_child(child)
            session.wrappers[id(parent)] = wrapper
            self._emit(session, Severity.WARNING,
                       f'{type(parent).__name__} holds a single child; content wrapped '
                       f'in {type(wrapper).__name__}', descriptor)
            return True

        self._emit(session, Severity.WARNING,
                   f'{type(parent).__name__} cannot hold children; node dropped', descriptor)

        return False

    def _create_wrapper(self, descriptor: 'NodeDescriptor',
                        session: _Session) -> Any:  # noqa: ANN401
        """Create the ordered container used for auto-wrapping."""
        for name in dict.fromkeys((self.settings.wrapper_type, FALLBACK_WRAPPER)):
            if (node_type := self._resolve_type(name, descriptor, session)) is None:
                continue
            try:
                wrapper = node_type.create()
            except Exception:  # noqa: BLE001
                logger.debug('Wrapper %r cannot be created', name, exc_info=True)
                continue
            if hasattr(wrapper, 'add_child'):
                return wrapper

        return None

    def _skip_children(self, descriptor: 'NodeDescriptor', session: _Session,
                       reason: str) -> None:
        """Record the subtree below a node as skipped."""
        skipped = 0
        for child in descriptor.children:
            for node in child.walk():
                session.report.nodes.append(NodeResult(
                    type_name=node.type_name,
                    state=NodeState.SKIPPED,
                    source_file=node.source_file,
                ))
                skipped += 1

        if skipped:
            self._emit(session, Severity.WARNING,
                       f'Skipped {skipped} descendant node(s): {reason}', descriptor)

    def _emit(self, session: _Session, severity: Severity, message: str,
              descriptor: 'NodeDescriptor', name: str | None = None) -> None:
        """Record a diagnostic and log it."""
        session.report.add(
            severity,
            message,
            type_name=descriptor.type_name,
            property=name,
            source_file=descriptor.source_file,
        )

        where = descriptor.type_name if name is None else f'{descriptor.type_name}.{name}'
        logger.log(LOG_LEVELS[severity], '%s: %s', where, message)

    @staticmethod
    def _context(descriptor: 'NodeDescriptor', name: str | None = None) -> ErrorContext:
        """Error context of a node or property."""
        return ErrorContext(
            filename=descriptor.source_file,
            type_name=descriptor.type_name,
            property=name,
        )

    def _close(self, session: _Session) -> BuildReport:
        """Complete a report with timing and registry statistics."""
        report = session.report
        counts = self.registry.counts()

        report.duration = perf_counter() - session.started
        report.plugins = self.plugins.infos()
        report.setters = counts['setters']
        report.validators = counts['validators']
        report.converters = counts['converters']

        return report
