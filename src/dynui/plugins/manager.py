"""Plugin lifecycle management.

Plugins are loaded through a tracked registration context. Whatever a
plugin registers is recorded, and unloading reverses exactly that
record, so loading and then unloading a plugin leaves the registry as
it was before.

Plugins may also be discovered through the `dynui_plugins` entry point
group. An invalid entry point produces a
`PluginWarning` unless strict mode is enabled, in which case it raises
`PluginError`.
"""

import logging
from threading import RLock
from typing import TYPE_CHECKING
from warnings import warn

from dynui.errors import PluginError, PluginWarning

from .base import Plugin
from .context import PluginContext, TrackedPluginContext
from .records import PluginInfo, PluginRegistration

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint

    from dynui.registry import Registry

logger = logging.getLogger(__name__)

PLUGINS_GROUP = 'dynui_plugins'
PLUGIN_LOGGER_PREFIX = 'dynui.plugins'


class PluginManager:
    """Loads, tracks and unloads plugins of a registry.

    Attributes:
        registry: Registry plugins register into.
        strict_mode: If True, entry point issues raise an error.
            If False, issues are emitted as warnings and loading continues.
    """

    def __init__(self, registry: 'Registry', *, strict: bool = False) -> None:
        """Initialize a manager.

        Args:
            registry: Registry plugins register into.
            strict: Raise on entry point issues instead of warning.
        """
        self.registry = registry
        self.strict_mode = strict

        self._lock = RLock()
        self._plugins: dict[str, tuple[Plugin, PluginRegistration]] = {}

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._plugins

    @property
    def names(self) -> list[str]:
        """Names of loaded plugins in load order."""
        with self._lock:
            return list(self._plugins)

    def get(self, name: str) -> Plugin | None:
        """Return a loaded plugin by name."""
        with self._lock:
            item = self._plugins.get(name)

        return item[0] if item else None

    def registration(self, name: str) -> PluginRegistration | None:
        """Return the registration record of a loaded plugin."""
        with self._lock:
            item = self._plugins.get(name)

        return item[1] if item else None

    def info(self, name: str) -> PluginInfo | None:
        """Summarize a loaded plugin."""
        with self._lock:
            item = self._plugins.get(name)

        return PluginInfo.from_registration(*item) if item else None

    def infos(self) -> list[PluginInfo]:
        """Summaries of all loaded plugins in load order."""
        with self._lock:
            items = list(self._plugins.values())

        return [PluginInfo.from_registration(*item) for item in items]

    def load(self, plugin: Plugin) -> bool:
        """Initialize a plugin and record its registrations.

        Loading a plugin whose name is already loaded emits a
        `PluginWarning` and changes nothing.

        Args:
            plugin: Plugin to load.

        Returns:
            True if the plugin has been loaded.

        Raises:
            PluginError: If the plugin fails to initialize. Registrations
                made before the failure are reverted.
        """
        with self._lock:
            if plugin.name in self._plugins:
                warn(f'Plugin {plugin.name!r} is already loaded',
                     category=PluginWarning, stacklevel=2)
                return False

            registration = PluginRegistration(plugin_name=plugin.name)
            context = TrackedPluginContext(
                PluginContext(
                    self.registry,
                    logging.getLogger(f'{PLUGIN_LOGGER_PREFIX}.{plugin.name}'),
                ),
                registration,
                self.registry.types.resolve,
            )

            try:
                plugin.initialize(context)

            except Exception as base:
                logger.error('Plugin %r failed to initialize: %s', plugin.name, base)
                self._revert(registration)
                raise PluginError(
                    f'Plugin {plugin.name!r} failed to initialize: {base}',
                    plugin=plugin.name,
                ) from base

            self._plugins[plugin.name] = (plugin, registration)

        logger.info('Loaded plugin %s %s', plugin.name, plugin.version)

        return True

    def unload(self, name: str) -> bool:
        """Shut a plugin down and revert its registrations.

        Cleanup callbacks run first (latest first), then `shutdown`.
        Registrations are reverted even when one of them fails.

        Args:
            name: Name of a loaded plugin.

        Returns:
            True if the plugin has been unloaded cleanly, False if it is
            not loaded or if its cleanup or shutdown failed.
        """
        with self._lock:
            item = self._plugins.pop(name, None)
            if item is None:
                logger.warning('Plugin %r is not loaded', name)
                return False

            plugin, registration = item
            clean = True

            try:
                for cleanup in reversed(registration.cleanups):
                    cleanup()
                plugin.shutdown()

            except Exception:
                logger.exception('Plugin %r failed to shut down', name)
                clean = False

            try:
                self._revert(registration)

            except Exception:
                logger.exception('Plugin %r registrations could not be reverted', name)
                clean = False

        logger.info('Unloaded plugin %s', name)

        return clean

    def unload_all(self) -> bool:
        """Unload every plugin, latest first.

        Returns:
            True if every plugin has been unloaded cleanly.
        """
        results = [self.unload(name) for name in reversed(self.names)]

        return all(results)

    def _revert(self, registration: PluginRegistration) -> None:
        """Reverse a registration record."""
        types = self.registry.types

        for item in reversed(registration.types):
            current = types.resolve(item.name)
            if current is not None and current is not item.node_type:
                logger.warning('Type %r was replaced after %r registered it; kept',
                               item.name, registration.plugin_name)
                continue
            if item.previous is not None:
                types.restore(item.previous)
            else:
                types.unregister(item.name)

        for setter in registration.setters:
            self.registry.setters.remove(setter)

        for validator in registration.validators:
            self.registry.validation.remove(validator)

        for converter in registration.converters:
            self.registry.conversion.remove(converter)

    def emit_plugin_issue(self, message: str,
                          entrypoint: 'EntryPoint | None' = None) -> Exception | None:
        """Emit a plugin warning or return the exception.

        Args:
            message: Warning message to emit.
            entrypoint: Entry point the plugin was loaded from, if applicable.

        Returns:
            PluginError on strict mode, otherwise `None`
                with producing a PluginWarning.
        """
        if self.strict_mode:
            return PluginError(message, entrypoint=entrypoint)

        warn(message, category=PluginWarning, stacklevel=2)

        return None

    def _load_entrypoint(self, entrypoint: 'EntryPoint') -> None:
        """Load and initialize a single plugin entry point.

        The entry point may reference a `Plugin` instance or a `Plugin`
        subclass constructible without arguments.

        Args:
            entrypoint: Entry point describing the plugin to load.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        try:
            plugin = entrypoint.load()
            if isinstance(plugin, type) and issubclass(plugin, Plugin):
                plugin = plugin()

        except Exception as base:
            if error := self.emit_plugin_issue(
                f'Failed to load entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return

        if not isinstance(plugin, Plugin):
            if error := self.emit_plugin_issue(
                f'Loaded from entrypoint {entrypoint.name!r} object is not a plugin',
                entrypoint,
            ):
                raise error
            return

        try:
            self.load(plugin)

        except PluginError as base:
            if error := self.emit_plugin_issue(
                f'Plugin from entrypoint {entrypoint.name!r} failed to initialize',
                entrypoint,
            ):
                raise error from base

    def load_entrypoints(self, group: str = PLUGINS_GROUP) -> list[str]:
        """Discover and load plugins via entry points.

        Args:
            group: Entry point group to scan.

        Returns:
            Names of the plugins loaded by this call.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        from importlib.metadata import entry_points  # noqa: PLC0415

        before = set(self.names)
        for entrypoint in entry_points().select(group=group):
            self._load_entrypoint(entrypoint)

        return [name for name in self.names if name not in before]
