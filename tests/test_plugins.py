"""Tests for plugin loading, tracking and unloading."""

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from dynui.errors import PluginError, PluginWarning
from dynui.plugins import Plugin, PluginManager, RegistrationContext, TrackedPluginContext
from dynui.registry import Registry
from dynui.widgets import Button
from tests.examples.plugins import (
    Badge,
    BrokenShutdownPlugin,
    ExamplePlugin,
    FailingPlugin,
    FancyButton,
    ShadowingPlugin,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from pytest_mock import MockType


def _snapshot(registry: Registry) -> tuple:
    """Identity snapshot of every registry member."""
    return (
        registry.types.entries(),
        registry.setters.setters,
        registry.validation.validators,
        registry.conversion.converters,
    )


def test_load_and_unload(registry: Registry) -> None:
    """Verify that unloading reverts exactly what a plugin registered."""
    manager = PluginManager(registry)
    before = _snapshot(registry)
    plugin = ExamplePlugin()

    assert manager.load(plugin)
    assert 'example' in manager
    assert manager.get('example') is plugin
    assert registry.types.resolve('badge').cls is Badge
    assert registry.conversion.convert('00:01:00', timedelta) == timedelta(minutes=1)

    info = manager.info('example')
    assert info.version == '1.2.0'
    assert (info.types, info.setters, info.validators, info.converters) == (1, 1, 1, 1)
    assert info.type_names == ('Badge',)

    assert manager.unload('example')
    assert plugin.cleaned
    assert plugin.stopped
    assert 'example' not in manager
    assert _snapshot(registry) == before


def test_unload_restores_shadowed_type(registry: Registry) -> None:
    """Verify that a replaced type comes back on unload."""
    registry.types.register('Button', Button)
    original = registry.types.resolve('Button')
    manager = PluginManager(registry)

    manager.load(ShadowingPlugin())
    assert registry.types.resolve('button').cls is FancyButton

    registration = manager.registration('shadowing')
    assert registration.types[0].previous is original

    assert manager.unload('shadowing')
    assert registry.types.resolve('Button') is original


def test_unload_keeps_later_replacement(registry: Registry,
                                        caplog: pytest.LogCaptureFixture) -> None:
    """Verify that a type replaced after the plugin loaded is kept."""
    manager = PluginManager(registry)
    manager.load(ExamplePlugin())

    registry.types.register('Badge', FancyButton)
    replacement = registry.types.resolve('Badge')

    assert manager.unload('example')
    assert registry.types.resolve('Badge') is replacement
    assert 'was replaced after' in caplog.text


def test_duplicate_load(registry: Registry) -> None:
    """Verify that loading a plugin name twice only warns."""
    manager = PluginManager(registry)
    manager.load(ExamplePlugin())
    before = _snapshot(registry)

    with pytest.warns(PluginWarning, match=r"^Plugin 'example' is already loaded"):
        assert not manager.load(ExamplePlugin())

    assert _snapshot(registry) == before


def test_initialize_failure_rolls_back(registry: Registry) -> None:
    """Verify that a failing plugin leaves no registrations behind."""
    manager = PluginManager(registry)
    before = _snapshot(registry)

    with pytest.raises(PluginError, match=r"^Plugin 'failing' failed to initialize: backend") as error:
        manager.load(FailingPlugin())

    assert error.value.plugin == 'failing'
    assert isinstance(error.value.__cause__, RuntimeError)
    assert 'failing' not in manager
    assert _snapshot(registry) == before


def test_shutdown_failure(registry: Registry) -> None:
    """Verify that a failing shutdown still reverts registrations."""
    manager = PluginManager(registry)
    before = _snapshot(registry)

    manager.load(BrokenShutdownPlugin())

    assert not manager.unload('broken')
    assert 'broken' not in manager
    assert _snapshot(registry) == before


def test_unload_unknown(registry: Registry) -> None:
    """Verify unloading a plugin that is not loaded."""
    assert not PluginManager(registry).unload('missing')


def test_unload_all(registry: Registry) -> None:
    """Verify unloading every plugin latest first."""
    manager = PluginManager(registry)
    before = _snapshot(registry)

    manager.load(ExamplePlugin())
    manager.load(ShadowingPlugin())
    assert manager.names == ['example', 'shadowing']

    assert manager.unload_all()
    assert manager.names == []
    assert _snapshot(registry) == before


def test_tracked_context_protocol(registry: Registry) -> None:
    """Verify that plugins receive a tracked registration context."""
    class RecordingPlugin(Plugin):
        name = 'recording'

        def initialize(self, context: RegistrationContext) -> None:
            self.context = context

    plugin = RecordingPlugin()
    PluginManager(registry).load(plugin)

    assert isinstance(plugin.context, TrackedPluginContext)
    assert isinstance(plugin.context, RegistrationContext)
    assert plugin.context.logger.name == 'dynui.plugins.recording'


def test_entrypoints_loading(patch_entrypoints: 'Callable[..., MockType]',
                             registry: Registry) -> None:
    """Verify loading of plugin instances and classes from entrypoints."""
    patch_entrypoints(ExamplePlugin(), ShadowingPlugin)

    manager = PluginManager(registry)

    assert manager.load_entrypoints() == ['example', 'shadowing']
    assert registry.types.resolve('Badge') is not None


def test_entrypoints_loading_empty(patch_entrypoints: 'Callable[..., MockType]',
                                   registry: Registry) -> None:
    """Verify loading with no plugins installed."""
    patch_entrypoints()

    assert PluginManager(registry).load_entrypoints() == []


def test_entrypoints_skip_failed(patch_entrypoints: 'Callable[..., MockType]',
                                 registry: Registry) -> None:
    """Verify skipping of plugins that fail during loading."""
    patch_entrypoints(None, raises=SyntaxError)

    with pytest.warns(PluginWarning, match=r'^Failed to load entrypoint'):
        assert PluginManager(registry).load_entrypoints() == []


def test_entrypoints_fail_with_strict(patch_entrypoints: 'Callable[..., MockType]',
                                      registry: Registry) -> None:
    """Verify failing of plugins that fail during loading with strict mode."""
    patch_entrypoints(None, raises=SyntaxError)

    with pytest.raises(PluginError, match=r'^Failed to load entrypoint'):
        PluginManager(registry, strict=True).load_entrypoints()


def test_entrypoints_skip_invalid(patch_entrypoints: 'Callable[..., MockType]',
                                  registry: Registry) -> None:
    """Verify handling of objects that are not plugins."""
    patch_entrypoints({})

    with pytest.warns(PluginWarning, match=r'object is not a plugin$'):
        PluginManager(registry).load_entrypoints()


def test_entrypoints_fail_invalid_with_strict(patch_entrypoints: 'Callable[..., MockType]',
                                              registry: Registry) -> None:
    """Verify failing on objects that are not plugins with strict mode."""
    patch_entrypoints({})

    with pytest.raises(PluginError, match=r'object is not a plugin$'):
        PluginManager(registry, strict=True).load_entrypoints()


def test_entrypoints_initialize_failure(patch_entrypoints: 'Callable[..., MockType]',
                                        registry: Registry) -> None:
    """Verify that initialization failures of discovered plugins warn."""
    patch_entrypoints(FailingPlugin())
    before = _snapshot(registry)

    with pytest.warns(PluginWarning, match=r'failed to initialize$'):
        assert PluginManager(registry).load_entrypoints() == []

    assert _snapshot(registry) == before
