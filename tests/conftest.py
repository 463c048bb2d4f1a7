"""Tests configurations and fixtures."""

from importlib.metadata import EntryPoint, EntryPoints
from typing import TYPE_CHECKING

import pytest

from dynui.core import Builder
from dynui.registry import Registry
from dynui.settings import BuilderSettings

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType

if TYPE_CHECKING:
    from dynui.plugins import Plugin


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep `DYNUI_*` variables of the host out of settings resolution."""
    for name in ('STOP_ON_ERROR', 'VALIDATE_PROPERTIES', 'AUTO_REGISTER',
                 'WRAPPER_TYPE', 'STRICT_PLUGINS', 'LOG_LEVEL'):
        monkeypatch.delenv(f'DYNUI_{name}', raising=False)


@pytest.fixture
def write_file(tmp_path: 'Path') -> 'Callable[[str, str], Path]':
    """Provide a factory writing UTF-8 layout sources into a temporary directory.

    Returns:
        A callable taking a relative file name and its contents and
        returning the path of the written file.
    """
    def write(name: str, contents: str) -> 'Path':
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding='utf-8')
        return path

    return write


@pytest.fixture
def registry() -> Registry:
    """Provide an isolated registry with the built-in members."""
    return Registry()


@pytest.fixture
def builder(registry: Registry) -> Builder:
    """Provide a builder with default settings over an isolated registry."""
    return Builder(registry, settings=BuilderSettings())


@pytest.fixture
def patch_entrypoints(mocker: 'MockerFixture') -> 'Callable[..., MockType]':
    """Provide a factory for mocking `importlib.metadata.entry_points`.

    Returns a callable that patches `entry_points()` to simulate
    discovery of plugins in the `dynui_plugins` entry point group.

    The returned factory allows configuring:
    - successfully loadable plugins,
    - or an exception raised during plugin loading,
    - or an empty entry point list.

    This fixture is intended for testing plugin discovery and error
    handling logic without relying on real installed entry points.
    """
    def patch(*plugins: 'Plugin | object', raises: Exception | None = None) -> 'MockType':
        """Patch `entry_points` with a controlled plugin configuration.

        Args:
            plugins: Objects to be returned by `EntryPoint.load()`.
                If empty, no entry points are registered.
            raises: Exception to raise when `EntryPoint.load()` is called.
                Used to simulate plugin load failures.

        Returns:
            A mock patch object produced by `mocker.patch` that replaces
            `importlib.metadata.entry_points` for the duration of the test.
        """
        entrypoints = []
        for plugin in plugins:
            ep = mocker.Mock(spec=EntryPoint)
            ep.group = 'dynui_plugins'
            ep.name = 'tests'
            ep.value = 'tests.examples.plugins:test'
            ep.load.return_value = plugin
            if raises is not None:
                ep.load.side_effect = raises
            entrypoints.append(ep)

        return mocker.patch(
            'importlib.metadata.entry_points',
            return_value=EntryPoints(entrypoints),
        )

    return patch
