"""Command-line utilities for inspecting and building layouts.

`parse` prints the descriptor forest of a layout, `build` materializes
it into the reference toolkit and prints the build report.
"""

import logging
from importlib.metadata import EntryPoint
from pathlib import Path
from typing import TYPE_CHECKING

from click import ClickException, argument, echo, group, option
from click import Path as PathParam
from yaml import dump

from dynui.core import Builder
from dynui.errors import DynUIError
from dynui.parsing import FormatDispatcher
from dynui.plugins import PLUGINS_GROUP, Plugin
from dynui.settings import BuilderSettings
from dynui.widgets import Window

if TYPE_CHECKING:
    from dynui.plugins import PluginManager

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


def _dump(content: object) -> None:
    """Print a value as a YAML document."""
    echo(dump(content, allow_unicode=True, sort_keys=False), nl=False)


@group(help='Command-line utilities for dynui layouts.')
def cli() -> None:
    """Root CLI group for dynui tools."""
    logging.basicConfig(level=BuilderSettings().log_level, format=LOG_FORMAT)


@cli.command(
    name='formats',
    help='List the registered layout formats and their extensions.',
)
def list_formats() -> None:
    """Print parser names with the extensions they claim."""
    for parser in FormatDispatcher().parsers:
        echo(f'{parser.name}: {' '.join(parser.extensions)}')


@cli.command(
    name='parse',
    help='Print the node descriptors of a layout file as YAML.',
)
@argument('source', type=InputFilepath)
def parse_layout(source: Path) -> None:
    """Parse a layout file and print its descriptors.

    Args:
        source: Layout file to parse.
    """
    try:
        descriptors = FormatDispatcher().parse_file(source)
    except DynUIError as error:
        raise ClickException(str(error)) from error

    _dump([
        descriptor.model_dump(mode='json', exclude_none=True)
        for descriptor in descriptors
    ])


def _load_plugin(plugins: 'PluginManager', reference: str) -> None:
    """Load a plugin given as `module:attribute`.

    Args:
        plugins: Plugin manager to load into.
        reference: Import reference of a plugin instance or class.
    """
    entrypoint = EntryPoint(name=reference, value=reference, group=PLUGINS_GROUP)

    try:
        plugin = entrypoint.load()
        if isinstance(plugin, type) and issubclass(plugin, Plugin):
            plugin = plugin()
    except (ImportError, AttributeError, ValueError) as error:
        raise ClickException(f'Cannot load plugin {reference!r}: {error}') from error

    if not isinstance(plugin, Plugin):
        raise ClickException(f'Object {reference!r} is not a plugin')

    try:
        plugins.load(plugin)
    except DynUIError as error:
        raise ClickException(str(error)) from error


@cli.command(
    name='build',
    help=(
        'Build a layout file into a reference Window and print the '
        'build report as YAML. Exits with code 1 on build errors.'
    ),
)
@option(
    '--stop-on-error',
    is_flag=True,
    help='Abort on the first error instead of reporting it.',
)
@option(
    '--no-validate',
    is_flag=True,
    help='Skip property validation.',
)
@option(
    '-p', '--plugin',
    'references',
    multiple=True,
    help='Plugin to load, as module:attribute. May be repeated.',
)
@argument('source', type=InputFilepath)
def build_layout(source: Path, stop_on_error: bool, no_validate: bool,
                 references: tuple[str, ...]) -> None:
    """Build a layout file and print the report.

    Args:
        source: Layout file to build.
        stop_on_error: Abort on the first error.
        no_validate: Skip property validation.
        references: Plugins to load before building.
    """
    settings = BuilderSettings(
        stop_on_error=stop_on_error,
        validate_properties=not no_validate,
    )
    builder = Builder(settings=settings)
    for reference in references:
        _load_plugin(builder.plugins, reference)

    try:
        report = builder.build_from_file(Window(), source)
    except DynUIError as error:
        raise ClickException(str(error)) from error

    _dump(report.model_dump(mode='json'))

    if report.has_errors:
        raise SystemExit(1)


if __name__ == '__main__':
    cli()
