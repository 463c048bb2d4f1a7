"""Builder runtime settings.

Settings are resolved from keyword arguments and from `DYNUI_*`
environment variables, for example `DYNUI_STOP_ON_ERROR=1`.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from dynui.models import SettingsModel

type LogLevel = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR']


class BuilderSettings(SettingsModel):
    """Behavior switches of the builder orchestrator."""

    model_config = SettingsConfigDict(
        env_prefix='DYNUI_',
        frozen=True,
        extra='ignore',
    )

    stop_on_error: bool = Field(
        default=False,
        title='Stop on error',
        description=(
            'Abort the build on the first unresolved type, blocked '
            'property or failed assignment instead of reporting it.'
        ),
    )

    validate_properties: bool = Field(
        default=True,
        title='Validate properties',
        description='Run the validator chain before every assignment.',
    )

    auto_register: bool = Field(
        default=True,
        title='Auto register',
        description=(
            'Resolve unknown type names by scanning the configured '
            'auto-registration modules.'
        ),
    )

    auto_register_modules: tuple[str, ...] = Field(
        default=('dynui.widgets',),
        title='Auto-registration modules',
        description='Modules scanned for node classes on a registry miss.',
    )

    wrapper_type: str = Field(
        default='StackPanel',
        title='Wrapper type',
        description=(
            'Ordered container created when a second child is attached '
            'to a single-slot container.'
        ),
    )

    strict_plugins: bool = Field(
        default=False,
        title='Strict plugins',
        description='Raise on entry point plugin issues instead of warning.',
    )

    log_level: LogLevel = Field(
        default='INFO',
        title='Log level',
        description='Logging level configured by the command line tool.',
    )
