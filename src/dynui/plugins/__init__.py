"""Plugin contract, registration contexts and lifecycle management.

A plugin registers node types, setters, validators and converters
through a `RegistrationContext`. The `PluginManager` hands plugins a
`TrackedPluginContext`, so that unloading a plugin reverts exactly what
it registered.
"""

from .base import Plugin
from .context import PluginContext, RegistrationContext, TrackedPluginContext
from .manager import PLUGINS_GROUP, PluginManager
from .records import PluginInfo, PluginRegistration, TypeRegistration

__all__ = (
    'PLUGINS_GROUP',
    'Plugin',
    'PluginContext',
    'PluginInfo',
    'PluginManager',
    'PluginRegistration',
    'RegistrationContext',
    'TrackedPluginContext',
    'TypeRegistration',
)
