"""Builder orchestrator and build reporting.

The primary public entry point is `Builder`, which materializes parsed
node descriptors into object graphs and describes every decision it
made in a `BuildReport`.
"""

from .builder import Builder, DataContextResolver
from .report import BuildMessage, BuildReport, NodeResult, NodeState, Severity

__all__ = (
    'BuildMessage',
    'BuildReport',
    'Builder',
    'DataContextResolver',
    'NodeResult',
    'NodeState',
    'Severity',
)
