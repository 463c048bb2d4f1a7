"""Build statistics and diagnostics."""

from enum import StrEnum

from pydantic import Field, computed_field

from dynui.models import MutableModel, SchemaModel
from dynui.plugins import PluginInfo  # noqa: TC001


class NodeState(StrEnum):
    """Terminal state of a node."""

    SUCCESS = 'success'
    SKIPPED = 'skipped'
    FAILED = 'failed'


class Severity(StrEnum):
    """Severity of a build message."""

    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'


class BuildMessage(SchemaModel):
    """Single diagnostic produced while building."""

    severity: Severity
    message: str
    type_name: str | None = None
    property: str | None = None
    source_file: str | None = None


class NodeResult(MutableModel):
    """Outcome of one node."""

    type_name: str
    state: NodeState = NodeState.SUCCESS
    source_file: str | None = None
    applied: int = Field(default=0, description='Properties assigned.')
    skipped: int = Field(default=0, description='Bare or unclaimed properties.')
    blocked: int = Field(default=0, description='Properties rejected by validation.')
    failed: int = Field(default=0, description='Properties whose setter failed.')


class BuildReport(MutableModel):
    """Aggregate outcome of a build.

    Counters are derived from the recorded messages and node results,
    so they always agree with them.
    """

    source_file: str | None = None
    duration: float = Field(default=0.0, description='Build time in seconds.')
    nodes: list[NodeResult] = Field(default_factory=list)
    messages: list[BuildMessage] = Field(default_factory=list)
    plugins: list[PluginInfo] = Field(default_factory=list)
    setters: int = 0
    validators: int = 0
    converters: int = 0

    @computed_field
    @property
    def error_count(self) -> int:
        """Number of error messages."""
        return self._count(Severity.ERROR)

    @computed_field
    @property
    def warning_count(self) -> int:
        """Number of warning messages."""
        return self._count(Severity.WARNING)

    @computed_field
    @property
    def info_count(self) -> int:
        """Number of informational messages."""
        return self._count(Severity.INFO)

    @computed_field
    @property
    def total_nodes(self) -> int:
        """Number of nodes reached, in any state."""
        return len(self.nodes)

    @computed_field
    @property
    def succeeded(self) -> int:
        """Number of successfully built nodes."""
        return self._state(NodeState.SUCCESS)

    @computed_field
    @property
    def skipped(self) -> int:
        """Number of skipped nodes."""
        return self._state(NodeState.SKIPPED)

    @computed_field
    @property
    def failed(self) -> int:
        """Number of failed nodes."""
        return self._state(NodeState.FAILED)

    @property
    def has_errors(self) -> bool:
        """Whether any error has been recorded."""
        return self.error_count > 0

    def add(self, severity: Severity, message: str, *,
            type_name: str | None = None,
            property: str | None = None,  # noqa: A002
            source_file: str | None = None) -> BuildMessage:
        """Record a diagnostic."""
        item = BuildMessage(
            severity=severity,
            message=message,
            type_name=type_name,
            property=property,
            source_file=source_file,
        )
        self.messages.append(item)

        return item

    def by_severity(self, severity: Severity) -> list[str]:
        """Texts of all messages of a severity."""
        return [item.message for item in self.messages if item.severity is severity]

    def _count(self, severity: Severity) -> int:
        return sum(1 for item in self.messages if item.severity is severity)

    def _state(self, state: NodeState) -> int:
        return sum(1 for item in self.nodes if item.state is state)
