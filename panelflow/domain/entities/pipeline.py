"""Pipeline snapshot and run state."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import Field

from panelflow.domain.entities.base import CamelModel


class PanelType(str, Enum):
    """Panel types declared by the UI collaborator."""

    TEXT = "text"
    VISUAL = "visual"
    AI = "ai"
    OBJECT = "object"
    FOLDER = "folder"


class PanelKind(str, Enum):
    """Passive panels carry static output; active panels call an agent."""

    PASSIVE = "passive"
    ACTIVE = "active"


PANEL_TYPE_LABELS: dict[PanelType, str] = {
    PanelType.TEXT: "Text Widget",
    PanelType.VISUAL: "Visual Widget",
    PanelType.AI: "AI Widget",
    PanelType.OBJECT: "Object Widget",
    PanelType.FOLDER: "Folder Widget",
}

NO_ORCHESTRATION = "none"


class PanelSpec(CamelModel):
    """Static configuration of one panel, read for the duration of a run."""

    node_id: int
    panel_type: PanelType = PanelType.TEXT
    title: str = ""
    static_output: str = ""
    agent_id: str = ""
    prompt: str = ""
    orchestration_mode: str = NO_ORCHESTRATION
    map_reduce: bool = False  # summarize folder upstreams before the agent call
    folder_path: str = ""

    @property
    def kind(self) -> PanelKind:
        return PanelKind.ACTIVE if self.panel_type == PanelType.AI else PanelKind.PASSIVE

    @property
    def is_active(self) -> bool:
        return self.kind == PanelKind.ACTIVE

    @property
    def label(self) -> str:
        return PANEL_TYPE_LABELS.get(self.panel_type, "Widget")


class PipelineEdge(CamelModel):
    """Directed dependency from one panel's output to another panel's input."""

    id: str
    source_node_id: int
    target_node_id: int
    auto_chain: bool = False
    condition: str | None = None
    max_retries: int | None = Field(None, ge=0)
    retry_delay_ms: int | None = Field(None, ge=0)

    @property
    def has_condition(self) -> bool:
        return bool(self.condition and self.condition.strip())


class PipelineSnapshot(CamelModel):
    """Edges plus per-panel configuration, as handed over by the UI collaborator."""

    workspace_id: str = "default"
    edges: list[PipelineEdge] = []
    panels: list[PanelSpec] = []

    def panel(self, node_id: int) -> PanelSpec:
        """Panel for node_id; undeclared nodes act as empty passive panels."""
        for panel in self.panels:
            if panel.node_id == node_id:
                return panel
        return PanelSpec(node_id=node_id)

    def has_panel(self, node_id: int) -> bool:
        return any(p.node_id == node_id for p in self.panels)

    def incoming_edges(self, node_id: int) -> list[PipelineEdge]:
        return [e for e in self.edges if e.target_node_id == node_id]

    def outgoing_edges(self, node_id: int) -> list[PipelineEdge]:
        return [e for e in self.edges if e.source_node_id == node_id]

    def labels(self) -> dict[int, str]:
        return {p.node_id: p.label for p in self.panels}


class RunStatus(str, Enum):
    """Pipeline run state machine: idle -> running -> terminal."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.STOPPED)


@dataclass
class RunState:
    """Transient state of one pipeline invocation."""

    run_id: str
    status: RunStatus = RunStatus.IDLE
    order: list[int] = field(default_factory=list)
    outputs: dict[int, str] = field(default_factory=dict)
    current_node: int | None = None
    error: str | None = None
    skipped: list[int] = field(default_factory=list)
    attempts: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class UpstreamOutput:
    """One upstream panel output fed into a downstream prompt."""

    node_id: int
    output: str
    label: str = "Widget"
