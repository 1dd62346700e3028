"""Shared types for the API, the execution engine and the step executors."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from shared.exceptions import StepError


ExecutionContext = Dict[str, Dict[str, Any]]


class NodeKind(str, Enum):
    START = "START"
    END = "END"
    API = "API"
    EMAIL = "EMAIL"
    TEXT = "TEXT"
    CONDITION = "CONDITION"


class RunStatus(str, Enum):
    IDLE = "IDLE"
    PASSED = "PASSED"
    FAILED = "FAILED"


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(WireModel):
    x: float = 0.0
    y: float = 0.0


class Node(WireModel):
    id: str
    # Raw tag so unknown kinds still parse and fail at execution time
    kind: str = Field(alias="type")
    position: Position = Field(default_factory=Position)
    config: Dict[str, Any] = Field(default_factory=dict, alias="data")
    runtime_status: RunStatus = RunStatus.IDLE

    @property
    def node_kind(self) -> Optional[NodeKind]:
        try:
            return NodeKind(self.kind)
        except ValueError:
            return None


class Edge(WireModel):
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    type: Optional[str] = None


class WorkflowGraph(WireModel):
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)


class Workflow(WorkflowGraph):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    status: RunStatus = RunStatus.IDLE
    last_run: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NodeResult(WireModel):
    status: RunStatus
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class ExecutionTrace(WireModel):
    run_id: str
    workflow_id: Optional[int] = None
    success: bool
    message: str
    node_results: Dict[str, NodeResult] = Field(default_factory=dict)
    final_context: ExecutionContext = Field(default_factory=dict)
    nodes: List[Node] = Field(default_factory=list)
    visit_order: List[str] = Field(default_factory=list)
    failed_node: Optional[str] = None
    error: Optional[StepError] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def status(self) -> RunStatus:
        return RunStatus.PASSED if self.success else RunStatus.FAILED

    def status_of(self, node_id: str) -> RunStatus:
        for node in self.nodes:
            if node.id == node_id:
                return node.runtime_status
        return RunStatus.IDLE


class RunRecord(WireModel):
    id: int
    workflow_id: int
    results: ExecutionContext = Field(default_factory=dict)
    status: RunStatus
    executed_at: datetime
