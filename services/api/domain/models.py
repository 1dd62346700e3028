"""API request/response models."""

from pydantic import Field
from typing import Optional, List
from shared.types import Edge, ExecutionTrace, Node, RunRecord, Workflow, WireModel, WorkflowGraph


class CreateWorkflowRequest(WorkflowGraph):
    """Request body for creating a new workflow"""
    name: str = Field(min_length=1)
    description: Optional[str] = None


class UpdateWorkflowRequest(WireModel):
    """Editor changes; status and lastRun are only ever set by runs"""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    nodes: Optional[List[Node]] = None
    edges: Optional[List[Edge]] = None


class ExecuteGraphRequest(WorkflowGraph):
    """An ad-hoc graph; when it carries the id of a stored workflow the run is recorded"""
    id: Optional[int] = None
    user_id: Optional[int] = None


class ExecuteWorkflowResponse(WireModel):
    success: bool
    message: str
    workflow: Optional[Workflow] = None
    trace: ExecutionTrace


class RunHistoryResponse(WireModel):
    workflow_id: int
    runs: List[RunRecord]


class GenerateTemplateRequest(WireModel):
    description: str = Field(min_length=1)


class GenerateTemplateResponse(WorkflowGraph):
    pass


class AnalyzeWorkflowResponse(WireModel):
    analysis: str
