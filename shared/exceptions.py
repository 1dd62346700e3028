"""Structured exception hierarchy for the workflow runner."""

from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class StepError(BaseModel):
    """Structured failure attached to an execution trace"""
    error_type: str
    error_message: str
    node_id: Optional[str] = None
    http_status_code: Optional[int] = None
    context: Dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class WorkflowError(Exception):
    """Base exception for workflow errors"""

    error_type = "WORKFLOW_ERROR"

    def __init__(self, message: str, node_id: str = "", **context):
        self.message = message
        self.node_id = node_id
        self.context = context
        super().__init__(message)

    def to_step_error(self) -> StepError:
        context = dict(self.context)
        http_status_code = context.pop("http_status_code", None)
        return StepError(
            error_type=self.error_type,
            error_message=self.message,
            node_id=self.node_id or None,
            http_status_code=http_status_code,
            context=context,
        )


class WorkflowNotFoundError(WorkflowError):
    error_type = "WORKFLOW_NOT_FOUND"


class StructuralError(WorkflowError):
    error_type = "STRUCTURAL_ERROR"


class MissingStartNodeError(StructuralError):
    error_type = "MISSING_START_NODE"


class MultipleStartNodesError(StructuralError):
    error_type = "MULTIPLE_START_NODES"


class DuplicateNodeError(StructuralError):
    error_type = "DUPLICATE_NODE"


class DanglingEdgeError(StructuralError):
    error_type = "DANGLING_EDGE"


class InvalidEdgeError(StructuralError):
    error_type = "INVALID_EDGE"


class StepExecutionError(WorkflowError):
    error_type = "STEP_FAILED"


class NodeNotFoundError(StepExecutionError):
    error_type = "NODE_NOT_FOUND"


class ApiCallFailedError(StepExecutionError):
    error_type = "API_CALL_FAILED"


class EmailFailedError(StepExecutionError):
    error_type = "EMAIL_FAILED"


class UnknownNodeKindError(StepExecutionError):
    error_type = "UNKNOWN_NODE_KIND"


class CycleDetectedError(StepExecutionError):
    error_type = "CYCLE_DETECTED"
