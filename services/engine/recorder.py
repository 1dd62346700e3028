"""Runs stored workflows and records the outcome with the storage collaborator."""

import logging
from typing import Optional, Protocol, Tuple, Dict, Any
from services.engine.traversal import WorkflowEngine
from shared.exceptions import WorkflowNotFoundError
from shared.types import ExecutionContext, ExecutionTrace, RunRecord, RunStatus, Workflow
from shared.utils import utc_now


class WorkflowStore(Protocol):
    def get_workflow(self, workflow_id: int) -> Optional[Workflow]:
        ...

    def update_workflow(self, workflow_id: int, changes: Dict[str, Any]) -> Optional[Workflow]:
        ...

    def create_run_record(self, workflow_id: int, results: ExecutionContext, status: RunStatus) -> RunRecord:
        ...


class RunRecorder:

    def __init__(self, store: WorkflowStore, engine: WorkflowEngine):
        self.store = store
        self.engine = engine

    def run(self, workflow_id: int) -> Tuple[ExecutionTrace, Workflow]:
        workflow = self.store.get_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found", workflow_id=workflow_id)

        trace = self.engine.execute(workflow, workflow_id=workflow_id)
        return trace, self.record(workflow_id, trace)

    def record(self, workflow_id: int, trace: ExecutionTrace) -> Workflow:
        """Appends the run to history and stamps the workflow's status and lastRun"""
        self.store.create_run_record(workflow_id, trace.final_context, trace.status)
        updated = self.store.update_workflow(workflow_id, {
            "status": trace.status,
            "last_run": trace.finished_at or utc_now(),
        })
        if updated is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found", workflow_id=workflow_id)

        logging.info("Workflow run recorded", extra={
            "workflow_id": workflow_id,
            "run_id": trace.run_id,
            "status": trace.status.value,
        })
        return updated
