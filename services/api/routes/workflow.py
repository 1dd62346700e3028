"""Workflow API routes."""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from services.api.dependencies import get_assistant, get_engine, get_recorder, get_store
from services.api.domain.models import (
    AnalyzeWorkflowResponse,
    CreateWorkflowRequest,
    ExecuteGraphRequest,
    ExecuteWorkflowResponse,
    GenerateTemplateRequest,
    GenerateTemplateResponse,
    RunHistoryResponse,
    UpdateWorkflowRequest,
)
from services.api.infra.redis_store import RedisWorkflowStore
from services.clients.assistant import WorkflowAssistant
from services.engine.graph import validate
from services.engine.recorder import RunRecorder
from services.engine.traversal import WorkflowEngine
from shared.exceptions import WorkflowNotFoundError
from shared.types import Workflow, WorkflowGraph


router = APIRouter()


def get_owned_workflow(store: RedisWorkflowStore, workflow_id: int, user_id: int) -> Workflow:
    workflow = store.get_workflow(workflow_id)
    if workflow is None:
        raise WorkflowNotFoundError(f"Workflow {workflow_id} not found", workflow_id=workflow_id)
    if workflow.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return workflow


def check_structure(graph: WorkflowGraph) -> None:
    # Drafts may be saved before a START node is placed
    validate(graph, require_start=False)


@router.post("/workflows", response_model=Workflow, status_code=status.HTTP_201_CREATED)
def create_workflow(
    request: CreateWorkflowRequest,
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
):
    check_structure(request)
    return store.create_workflow(
        user_id=user_id,
        name=request.name,
        description=request.description,
        nodes=request.nodes,
        edges=request.edges,
    )


@router.get("/workflows", response_model=List[Workflow])
def list_workflows(
    q: Optional[str] = Query(default=None),
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
):
    return store.list_workflows(user_id, q)


@router.post("/workflows/execute", response_model=ExecuteWorkflowResponse)
def execute_graph(
    request: ExecuteGraphRequest,
    user_id: int = Header(alias="X-User-ID"),
    engine: WorkflowEngine = Depends(get_engine),
    store: RedisWorkflowStore = Depends(get_store),
    recorder: RunRecorder = Depends(get_recorder),
):
    if request.user_id is not None and request.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if request.id is not None:
        get_owned_workflow(store, request.id, user_id)

    trace = engine.execute(request, workflow_id=request.id)

    workflow = None
    if request.id is not None:
        workflow = recorder.record(request.id, trace)

    return ExecuteWorkflowResponse(success=trace.success, message=trace.message,
                                   workflow=workflow, trace=trace)


@router.post("/workflows/generate-template", response_model=GenerateTemplateResponse)
def generate_template(
    request: GenerateTemplateRequest,
    user_id: int = Header(alias="X-User-ID"),
    assistant: WorkflowAssistant = Depends(get_assistant),
):
    template = assistant.generate_template(request.description)
    return GenerateTemplateResponse(nodes=template.nodes, edges=template.edges)


@router.get("/workflows/{workflow_id}", response_model=Workflow)
def get_workflow(
    workflow_id: int,
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
):
    return get_owned_workflow(store, workflow_id, user_id)


@router.put("/workflows/{workflow_id}", response_model=Workflow)
def update_workflow(
    workflow_id: int,
    request: UpdateWorkflowRequest,
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
):
    existing = get_owned_workflow(store, workflow_id, user_id)
    changes = request.model_dump(exclude_unset=True)

    if "nodes" in changes or "edges" in changes:
        check_structure(WorkflowGraph(
            nodes=request.nodes if request.nodes is not None else existing.nodes,
            edges=request.edges if request.edges is not None else existing.edges,
        ))

    updated = store.update_workflow(workflow_id, changes)
    if updated is None:
        raise WorkflowNotFoundError(f"Workflow {workflow_id} not found", workflow_id=workflow_id)
    return updated


@router.delete("/workflows/{workflow_id}")
def delete_workflow(
    workflow_id: int,
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
):
    get_owned_workflow(store, workflow_id, user_id)
    store.delete_workflow(workflow_id)
    return {"message": "Workflow deleted"}


@router.post("/workflows/{workflow_id}/execute", response_model=ExecuteWorkflowResponse)
def execute_workflow(
    workflow_id: int,
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
    recorder: RunRecorder = Depends(get_recorder),
):
    get_owned_workflow(store, workflow_id, user_id)

    trace, workflow = recorder.run(workflow_id)

    logging.info("Workflow executed", extra={
        "workflow_id": workflow_id,
        "run_id": trace.run_id,
        "success": trace.success,
    })
    return ExecuteWorkflowResponse(success=trace.success, message=trace.message,
                                   workflow=workflow, trace=trace)


@router.get("/workflows/{workflow_id}/results", response_model=RunHistoryResponse)
def get_workflow_results(
    workflow_id: int,
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
):
    get_owned_workflow(store, workflow_id, user_id)
    return RunHistoryResponse(workflow_id=workflow_id, runs=store.get_run_records(workflow_id))


@router.post("/workflows/{workflow_id}/analyze", response_model=AnalyzeWorkflowResponse)
def analyze_workflow(
    workflow_id: int,
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
    assistant: WorkflowAssistant = Depends(get_assistant),
):
    workflow = get_owned_workflow(store, workflow_id, user_id)
    return AnalyzeWorkflowResponse(analysis=assistant.analyze(workflow))


@router.post("/workflows/{workflow_id}/results/analyze", response_model=AnalyzeWorkflowResponse)
def analyze_latest_run(
    workflow_id: int,
    user_id: int = Header(alias="X-User-ID"),
    store: RedisWorkflowStore = Depends(get_store),
    assistant: WorkflowAssistant = Depends(get_assistant),
):
    get_owned_workflow(store, workflow_id, user_id)
    runs = store.get_run_records(workflow_id)
    if not runs:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"Workflow {workflow_id} has not been run yet")
    return AnalyzeWorkflowResponse(analysis=assistant.analyze_results(runs[0].results))
