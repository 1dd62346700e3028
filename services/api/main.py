"""API service for workflow management and execution."""

import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from services.api.routes.workflow import router as workflow_router
from services.api.middleware import CorrelationIdMiddleware
from shared.exceptions import StructuralError, WorkflowNotFoundError
from shared.logging_config import setup_logging

setup_logging("api")

app = FastAPI(title="Workflow Runner API", version="1.0.0")
app.add_middleware(CorrelationIdMiddleware)

app.include_router(workflow_router, tags=["Workflows"])


@app.exception_handler(WorkflowNotFoundError)
async def workflow_not_found_handler(request: Request, exc: WorkflowNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": exc.message, "error_type": exc.error_type},
    )


@app.exception_handler(StructuralError)
async def structural_error_handler(request: Request, exc: StructuralError):
    logging.warning("Rejected workflow graph", extra={"error": exc.message, "node_id": exc.node_id})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "error_type": exc.error_type},
    )


@app.get("/")
async def root():
    return {"service": "workflow-runner", "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
