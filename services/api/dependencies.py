"""Collaborators wired into the routes; tests swap them via dependency_overrides."""

from functools import lru_cache
from fastapi import Depends
from services.api.infra.redis_store import RedisWorkflowStore
from services.clients.assistant import WorkflowAssistant
from services.clients.http import RequestsHttpClient
from services.clients.mail import SimulatedMailer
from services.engine.recorder import RunRecorder
from services.engine.traversal import WorkflowEngine
from services.steps.registry import StepClients


@lru_cache
def get_store() -> RedisWorkflowStore:
    return RedisWorkflowStore()


@lru_cache
def get_engine() -> WorkflowEngine:
    return WorkflowEngine(StepClients(http=RequestsHttpClient(), mailer=SimulatedMailer()))


@lru_cache
def get_assistant() -> WorkflowAssistant:
    return WorkflowAssistant()


def get_recorder(
    store: RedisWorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
) -> RunRecorder:
    return RunRecorder(store, engine)
