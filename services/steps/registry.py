"""Step executor registry, one executor per node kind."""

from dataclasses import dataclass
from typing import Dict, Any, Callable, List, Mapping
from services.clients.http import HttpClient
from services.clients.mail import Mailer
from shared.exceptions import UnknownNodeKindError
from shared.types import Node, NodeKind


@dataclass
class StepClients:
    """Side-effecting collaborators available to executors"""
    http: HttpClient
    mailer: Mailer


StepExecutor = Callable[[Node, Dict[str, Any], Mapping[str, Any], StepClients], Dict[str, Any]]
_step_registry: Dict[NodeKind, StepExecutor] = {}


def register_step(kind: NodeKind):
    def decorator(func: StepExecutor):
        _step_registry[kind] = func
        return func
    return decorator


def get_step_executor(node: Node) -> StepExecutor:
    kind = node.node_kind
    if kind is None or kind not in _step_registry:
        raise UnknownNodeKindError(f"Unknown node type: {node.kind}", node_id=node.id)
    return _step_registry[kind]


def list_step_kinds() -> List[NodeKind]:
    return list(_step_registry.keys())
