"""Executors for nodes without side effects."""

from typing import Dict, Any, Mapping
from services.steps.registry import register_step, StepClients
from shared.types import Node, NodeKind

SUCCESS = "success"


@register_step(NodeKind.START)
def start_step(node: Node, config: Dict[str, Any], context: Mapping[str, Any], clients: StepClients) -> Dict[str, Any]:
    return {"status": SUCCESS}


@register_step(NodeKind.END)
def end_step(node: Node, config: Dict[str, Any], context: Mapping[str, Any], clients: StepClients) -> Dict[str, Any]:
    return {"status": SUCCESS}


@register_step(NodeKind.TEXT)
def text_annotation_step(node: Node, config: Dict[str, Any], context: Mapping[str, Any], clients: StepClients) -> Dict[str, Any]:
    text = config.get("text")
    return {"status": SUCCESS, "text": "" if text is None else text}


@register_step(NodeKind.CONDITION)
def condition_step(node: Node, config: Dict[str, Any], context: Mapping[str, Any], clients: StepClients) -> Dict[str, Any]:
    # Pass-through: no predicate is evaluated and every outgoing edge is followed
    return {"status": SUCCESS}
