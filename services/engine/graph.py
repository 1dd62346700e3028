"""Structural checks and lookups over a workflow graph."""

from typing import Dict, List, Optional, Sequence
from shared.constants import MAX_NODES_PER_WORKFLOW
from shared.exceptions import (
    DanglingEdgeError,
    DuplicateNodeError,
    InvalidEdgeError,
    MissingStartNodeError,
    MultipleStartNodesError,
    StructuralError,
)
from shared.types import Edge, Node, NodeKind, WorkflowGraph


def validate(graph: WorkflowGraph, require_start: bool = True) -> None:
    """Raises a StructuralError if the graph cannot be executed as drawn.

    Drafts saved from the editor may not have a START node yet, so callers
    persisting a graph pass require_start=False.
    """
    if len(graph.nodes) > MAX_NODES_PER_WORKFLOW:
        raise StructuralError(
            f"Workflow exceeds maximum node limit: {len(graph.nodes)} > {MAX_NODES_PER_WORKFLOW}"
        )

    nodes: Dict[str, Node] = {}
    for node in graph.nodes:
        if node.id in nodes:
            raise DuplicateNodeError(f"Duplicate node ID: {node.id}", node_id=node.id)
        nodes[node.id] = node

    start_ids = [node.id for node in graph.nodes if node.node_kind == NodeKind.START]
    if not start_ids and require_start:
        raise MissingStartNodeError("No start node found")
    if len(start_ids) > 1:
        raise MultipleStartNodesError(
            f"Workflow has {len(start_ids)} start nodes: {', '.join(start_ids)}",
            node_id=start_ids[1]
        )

    for edge in graph.edges:
        for end in (edge.source, edge.target):
            if end not in nodes:
                raise DanglingEdgeError(
                    f"Edge '{edge.id}' references non-existent node '{end}'",
                    node_id=end, edge_id=edge.id
                )
        if nodes[edge.source].node_kind == NodeKind.END:
            raise InvalidEdgeError(
                f"Edge '{edge.id}' leaves END node '{edge.source}'",
                node_id=edge.source, edge_id=edge.id
            )
        if nodes[edge.target].node_kind == NodeKind.START:
            raise InvalidEdgeError(
                f"Edge '{edge.id}' enters START node '{edge.target}'",
                node_id=edge.target, edge_id=edge.id
            )


def find_start_node(graph: WorkflowGraph) -> Optional[Node]:
    for node in graph.nodes:
        if node.node_kind == NodeKind.START:
            return node
    return None


def index_nodes(nodes: Sequence[Node]) -> Dict[str, Node]:
    # First occurrence wins, matching a linear search by id
    index: Dict[str, Node] = {}
    for node in nodes:
        index.setdefault(node.id, node)
    return index


def outgoing_edges(edges: Sequence[Edge], node_id: str) -> List[Edge]:
    return [edge for edge in edges if edge.source == node_id]
