"""Depth-first execution of a workflow graph from its START node."""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Optional, Tuple
from services.engine.graph import find_start_node, index_nodes, outgoing_edges
from services.steps.registry import StepClients, get_step_executor
import services.steps.builtin  # noqa: F401  registers START/END/TEXT/CONDITION
import services.steps.external  # noqa: F401  registers API/EMAIL
from shared.constants import NO_START_NODE_MESSAGE, RUN_SUCCEEDED_MESSAGE
from shared.exceptions import (
    CycleDetectedError,
    MissingStartNodeError,
    NodeNotFoundError,
    StepExecutionError,
)
from shared.logging_config import correlation_scope
from shared.types import (
    Edge,
    ExecutionContext,
    ExecutionTrace,
    Node,
    NodeKind,
    NodeResult,
    RunStatus,
    WorkflowGraph,
)
from shared.utils import generate_run_id, utc_now


@dataclass
class _RunState:
    """Everything one run mutates; never shared between runs"""
    run_id: str
    node_list: List[Node]
    nodes: Dict[str, Node]
    edges: List[Edge]
    statuses: Dict[str, RunStatus]
    results: Dict[str, NodeResult] = field(default_factory=dict)
    visit_order: List[str] = field(default_factory=list)


@dataclass
class _Frame:
    node_id: str
    path: Tuple[str, ...]
    updated: ExecutionContext
    merged: ExecutionContext
    pending: Optional[Iterator[Edge]]


class WorkflowEngine:

    def __init__(self, clients: StepClients):
        self.clients = clients

    def execute(self, graph: WorkflowGraph, workflow_id: Optional[int] = None) -> ExecutionTrace:
        """Runs the graph to completion or first failure; always returns a trace"""
        run_id = generate_run_id()
        with correlation_scope(run_id):
            started_at = utc_now()
            nodes = [node.model_copy(deep=True) for node in graph.nodes]

            start = find_start_node(graph)
            if start is None:
                logging.warning("Workflow has no start node", extra={"run_id": run_id, "workflow_id": workflow_id})
                error = MissingStartNodeError(NO_START_NODE_MESSAGE)
                return ExecutionTrace(
                    run_id=run_id,
                    workflow_id=workflow_id,
                    success=False,
                    message=NO_START_NODE_MESSAGE,
                    nodes=nodes,
                    error=error.to_step_error(),
                    started_at=started_at,
                    finished_at=utc_now(),
                )

            run = _RunState(
                run_id=run_id,
                node_list=nodes,
                nodes=index_nodes(nodes),
                edges=list(graph.edges),
                statuses={node.id: RunStatus.IDLE for node in nodes},
            )

            logging.info("Workflow run started", extra={
                "run_id": run_id,
                "workflow_id": workflow_id,
                "start_node": start.id,
                "total_nodes": len(nodes),
            })

            try:
                final_context = self._traverse(run, start.id)
            except StepExecutionError as e:
                logging.error("Workflow run failed", extra={
                    "run_id": run_id,
                    "workflow_id": workflow_id,
                    "failed_node": e.node_id,
                    "error": e.message,
                })
                return self._trace(run, workflow_id, started_at, success=False,
                                   message=e.message, final_context={}, error=e)

            logging.info("Workflow run completed", extra={
                "run_id": run_id,
                "workflow_id": workflow_id,
                "visited": len(run.visit_order),
            })
            return self._trace(run, workflow_id, started_at, success=True,
                               message=RUN_SUCCEEDED_MESSAGE, final_context=final_context)

    def _traverse(self, run: _RunState, start_id: str) -> ExecutionContext:
        """Visits children sequentially in stored edge order, merging their contexts upward"""
        root = self._visit(run, start_id, {}, ())
        if root.pending is None:
            return root.merged

        stack = [root]
        while stack:
            frame = stack[-1]
            edge = next(frame.pending, None)
            if edge is None:
                stack.pop()
                if stack:
                    stack[-1].merged.update(frame.merged)
                continue

            child = self._visit(run, edge.target, frame.updated, frame.path)
            if child.pending is None:
                frame.merged.update(child.merged)
            else:
                stack.append(child)

        return root.merged

    def _visit(self, run: _RunState, node_id: str, context: ExecutionContext,
               path: Tuple[str, ...]) -> _Frame:
        node = run.nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node {node_id} not found", node_id=node_id)

        if node_id in path:
            self._fail(run, node_id, f"Cycle detected at node {node_id}")
            raise CycleDetectedError(
                f"Cycle detected: {' -> '.join(path + (node_id,))}", node_id=node_id
            )

        run.visit_order.append(node_id)
        logging.info("Executing node", extra={"run_id": run.run_id, "node_id": node_id, "kind": node.kind})

        try:
            executor = get_step_executor(node)
            payload = executor(node, node.config, MappingProxyType(context), self.clients)
        except StepExecutionError as e:
            e.node_id = e.node_id or node_id
            self._fail(run, node_id, e.message)
            raise
        except Exception as e:
            logging.exception("Unexpected step error", extra={"run_id": run.run_id, "node_id": node_id})
            self._fail(run, node_id, str(e))
            raise StepExecutionError(f"{node.kind} step failed: {e}", node_id=node_id) from e

        run.statuses[node_id] = RunStatus.PASSED
        run.results[node_id] = NodeResult(status=RunStatus.PASSED, payload=payload)
        updated = {**context, node_id: payload}

        if node.node_kind == NodeKind.END:
            return _Frame(node_id, path + (node_id,), updated, dict(updated), None)

        return _Frame(
            node_id,
            path + (node_id,),
            updated,
            dict(updated),
            iter(outgoing_edges(run.edges, node_id)),
        )

    def _fail(self, run: _RunState, node_id: str, message: str) -> None:
        run.statuses[node_id] = RunStatus.FAILED
        previous = run.results.get(node_id)
        run.results[node_id] = NodeResult(
            status=RunStatus.FAILED,
            payload=previous.payload if previous else None,
            error=message,
        )

    def _trace(self, run: _RunState, workflow_id: Optional[int], started_at, success: bool,
               message: str, final_context: ExecutionContext,
               error: Optional[StepExecutionError] = None) -> ExecutionTrace:
        nodes = [
            node.model_copy(update={"runtime_status": run.statuses[node.id]})
            for node in run.node_list
        ]
        return ExecutionTrace(
            run_id=run.run_id,
            workflow_id=workflow_id,
            success=success,
            message=message,
            node_results=run.results,
            final_context=final_context,
            nodes=nodes,
            visit_order=run.visit_order,
            failed_node=error.node_id if error else None,
            error=error.to_step_error() if error else None,
            started_at=started_at,
            finished_at=utc_now(),
        )
