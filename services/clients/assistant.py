"""AI-backed template generation and workflow analysis.

Only the API routes use this; the execution engine never does.
"""

import json
import logging
import os
import re
from typing import Any, Optional
from anthropic import Anthropic, AnthropicError
from pydantic import ValidationError
from shared.constants import (
    DEFAULT_ANTHROPIC_MODEL,
    TEMPLATE_MAX_TOKENS,
    ANALYSIS_MAX_TOKENS,
    RESULTS_ANALYSIS_MAX_TOKENS,
)
from shared.types import Edge, Node, NodeKind, Position, Workflow, WorkflowGraph

TEMPLATE_SYSTEM_PROMPT = (
    "You are a workflow design expert. "
    "Based on the given description, create a workflow structure with nodes and edges. "
    "Return ONLY a JSON object with 'nodes' and 'edges' arrays. "
    "Each node should have id, type (START, END, API, EMAIL, TEXT or CONDITION), "
    "position {x, y}, and data properties. "
    "Each edge should have id, source, target, and optional sourceHandle/targetHandle properties."
)

ANALYSIS_UNAVAILABLE = "Unable to analyze workflow at this time. Please try again later."
RESULTS_ANALYSIS_UNAVAILABLE = "Unable to analyze execution results at this time. Please try again later."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def fallback_template() -> WorkflowGraph:
    return WorkflowGraph(
        nodes=[
            Node(id="start", kind=NodeKind.START.value, position=Position(x=250, y=25),
                 config={"label": "Start"}),
            Node(id="end", kind=NodeKind.END.value, position=Position(x=250, y=250),
                 config={"label": "End"}),
        ],
        edges=[Edge(id="start-end", source="start", target="end")],
    )


def _text_of(response: Any) -> str:
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return block.text
    return ""


class WorkflowAssistant:

    def __init__(self, client: Optional[Anthropic] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or os.getenv("ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL)

    @property
    def client(self) -> Anthropic:
        if self._client is None:
            self._client = Anthropic(api_key=os.getenv("ANTHROPIC_API_KEY"))
        return self._client

    def generate_template(self, description: str) -> WorkflowGraph:
        """Builds a graph from a free-text description, or a Start->End graph if that fails"""
        try:
            response = self.client.messages.create(
                model=self.model,
                system=TEMPLATE_SYSTEM_PROMPT,
                max_tokens=TEMPLATE_MAX_TOKENS,
                messages=[{
                    "role": "user",
                    "content": f"Create a workflow based on this description: {description}",
                }],
            )
            match = _JSON_OBJECT.search(_text_of(response))
            if not match:
                raise ValueError("Failed to parse workflow template from AI response")
            return WorkflowGraph.model_validate(json.loads(match.group(0)))
        except (AnthropicError, ValueError, ValidationError) as e:
            logging.warning("Template generation failed, using fallback", extra={"error": str(e)})
            return fallback_template()

    def analyze(self, workflow: Workflow) -> str:
        return self._ask(
            f"Analyze this workflow and suggest improvements: "
            f"{workflow.model_dump_json(by_alias=True)}",
            ANALYSIS_MAX_TOKENS,
            ANALYSIS_UNAVAILABLE,
        )

    def analyze_results(self, results: Any) -> str:
        return self._ask(
            f"Analyze these workflow execution results and provide key insights: "
            f"{json.dumps(results, default=str)}",
            RESULTS_ANALYSIS_MAX_TOKENS,
            RESULTS_ANALYSIS_UNAVAILABLE,
        )

    def _ask(self, prompt: str, max_tokens: int, unavailable: str) -> str:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except AnthropicError as e:
            logging.warning("Workflow analysis failed", extra={"error": str(e)})
            return unavailable
        return _text_of(response) or unavailable
