"""
Redis-backed storage for workflow definitions and run history.
"""

import os
from typing import Any, Dict, List, Optional
import redis
from shared.constants import DEFAULT_REDIS_URL, RUN_HISTORY_LIMIT
from shared.types import Edge, ExecutionContext, Node, RunRecord, RunStatus, Workflow
from shared.utils import utc_now

# Fields owned by the store, never taken from an update payload
_PROTECTED_FIELDS = {"id", "user_id", "created_at"}


class RedisWorkflowStore:
    """Workflow documents stored as JSON under workflow:{id}"""

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None):
        if client is None:
            url = redis_url or os.getenv("REDIS_URL", DEFAULT_REDIS_URL)
            client = redis.Redis.from_url(url, decode_responses=False)
        self.client = client

    def create_workflow(
        self,
        user_id: int,
        name: str,
        description: Optional[str] = None,
        nodes: Optional[List[Node]] = None,
        edges: Optional[List[Edge]] = None,
    ) -> Workflow:
        now = utc_now()
        workflow = Workflow(
            id=self.client.incr("workflow:seq"),
            user_id=user_id,
            name=name,
            description=description,
            nodes=nodes or [],
            edges=edges or [],
            created_at=now,
            updated_at=now,
        )
        self._save(workflow)
        self.client.sadd(f"user:{user_id}:workflows", workflow.id)
        return workflow

    def get_workflow(self, workflow_id: int) -> Optional[Workflow]:
        data = self.client.get(f"workflow:{workflow_id}")
        if data:
            return Workflow.model_validate_json(data)
        return None

    def list_workflows(self, user_id: int, query: Optional[str] = None) -> List[Workflow]:
        """Workflows owned by user_id, oldest first; query filters names case-insensitively"""
        ids = sorted(int(raw) for raw in self.client.smembers(f"user:{user_id}:workflows"))
        if not ids:
            return []

        documents = self.client.mget([f"workflow:{workflow_id}" for workflow_id in ids])
        workflows = [Workflow.model_validate_json(doc) for doc in documents if doc]

        if query:
            needle = query.lower()
            workflows = [w for w in workflows if needle in w.name.lower()]
        return workflows

    def update_workflow(self, workflow_id: int, changes: Dict[str, Any]) -> Optional[Workflow]:
        workflow = self.get_workflow(workflow_id)
        if workflow is None:
            return None

        data = workflow.model_dump()
        data.update({k: v for k, v in changes.items() if k not in _PROTECTED_FIELDS})
        data["updated_at"] = utc_now()

        updated = Workflow.model_validate(data)
        self._save(updated)
        return updated

    def delete_workflow(self, workflow_id: int) -> bool:
        workflow = self.get_workflow(workflow_id)
        if workflow is None:
            return False

        pipe = self.client.pipeline()
        pipe.delete(f"workflow:{workflow_id}")
        pipe.delete(f"workflow:{workflow_id}:runs")
        pipe.srem(f"user:{workflow.user_id}:workflows", workflow_id)
        pipe.execute()
        return True

    def create_run_record(self, workflow_id: int, results: ExecutionContext, status: RunStatus) -> RunRecord:
        record = RunRecord(
            id=self.client.incr("run:seq"),
            workflow_id=workflow_id,
            results=results,
            status=status,
            executed_at=utc_now(),
        )
        key = f"workflow:{workflow_id}:runs"
        pipe = self.client.pipeline()
        pipe.lpush(key, record.model_dump_json(by_alias=True))
        pipe.ltrim(key, 0, RUN_HISTORY_LIMIT - 1)
        pipe.execute()
        return record

    def get_run_records(self, workflow_id: int) -> List[RunRecord]:
        """Run history, newest first"""
        raw = self.client.lrange(f"workflow:{workflow_id}:runs", 0, -1)
        return [RunRecord.model_validate_json(item) for item in raw]

    def _save(self, workflow: Workflow) -> None:
        self.client.set(f"workflow:{workflow.id}", workflow.model_dump_json(
            by_alias=True,
            exclude={"nodes": {"__all__": {"runtime_status"}}},
        ))
