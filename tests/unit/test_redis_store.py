"""
Tests for the Redis workflow store against a mocked client.
"""

import json
from unittest.mock import Mock
from services.api.infra.redis_store import RedisWorkflowStore
from shared.types import Node, RunStatus, Workflow


def stored(workflow_id=1, user_id=1, name="Daily report"):
    return Workflow(
        id=workflow_id,
        user_id=user_id,
        name=name,
        nodes=[Node(id="s", kind="START")],
    ).model_dump_json(by_alias=True).encode()


def test_create_workflow_assigns_id_and_indexes_owner():
    redis_mock = Mock()
    redis_mock.incr.return_value = 5
    store = RedisWorkflowStore(client=redis_mock)

    workflow = store.create_workflow(1, "Daily report", nodes=[Node(id="s", kind="START")])

    assert workflow.id == 5
    assert workflow.status == RunStatus.IDLE
    redis_mock.incr.assert_called_once_with("workflow:seq")
    redis_mock.sadd.assert_called_once_with("user:1:workflows", 5)

    key, document = redis_mock.set.call_args.args
    assert key == "workflow:5"
    saved = json.loads(document)
    assert saved["userId"] == 1
    assert saved["nodes"][0]["type"] == "START"


def test_get_workflow():
    redis_mock = Mock()
    redis_mock.get.return_value = stored(workflow_id=2)

    workflow = RedisWorkflowStore(client=redis_mock).get_workflow(2)

    redis_mock.get.assert_called_once_with("workflow:2")
    assert workflow.id == 2
    assert workflow.nodes[0].kind == "START"


def test_get_missing_workflow():
    redis_mock = Mock()
    redis_mock.get.return_value = None

    assert RedisWorkflowStore(client=redis_mock).get_workflow(2) is None


def test_list_workflows_filters_by_name():
    redis_mock = Mock()
    redis_mock.smembers.return_value = {b"2", b"1"}
    redis_mock.mget.return_value = [stored(1, name="Daily report"), stored(2, name="Onboarding")]

    workflows = RedisWorkflowStore(client=redis_mock).list_workflows(1, query="REPORT")

    redis_mock.mget.assert_called_once_with(["workflow:1", "workflow:2"])
    assert [w.id for w in workflows] == [1]


def test_list_workflows_for_user_without_any():
    redis_mock = Mock()
    redis_mock.smembers.return_value = set()

    assert RedisWorkflowStore(client=redis_mock).list_workflows(1) == []
    redis_mock.mget.assert_not_called()


def test_update_workflow_keeps_owner_fields():
    redis_mock = Mock()
    redis_mock.get.return_value = stored(workflow_id=1, user_id=1)
    store = RedisWorkflowStore(client=redis_mock)

    updated = store.update_workflow(1, {"name": "Renamed", "user_id": 99, "status": RunStatus.PASSED})

    assert updated.name == "Renamed"
    assert updated.user_id == 1
    assert updated.status == RunStatus.PASSED
    assert updated.updated_at is not None
    redis_mock.set.assert_called_once()


def test_update_missing_workflow():
    redis_mock = Mock()
    redis_mock.get.return_value = None

    assert RedisWorkflowStore(client=redis_mock).update_workflow(1, {"name": "x"}) is None
    redis_mock.set.assert_not_called()


def test_delete_workflow_removes_history():
    redis_mock = Mock()
    redis_mock.get.return_value = stored(workflow_id=4, user_id=2)
    pipe = redis_mock.pipeline.return_value

    assert RedisWorkflowStore(client=redis_mock).delete_workflow(4) is True

    pipe.delete.assert_any_call("workflow:4")
    pipe.delete.assert_any_call("workflow:4:runs")
    pipe.srem.assert_called_once_with("user:2:workflows", 4)
    pipe.execute.assert_called_once()


def test_run_history_is_capped():
    redis_mock = Mock()
    redis_mock.incr.return_value = 11
    pipe = redis_mock.pipeline.return_value
    store = RedisWorkflowStore(client=redis_mock)

    record = store.create_run_record(4, {"s": {"status": "success"}}, RunStatus.PASSED)

    assert record.id == 11
    redis_mock.incr.assert_called_once_with("run:seq")
    key, document = pipe.lpush.call_args.args
    assert key == "workflow:4:runs"
    assert json.loads(document)["workflowId"] == 4
    pipe.ltrim.assert_called_once_with("workflow:4:runs", 0, 99)


def test_get_run_records_newest_first():
    redis_mock = Mock()
    newer = json.dumps({"id": 2, "workflowId": 4, "results": {}, "status": "FAILED",
                        "executedAt": "2026-01-02T00:00:00Z"})
    older = json.dumps({"id": 1, "workflowId": 4, "results": {}, "status": "PASSED",
                        "executedAt": "2026-01-01T00:00:00Z"})
    redis_mock.lrange.return_value = [newer.encode(), older.encode()]

    records = RedisWorkflowStore(client=redis_mock).get_run_records(4)

    redis_mock.lrange.assert_called_once_with("workflow:4:runs", 0, -1)
    assert [r.id for r in records] == [2, 1]
    assert records[0].status == RunStatus.FAILED


def test_saved_definition_omits_runtime_status():
    """Run statuses belong to traces, not to the stored definition"""
    redis_mock = Mock()
    redis_mock.incr.return_value = 6
    store = RedisWorkflowStore(client=redis_mock)

    store.create_workflow(1, "Daily report", nodes=[Node(id="s", kind="START", runtime_status=RunStatus.FAILED)])

    saved = json.loads(redis_mock.set.call_args.args[1])
    assert "runtimeStatus" not in saved["nodes"][0]
    assert saved["nodes"][0]["id"] == "s"
    assert Workflow.model_validate(saved).nodes[0].runtime_status == RunStatus.IDLE
