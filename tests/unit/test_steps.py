"""
Unit tests for the per-kind step executors.
"""

import json
import pytest
from unittest.mock import Mock
from services.clients.http import HttpResponse, InvalidResponseError, TransportError
from services.clients.mail import SimulatedMailer
from services.steps.builtin import start_step, end_step, text_annotation_step, condition_step
from services.steps.external import api_call_step, send_email_step
from services.steps.registry import StepClients, get_step_executor, list_step_kinds
from shared.exceptions import ApiCallFailedError, EmailFailedError, UnknownNodeKindError
from shared.types import Node, NodeKind


def make_clients(http=None, mailer=None):
    return StepClients(http=http or Mock(), mailer=mailer or SimulatedMailer(fail=False))


def api_node(**config):
    return Node(id="api_1", kind="API", config=config)


@pytest.fixture(autouse=True)
def default_timeout(monkeypatch):
    monkeypatch.delenv("API_CALL_TIMEOUT_SECONDS", raising=False)


def test_all_kinds_registered():
    assert set(list_step_kinds()) == set(NodeKind)


def test_unknown_kind_has_no_executor():
    node = Node(id="w", kind="WEBHOOK")

    with pytest.raises(UnknownNodeKindError, match="Unknown node type: WEBHOOK") as exc_info:
        get_step_executor(node)

    assert exc_info.value.node_id == "w"


def test_passive_steps_succeed():
    clients = make_clients()

    assert start_step(Node(id="s", kind="START"), {}, {}, clients) == {"status": "success"}
    assert end_step(Node(id="z", kind="END"), {}, {}, clients) == {"status": "success"}
    assert condition_step(Node(id="c", kind="CONDITION"), {"label": "x"}, {}, clients) == {"status": "success"}


def test_text_annotation_records_text():
    clients = make_clients()

    assert text_annotation_step(Node(id="t", kind="TEXT"), {"text": "note"}, {}, clients) == {
        "status": "success", "text": "note"
    }
    assert text_annotation_step(Node(id="t", kind="TEXT"), {}, {}, clients)["text"] == ""


def test_api_call_success():
    """Parsed JSON body lands in the payload"""
    http = Mock()
    http.request.return_value = HttpResponse(status_code=200, reason="OK", json_body={"v": 1})

    payload = api_call_step(api_node(url="https://x/ok"), {"url": "https://x/ok"}, {}, make_clients(http))

    assert payload == {"status": "success", "data": {"v": 1}}
    http.request.assert_called_once_with(
        "https://x/ok", "GET", headers=None, body=None, timeout=30.0
    )


def test_api_call_method_and_timeout_from_config():
    http = Mock()
    http.request.return_value = HttpResponse(status_code=201, json_body={"created": True})
    config = {"url": "https://x/items", "method": "post", "body": {"n": 1}, "timeout": 5, "label": "Create"}

    api_call_step(api_node(**config), config, {}, make_clients(http))

    http.request.assert_called_once_with(
        "https://x/items", "POST", headers=None, body={"n": 1}, timeout=5.0
    )


def test_api_call_timeout_from_environment(monkeypatch):
    monkeypatch.setenv("API_CALL_TIMEOUT_SECONDS", "12")
    http = Mock()
    http.request.return_value = HttpResponse(status_code=200, json_body={})

    api_call_step(api_node(), {"url": "https://x/ok"}, {}, make_clients(http))

    assert http.request.call_args.kwargs["timeout"] == 12.0


def test_api_call_requires_url():
    http = Mock()

    with pytest.raises(ApiCallFailedError, match="API request failed: Invalid ApiCallConfig: url"):
        api_call_step(api_node(), {"method": "GET"}, {}, make_clients(http))

    http.request.assert_not_called()


def test_api_call_rejects_unknown_method():
    with pytest.raises(ApiCallFailedError, match="method"):
        api_call_step(api_node(), {"url": "https://x", "method": "TRACE"}, {}, make_clients())


def test_api_call_non_2xx_fails():
    http = Mock()
    http.request.return_value = HttpResponse(status_code=500, reason="Internal Server Error")

    with pytest.raises(ApiCallFailedError, match="HTTP 500 Internal Server Error") as exc_info:
        api_call_step(api_node(), {"url": "https://x/fail"}, {}, make_clients(http))

    error = exc_info.value.to_step_error()
    assert error.error_type == "API_CALL_FAILED"
    assert error.http_status_code == 500
    assert error.node_id == "api_1"
    assert error.context == {"url": "https://x/fail", "method": "GET"}


def test_api_call_transport_error_fails():
    http = Mock()
    http.request.side_effect = TransportError("Connection failed: refused")

    with pytest.raises(ApiCallFailedError, match="Connection failed: refused"):
        api_call_step(api_node(), {"url": "https://x/down"}, {}, make_clients(http))


def test_api_call_invalid_json_fails():
    http = Mock()
    http.request.side_effect = InvalidResponseError("Invalid JSON body: Expecting value", 200)

    with pytest.raises(ApiCallFailedError, match="Invalid JSON body") as exc_info:
        api_call_step(api_node(), {"url": "https://x/html"}, {}, make_clients(http))

    assert exc_info.value.context["http_status_code"] == 200


def test_send_email_defaults_body_to_context():
    """Without a body, the accumulated context is sent as JSON"""
    mailer = SimulatedMailer(fail=False)
    context = {"s": {"status": "success"}, "a": {"status": "success", "data": {"v": 1}}}
    node = Node(id="e", kind="EMAIL")

    payload = send_email_step(node, {"to": "u@x.com", "subject": "Report"}, context, make_clients(mailer=mailer))

    assert payload["status"] == "success"
    assert payload["to"] == "u@x.com"
    assert payload["subject"] == "Report"
    assert json.loads(payload["body"]) == context
    assert len(mailer.outbox) == 1
    assert mailer.outbox[0].body == payload["body"]


def test_send_email_with_explicit_body():
    mailer = SimulatedMailer(fail=False)
    node = Node(id="e", kind="EMAIL")

    payload = send_email_step(node, {"to": "u@x.com", "subject": "Hi", "body": "Hello"}, {}, make_clients(mailer=mailer))

    assert payload["body"] == "Hello"
    assert mailer.outbox[0].subject == "Hi"


def test_send_email_requires_recipient():
    mailer = SimulatedMailer(fail=False)

    with pytest.raises(EmailFailedError, match="Email sending failed"):
        send_email_step(Node(id="e", kind="EMAIL"), {"subject": "Hi"}, {}, make_clients(mailer=mailer))

    assert len(mailer.outbox) == 0


def test_send_email_delivery_failure():
    mailer = SimulatedMailer(fail=True)

    with pytest.raises(EmailFailedError, match="Simulated delivery failure for u@x.com") as exc_info:
        send_email_step(Node(id="e", kind="EMAIL"), {"to": "u@x.com"}, {}, make_clients(mailer=mailer))

    assert exc_info.value.node_id == "e"


def test_api_call_accepts_head_and_options():
    http = Mock()
    http.request.return_value = HttpResponse(status_code=200, reason="OK")

    for method in ("head", "OPTIONS"):
        payload = api_call_step(api_node(), {"url": "https://x/ping", "method": method}, {}, make_clients(http))
        assert payload == {"status": "success", "data": None}

    assert [c.args[1] for c in http.request.call_args_list] == ["HEAD", "OPTIONS"]
