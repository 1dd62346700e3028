"""Executors that reach outside the process: outbound HTTP calls and email."""

import json
import logging
import os
from typing import Dict, Any, Mapping
from services.clients.http import TransportError, InvalidResponseError
from services.clients.mail import MailDeliveryError
from services.steps.builtin import SUCCESS
from services.steps.registry import register_step, StepClients
from services.steps.schemas import ApiCallConfig, SendEmailConfig, parse_step_config
from shared.constants import DEFAULT_API_CALL_TIMEOUT_SECONDS
from shared.exceptions import ApiCallFailedError, EmailFailedError
from shared.types import Node, NodeKind


def default_api_timeout() -> float:
    return float(os.getenv("API_CALL_TIMEOUT_SECONDS", DEFAULT_API_CALL_TIMEOUT_SECONDS))


@register_step(NodeKind.API)
def api_call_step(node: Node, config: Dict[str, Any], context: Mapping[str, Any], clients: StepClients) -> Dict[str, Any]:
    try:
        api_config = parse_step_config(ApiCallConfig, config)
    except ValueError as e:
        raise ApiCallFailedError(f"API request failed: {e}", node_id=node.id)

    url, method = api_config.url, api_config.method
    timeout = api_config.timeout or default_api_timeout()

    try:
        response = clients.http.request(
            url,
            method,
            headers=api_config.headers,
            body=api_config.body,
            timeout=timeout,
        )
    except TransportError as e:
        raise ApiCallFailedError(
            f"API request failed: {e}", node_id=node.id, url=url, method=method
        )
    except InvalidResponseError as e:
        raise ApiCallFailedError(
            f"API request failed: {e}", node_id=node.id, url=url, method=method,
            http_status_code=e.status_code
        )

    if not response.ok:
        raise ApiCallFailedError(
            f"API request failed: HTTP {response.status_code} {response.reason}".rstrip(),
            node_id=node.id, url=url, method=method, http_status_code=response.status_code
        )

    logging.info("API call succeeded", extra={
        "node_id": node.id,
        "url": url,
        "method": method,
        "status_code": response.status_code,
    })
    return {"status": SUCCESS, "data": response.json_body}


@register_step(NodeKind.EMAIL)
def send_email_step(node: Node, config: Dict[str, Any], context: Mapping[str, Any], clients: StepClients) -> Dict[str, Any]:
    try:
        email_config = parse_step_config(SendEmailConfig, config)
    except ValueError as e:
        raise EmailFailedError(f"Email sending failed: {e}", node_id=node.id)

    body = email_config.body
    if body is None or body == "":
        body = json.dumps(dict(context), separators=(",", ":"), default=str)
    elif not isinstance(body, str):
        body = json.dumps(body, default=str)
    subject = str(email_config.subject)

    try:
        clients.mailer.send(email_config.to, subject, body)
    except MailDeliveryError as e:
        raise EmailFailedError(
            f"Email sending failed: {e}", node_id=node.id, to=email_config.to
        )

    return {"status": SUCCESS, "to": email_config.to, "subject": subject, "body": body}
