"""Outbound HTTP collaborator used by API nodes."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol
import requests
from requests.exceptions import RequestException, Timeout, ConnectionError


class TransportError(Exception):
    """The request never produced an HTTP response"""


class InvalidResponseError(Exception):
    """The response body is not valid JSON"""

    def __init__(self, message: str, status_code: int):
        self.status_code = status_code
        super().__init__(message)


@dataclass
class HttpResponse:
    status_code: int
    reason: str = ""
    json_body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpClient(Protocol):
    def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        timeout: float = 30,
    ) -> HttpResponse:
        ...


class RequestsHttpClient:
    """HttpClient backed by a requests session"""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        timeout: float = 30,
    ) -> HttpResponse:
        try:
            response = self.session.request(
                method,
                url,
                headers=headers or {},
                json=body,
                timeout=timeout,
            )
        except Timeout as e:
            raise TransportError(f"Request timed out after {timeout}s: {e}") from e
        except ConnectionError as e:
            raise TransportError(f"Connection failed: {e}") from e
        except RequestException as e:
            raise TransportError(str(e)) from e

        logging.debug("HTTP response received", extra={
            "url": url,
            "method": method,
            "status_code": response.status_code,
        })

        result = HttpResponse(
            status_code=response.status_code,
            reason=response.reason or "",
            headers=dict(response.headers),
        )
        # HEAD and 204 responses carry no body to parse
        if not result.ok or method == "HEAD" or response.status_code == 204:
            return result

        try:
            result.json_body = response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Invalid JSON body: {e}", response.status_code) from e
        return result
