"""HTTP client for the portal API.

Every form submission ends in exactly one :class:`SubmissionOutcome`:

* ``SUCCESS``: 2xx, ``data`` holds the decoded body
* ``VALIDATION``: 422, ``errors`` maps field -> messages for inline display
* ``HTTP_ERROR``: any other status, generic message
* ``NETWORK``: no response at all (connect error, timeout)
* ``SETUP``: the request could not be built (unknown route, bad payload)

Nothing is retried.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import httpx

from .routes import RouteError, url_for

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again."
NETWORK_ERROR = "Unable to reach the server. Please check your internet connection."


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    VALIDATION = "validation"
    HTTP_ERROR = "http_error"
    NETWORK = "network"
    SETUP = "setup"


@dataclass(frozen=True)
class SubmissionOutcome:
    kind: OutcomeKind
    message: str = ""
    status_code: Optional[int] = None
    data: Any = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    def field_error(self, name: str) -> Optional[str]:
        messages = self.errors.get(name) or []
        return messages[0] if messages else None


def _decode(response: httpx.Response) -> Any:
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return None
    return response.content


def classify(response: httpx.Response) -> SubmissionOutcome:
    body = _decode(response)
    status = response.status_code

    if 200 <= status < 300:
        message = body.get("message", "") if isinstance(body, dict) else ""
        return SubmissionOutcome(OutcomeKind.SUCCESS, message, status, body)

    if status == 422 and isinstance(body, dict):
        errors = {k: list(v) if isinstance(v, (list, tuple)) else [str(v)] for k, v in (body.get("errors") or {}).items()}
        return SubmissionOutcome(OutcomeKind.VALIDATION, body.get("message") or GENERIC_ERROR, status, body, errors)

    return SubmissionOutcome(OutcomeKind.HTTP_ERROR, GENERIC_ERROR, status, body)


class PortalClient:
    def __init__(
        self,
        base_url: str,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
        headers: Optional[dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(
            base_url=self.base_url,
            transport=transport,
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json", **(headers or {})},
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "PortalClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def submit(
        self,
        name: str,
        payload: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
        **params: Any,
    ) -> SubmissionOutcome:
        try:
            method, path = url_for(name, **params)
        except RouteError as e:
            logger.warning("Cannot build request: %s", e)
            return SubmissionOutcome(OutcomeKind.SETUP, GENERIC_ERROR)

        kwargs: dict[str, Any] = {}
        if method == "GET":
            if payload:
                kwargs["params"] = payload
        elif files:
            kwargs["files"] = files
            if payload:
                kwargs["data"] = payload
        elif payload is not None:
            kwargs["json"] = payload

        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            return SubmissionOutcome(OutcomeKind.NETWORK, NETWORK_ERROR)
        except (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError) as e:
            logger.warning("%s %s could not be sent: %s", method, path, e)
            return SubmissionOutcome(OutcomeKind.SETUP, GENERIC_ERROR)

        outcome = classify(response)
        if outcome.kind is OutcomeKind.HTTP_ERROR:
            logger.info("%s %s -> %s", method, path, response.status_code)
        return outcome
