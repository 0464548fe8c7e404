"""
Blocking HTTP client for the helpdesk backend.

Requests run on a worker thread via ``asyncio.to_thread`` so the event loop
that owns client state never blocks; results come back to the loop before
anything is mutated.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from helpdesk_sync.models.session import SessionContext
from helpdesk_sync.utils.error_handling import (
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
)
from helpdesk_sync.utils.logging_config import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class HelpdeskHttpClient:
    """Attach the session's bearer token and map HTTP failures to client errors."""

    def __init__(
        self,
        context: SessionContext,
        timeout_seconds: float = 10.0,
        http: Optional[requests.Session] = None,
    ):
        self.context = context
        self.timeout_seconds = timeout_seconds
        self.http = http or requests.Session()

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (or None)."""
        url = f"{self.context.base_url}{path}"
        headers = {"Accept": "application/json", **self.context.auth_headers()}
        try:
            response = self.http.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"{path} not found")
        if response.status_code == 403:
            raise PermissionDeniedError(f"{method} {path} forbidden")
        if not response.ok:
            logger.warning(
                "Backend returned an error",
                extra={"method": method, "path": path, "status": response.status_code},
            )
            raise NetworkError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError(f"{method} {path} returned invalid JSON") from exc

    async def call(self, method: str, path: str, **kwargs: Any) -> Any:
        """Run ``request`` off the event loop."""
        return await asyncio.to_thread(self.request, method, path, **kwargs)


def parse_model(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate one backend payload; malformed data counts as a server failure."""
    try:
        return model.model_validate(payload)
    except PayloadError as exc:
        raise NetworkError(f"Malformed {model.__name__} payload: {exc}") from exc


def parse_models(model: Type[ModelT], payload: Any) -> List[ModelT]:
    if not isinstance(payload, list):
        raise NetworkError(f"Expected a list of {model.__name__}")
    return [parse_model(model, item) for item in payload]
