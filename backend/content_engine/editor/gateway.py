"""
Transport between the editor and the override store.

HttpOverrideGateway talks to the /api/v1 endpoints; StoreOverrideGateway
calls the application services directly and must run inside an app context.
Both return records in API shape and raise GatewayError on any failure.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from sqlalchemy.exc import SQLAlchemyError

from content_engine.application.overrides.delete_override import delete_override
from content_engine.application.overrides.queries import list_overrides
from content_engine.application.overrides.save_override import save_override
from content_engine.application.overrides.update_override import update_override
from content_engine.domain.invariants.exceptions import ContentEngineError
from content_engine.normalizers.section import normalize_override

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class GatewayError(ContentEngineError):
    status_code = 502
    default_reason = "gateway_error"

    def __init__(self, message: str, *, reason: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, reason=reason)
        if status_code is not None:
            self.status_code = status_code


class HttpOverrideGateway:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise GatewayError(f"{method} {url} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise GatewayError(
                f"{method} {url} returned a non-JSON response",
                status_code=response.status_code,
            ) from exc

        if response.status_code >= 400:
            raise GatewayError(
                body.get("message") or f"{method} {url} returned {response.status_code}",
                reason=body.get("reason"),
                status_code=response.status_code,
            )
        return body

    def list_overrides(self, page_key: str) -> List[Record]:
        return self._request("GET", "/overrides", params={"page": page_key})["overrides"]

    def create_override(self, payload: Record) -> Record:
        return self._request("POST", "/overrides", json=payload)["override"]

    def update_override(self, override_id: str, patch: Record) -> Record:
        return self._request("PUT", f"/overrides/{override_id}", json=patch)["override"]

    def delete_override(self, override_id: str) -> Dict[str, bool]:
        return self._request("DELETE", f"/overrides/{override_id}")


class StoreOverrideGateway:
    """In-process gateway, used for server-side application and tooling."""

    def _call(self, operation: str, func, **kwargs):
        try:
            return func(**kwargs)
        except (ContentEngineError, SQLAlchemyError) as exc:
            logger.warning("%s failed: %s", operation, exc)
            raise GatewayError(
                f"{operation} failed: {exc}",
                reason=getattr(exc, "reason", None),
                status_code=getattr(exc, "status_code", None),
            ) from exc

    def list_overrides(self, page_key: str) -> List[Record]:
        records = self._call("list_overrides", list_overrides, page_key=page_key)
        return [normalize_override(record) for record in records]

    def create_override(self, payload: Record) -> Record:
        record, _created = self._call("save_override", save_override, data=payload)
        return normalize_override(record)

    def update_override(self, override_id: str, patch: Record) -> Record:
        record = self._call("update_override", update_override, override_id=override_id, data=patch)
        return normalize_override(record)

    def delete_override(self, override_id: str) -> Dict[str, bool]:
        return self._call("delete_override", delete_override, override_id=override_id)
