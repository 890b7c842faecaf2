from __future__ import annotations

from typing import Any, Optional

import httpx

from ..config import settings
from ..schemas import TransactionCreate


class PortalApiError(RuntimeError):
    def __init__(self, status_code: int, detail: Any) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class PortalClient:
    """
    Thin client for the portal HTTP API; what the transaction form submits
    through when it runs outside the server process.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base = (base_url or settings.portal_api_base_url).rstrip("/")
        self.headers = dict(headers or {})
        self.timeout = timeout if timeout is not None else settings.portal_api_timeout_seconds
        self.transport = transport

    def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        try:
            with httpx.Client(
                base_url=self.base,
                headers=self.headers,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                r = client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise PortalApiError(0, str(e)) from e

        if r.status_code >= 400:
            try:
                body = r.json()
                detail = body.get("detail", body) if isinstance(body, dict) else body
            except ValueError:
                detail = r.text
            raise PortalApiError(r.status_code, detail)
        return r.json()

    def create_transaction(self, payload: TransactionCreate) -> dict[str, Any]:
        return self._request("POST", "/transactions", json=payload.model_dump(mode="json"))

    def get_transaction(self, transaction_id: str) -> dict[str, Any]:
        return self._request("GET", f"/transactions/{transaction_id}")

    def submit_for_review(self, transaction_id: str) -> dict[str, Any]:
        return self._request("POST", f"/transactions/{transaction_id}/submit")

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/auth/me")
