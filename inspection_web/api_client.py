"""Client for the remote inspection items REST API.

GET/POST /items, PUT/DELETE /items/{id}, JSON bodies. Uses httpx; an
``http_client`` can be injected (tests pass one built on MockTransport).
"""

import logging
from typing import Any

import httpx

from inspection_web.errors import ItemsApiError
from inspection_web.models import InspectionRecord, record_from_wire

logger = logging.getLogger(__name__)


class ItemsApiClient:
    """Thin adapter over the items endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client

    def _url(self, item_id: str | None = None) -> str:
        if item_id is None:
            return f"{self._base_url}/items"
        return f"{self._base_url}/items/{item_id}"

    def _request(self, method: str, url: str, json: dict | None = None) -> httpx.Response:
        client = self._http_client or httpx.Client(timeout=self._timeout)
        should_close = self._http_client is None
        try:
            response = client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ItemsApiError(0, str(exc) or exc.__class__.__name__) from exc
        finally:
            if should_close:
                client.close()

        if response.status_code >= 400:
            self._raise_api_error(response)
        logger.info("%s %s -> %s", method, url, response.status_code)
        return response

    @staticmethod
    def _raise_api_error(response: httpx.Response) -> None:
        message = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = str(body.get("message") or body.get("error") or message)
        logger.warning(
            "%s %s -> %s: %s",
            response.request.method,
            response.request.url,
            response.status_code,
            message,
        )
        raise ItemsApiError(response.status_code, message)

    def list_items(self) -> list[InspectionRecord]:
        response = self._request("GET", self._url())
        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("GET %s returned non-JSON body", self._url())
            raise ItemsApiError(response.status_code, "invalid JSON from items API") from exc
        if not isinstance(data, list):
            raise ItemsApiError(200, "expected a list of items")
        return [record_from_wire(item) for item in data if isinstance(item, dict)]

    def get_item(self, item_id: str) -> InspectionRecord | None:
        """Find one record. The API has no single-item GET, so this scans the list."""
        for record in self.list_items():
            if record.id == item_id:
                return record
        return None

    def create_item(self, payload: dict[str, Any]) -> None:
        self._request("POST", self._url(), json=payload)

    def update_item(self, item_id: str, payload: dict[str, Any]) -> None:
        self._request("PUT", self._url(item_id), json=payload)

    def delete_item(self, item_id: str) -> None:
        self._request("DELETE", self._url(item_id))
