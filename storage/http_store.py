"""PRISMA REST API portfolio store."""

import logging
import os
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from editor.errors import PersistenceError
from schemas.portfolio import Portfolio

from .base import PortfolioStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"


class HttpPortfolioStore(PortfolioStore):
    """Store backed by the PRISMA portfolio API.

    Authentication via environment variables:
        PRISMA_API_TOKEN: Bearer token for the API (or pass api_token)

    Usage:
        store = HttpPortfolioStore("https://prisma.example.com")
        portfolio = await store.load("c0ffee")
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP store.

        Args:
            base_url: API root (default: PRISMA_API_URL or localhost)
            api_token: Bearer token (default: PRISMA_API_TOKEN env var)
            timeout: Request timeout in seconds
            transport: Optional httpx transport override
        """
        self.base_url = (base_url or os.environ.get("PRISMA_API_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.api_token = api_token or os.environ.get("PRISMA_API_TOKEN", "")

        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"

        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "http"

    async def create(
        self,
        user_id: str,
        name: str,
        template: str = "developer",
    ) -> Portfolio:
        data = await self._request(
            "POST",
            "/portfolios",
            None,
            json={"user_id": user_id, "name": name, "template": template},
        )
        return self._parse(data, None)

    async def load(self, document_id: str) -> Portfolio:
        data = await self._request("GET", f"/portfolios/{document_id}", document_id)
        return self._parse(data, document_id)

    async def save(self, document_id: str, fields: dict[str, Any]) -> Portfolio:
        data = await self._request(
            "PUT", f"/portfolios/{document_id}", document_id, json=fields
        )
        return self._parse(data, document_id)

    async def publish(self, document_id: str) -> Portfolio:
        data = await self._request(
            "POST", f"/portfolios/{document_id}/publish", document_id
        )
        return self._parse(data, document_id)

    async def delete(self, document_id: str) -> None:
        await self._request("DELETE", f"/portfolios/{document_id}", document_id)

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        document_id: str | None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.RequestError as e:
            raise PersistenceError(
                f"Failed to connect to PRISMA API: {e}",
                document_id=document_id,
            ) from e

        status = response.status_code
        if status == 401:
            raise PersistenceError(
                "PRISMA API authentication failed. Set PRISMA_API_TOKEN.",
                document_id=document_id,
                status_code=status,
            )
        elif status == 403:
            raise PersistenceError(
                "Access denied to portfolio.",
                document_id=document_id,
                status_code=status,
            )
        elif status == 404:
            raise PersistenceError(
                f"Portfolio not found: {document_id}",
                document_id=document_id,
                status_code=status,
            )
        elif status >= 400:
            raise PersistenceError(
                f"PRISMA API error: {status} - {self._error_message(response)}",
                document_id=document_id,
                status_code=status,
            )

        if status == 204 or not response.content:
            return None

        try:
            body = response.json()
        except ValueError as e:
            raise PersistenceError(
                "PRISMA API returned invalid JSON",
                document_id=document_id,
                status_code=status,
            ) from e
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return str(body.get("error") or body.get("message") or body)
        return str(body)

    @staticmethod
    def _parse(data: Any, document_id: str | None) -> Portfolio:
        if not isinstance(data, dict):
            raise PersistenceError(
                "PRISMA API response missing portfolio data",
                document_id=document_id,
            )
        try:
            return Portfolio.model_validate(data)
        except PydanticValidationError as e:
            raise PersistenceError(
                f"PRISMA API returned an invalid portfolio: {e.error_count()} error(s)",
                document_id=document_id,
            ) from e
