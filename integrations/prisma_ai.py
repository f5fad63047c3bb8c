"""PRISMA AI endpoints client."""

import logging
import os
from typing import Any

import httpx

from editor.errors import EnhancementError, ValidationError

from .base import EnhancementProvider, EnhancementResult

logger = logging.getLogger(__name__)

MIN_BIO_LENGTH = 10
MIN_PROJECT_DESCRIPTION_LENGTH = 10


class PrismaAIClient(EnhancementProvider):
    """Client for the PRISMA AI enhancement API.

    Authentication via environment variables:
        PRISMA_API_TOKEN: Bearer token (or pass api_token)

    Usage:
        client = PrismaAIClient("https://prisma.example.com")
        result = await client.enhance_bio("I build web apps.")
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        model: str | None = None,
        timeout: float = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize AI client.

        Args:
            base_url: API root (default: PRISMA_AI_URL, then PRISMA_API_URL)
            api_token: Bearer token (default: PRISMA_API_TOKEN env var)
            model: Optional model override sent with each request
            timeout: Request timeout in seconds
            transport: Optional httpx transport override
        """
        self.base_url = (
            base_url
            or os.environ.get("PRISMA_AI_URL")
            or os.environ.get("PRISMA_API_URL")
            or "http://localhost:3000"
        ).rstrip("/")
        self.api_token = api_token or os.environ.get("PRISMA_API_TOKEN", "")
        self.model = model
        self.timeout = timeout
        self._transport = transport

        self._headers = {"Accept": "application/json"}
        if self.api_token:
            self._headers["Authorization"] = f"Bearer {self.api_token}"

    @property
    def name(self) -> str:
        return "prisma"

    async def enhance_bio(
        self,
        bio: str,
        context: dict[str, Any] | None = None,
    ) -> EnhancementResult:
        if not bio or len(bio.strip()) < MIN_BIO_LENGTH:
            raise ValidationError(
                f"Bio must be at least {MIN_BIO_LENGTH} characters to enhance"
            )

        payload: dict[str, Any] = {"bio": bio}
        if context:
            payload["context"] = context
        data = await self._post("/ai/enhance-bio", payload)
        return self._result(data, "enhanced")

    async def optimize_project(self, project: dict[str, Any]) -> EnhancementResult:
        if not project.get("title"):
            raise ValidationError("Project title is required")
        description = project.get("description") or ""
        if len(description.strip()) < MIN_PROJECT_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Project description must be at least "
                f"{MIN_PROJECT_DESCRIPTION_LENGTH} characters to optimize"
            )

        payload = {
            "projectInfo": {
                "title": project["title"],
                "description": description,
                "technologies": project.get("technologies") or [],
            }
        }
        data = await self._post("/ai/optimize-project", payload)
        return self._result(data, "optimized")

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        if self.model:
            payload = {**payload, "model": self.model}

        url = f"{self.base_url}/api/v1{path}"
        logger.debug("POST %s", url)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, json=payload, headers=self._headers)
        except httpx.RequestError as e:
            raise EnhancementError(f"Failed to connect to PRISMA AI: {e}") from e

        if response.status_code == 401:
            raise EnhancementError(
                "PRISMA AI authentication failed. Set PRISMA_API_TOKEN."
            )
        elif response.status_code == 402:
            raise EnhancementError("Not enough AI credits for this enhancement.")
        elif response.status_code == 429:
            raise EnhancementError("AI rate limit exceeded. Try again later.")
        elif response.status_code != 200:
            raise EnhancementError(
                f"PRISMA AI error: {response.status_code} - {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise EnhancementError("PRISMA AI returned invalid JSON") from e
        if not isinstance(data, dict):
            raise EnhancementError("PRISMA AI returned an unexpected payload")
        return data

    @staticmethod
    def _result(data: dict[str, Any], key: str) -> EnhancementResult:
        text = data.get(key)
        if not text:
            raise EnhancementError(data.get("error") or f"PRISMA AI response missing '{key}'")
        return EnhancementResult(
            enhanced=text.strip(),
            quality=data.get("quality"),
            model=data.get("model"),
            credits_remaining=data.get("creditsRemaining"),
            metrics=list(data.get("metrics") or []),
            raw=data,
        )
