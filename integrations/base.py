"""Base classes for AI enhancement integrations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class EnhancementResult:
    """Normalized output of an AI enhancement call.

    The editor only uses `enhanced`; the rest is metadata shown to
    the user alongside the suggestion.
    """

    enhanced: str
    quality: int | None = None
    model: str | None = None
    credits_remaining: int | None = None
    metrics: list[str] = field(default_factory=list)

    # Raw data for debugging
    raw: dict = field(default_factory=dict)


class EnhancementProvider(ABC):
    """Abstract interface for AI content enhancement.

    Providers are called only on explicit user action. Their results
    are routed through the editor history like any other edit.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        ...

    @abstractmethod
    async def enhance_bio(
        self,
        bio: str,
        context: dict[str, Any] | None = None,
    ) -> EnhancementResult:
        """Rewrite a portfolio bio.

        Args:
            bio: Current bio text
            context: Optional hints (title, skills, tone)

        Returns:
            EnhancementResult with the rewritten bio

        Raises:
            ValidationError: If the input is unusable
            EnhancementError: If the provider call fails
        """
        ...

    @abstractmethod
    async def optimize_project(self, project: dict[str, Any]) -> EnhancementResult:
        """Rewrite a project description.

        Args:
            project: Project entry (title, description, technologies)

        Returns:
            EnhancementResult with the optimized description and metrics

        Raises:
            ValidationError: If the project lacks title or description
            EnhancementError: If the provider call fails
        """
        ...
