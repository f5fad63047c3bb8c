"""Abstract base class for portfolio stores."""

from abc import ABC, abstractmethod
from typing import Any

from schemas.portfolio import Portfolio


class PortfolioStore(ABC):
    """Abstract interface for portfolio persistence.

    The editor treats the store as an opaque key-value store by
    document id. Every failure is reported as a single
    `PersistenceError`; there are no partial-failure semantics.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name (e.g. 'memory', 'json', 'http')."""
        ...

    @abstractmethod
    async def create(
        self,
        user_id: str,
        name: str,
        template: str = "developer",
    ) -> Portfolio:
        """Create a new draft portfolio.

        Args:
            user_id: Owning user
            name: Display name
            template: Template selector

        Returns:
            The created portfolio.

        Raises:
            PersistenceError: If the portfolio could not be created
        """
        ...

    @abstractmethod
    async def load(self, document_id: str) -> Portfolio:
        """Load a portfolio by id.

        Raises:
            PersistenceError: If the portfolio is missing or unreachable
        """
        ...

    @abstractmethod
    async def save(self, document_id: str, fields: dict[str, Any]) -> Portfolio:
        """Apply a partial update.

        Args:
            document_id: Portfolio id
            fields: Top-level fields to overwrite (JSON-mode values)

        Returns:
            The portfolio as stored after the update.

        Raises:
            PersistenceError: If the whole save failed
        """
        ...

    @abstractmethod
    async def publish(self, document_id: str) -> Portfolio:
        """Mark a portfolio as published.

        Raises:
            PersistenceError: If publishing failed
        """
        ...

    @abstractmethod
    async def delete(self, document_id: str) -> None:
        """Delete a portfolio.

        Raises:
            PersistenceError: If deletion failed
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None
