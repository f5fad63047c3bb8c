"""In-process portfolio store."""

import copy
import logging
import uuid
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from editor.errors import PersistenceError
from schemas.portfolio import READ_ONLY_FIELDS, Portfolio, PortfolioStatus

from .base import PortfolioStore

logger = logging.getLogger(__name__)


class InMemoryPortfolioStore(PortfolioStore):
    """Dict-backed store.

    Each update is validated against the full `Portfolio` model, so an
    invalid partial update fails as a whole and leaves the stored
    document untouched.
    """

    def __init__(self, portfolios: list[Portfolio] | None = None) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        for portfolio in portfolios or []:
            self._documents[portfolio.id] = portfolio.to_document()

    @property
    def name(self) -> str:
        return "memory"

    def __contains__(self, document_id: str) -> bool:
        return document_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    async def create(
        self,
        user_id: str,
        name: str,
        template: str = "developer",
    ) -> Portfolio:
        try:
            portfolio = Portfolio(
                id=str(uuid.uuid4()),
                user_id=user_id,
                name=name,
                template=template,
            )
        except PydanticValidationError as e:
            raise PersistenceError(f"Invalid portfolio: {e}") from e

        self._write(portfolio)
        logger.info("Created portfolio %s for %s", portfolio.id, user_id)
        return portfolio

    async def load(self, document_id: str) -> Portfolio:
        return Portfolio.model_validate(copy.deepcopy(self._read(document_id)))

    async def save(self, document_id: str, fields: dict[str, Any]) -> Portfolio:
        current = self._read(document_id)

        illegal = READ_ONLY_FIELDS & set(fields)
        if illegal:
            raise PersistenceError(
                f"Cannot modify read-only field(s): {', '.join(sorted(illegal))}",
                document_id=document_id,
                status_code=400,
            )

        merged = {**copy.deepcopy(current), **copy.deepcopy(fields)}
        merged["updated_at"] = datetime.now().isoformat()
        portfolio = self._validate(document_id, merged)
        self._write(portfolio)
        return portfolio

    async def publish(self, document_id: str) -> Portfolio:
        current = copy.deepcopy(self._read(document_id))
        now = datetime.now().isoformat()
        current.update(
            status=PortfolioStatus.PUBLISHED.value,
            published_at=now,
            updated_at=now,
        )
        portfolio = self._validate(document_id, current)
        self._write(portfolio)
        logger.info("Published portfolio %s", document_id)
        return portfolio

    async def delete(self, document_id: str) -> None:
        self._read(document_id)
        del self._documents[document_id]
        logger.info("Deleted portfolio %s", document_id)

    def _read(self, document_id: str) -> dict[str, Any]:
        try:
            return self._documents[document_id]
        except KeyError:
            raise PersistenceError(
                f"Portfolio not found: {document_id}",
                document_id=document_id,
                status_code=404,
            ) from None

    def _write(self, portfolio: Portfolio) -> None:
        self._documents[portfolio.id] = portfolio.to_document()

    @staticmethod
    def _validate(document_id: str, data: dict[str, Any]) -> Portfolio:
        try:
            return Portfolio.model_validate(data)
        except PydanticValidationError as e:
            raise PersistenceError(
                f"Rejected invalid portfolio data: {e.error_count()} error(s)",
                document_id=document_id,
                status_code=422,
            ) from e
