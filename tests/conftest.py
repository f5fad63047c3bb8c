"""Shared fixtures for editor tests."""

import asyncio
from typing import Any

import pytest

from schemas.editor_state import UserSession
from schemas.portfolio import Portfolio
from storage.memory import InMemoryPortfolioStore


class ControlledStore(InMemoryPortfolioStore):
    """In-memory store whose saves can be held open or made to fail."""

    def __init__(self, portfolios: list[Portfolio] | None = None) -> None:
        super().__init__(portfolios)
        self.saves: list[tuple[str, dict[str, Any], float]] = []
        self.gate: asyncio.Event | None = None
        self.fail_with: Exception | None = None
        self.concurrent = 0
        self.max_concurrent = 0

    async def save(self, document_id: str, fields: dict[str, Any]) -> Portfolio:
        self.saves.append((document_id, dict(fields), asyncio.get_running_loop().time()))
        self.concurrent += 1
        self.max_concurrent = max(self.max_concurrent, self.concurrent)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.fail_with is not None:
                raise self.fail_with
            return await super().save(document_id, fields)
        finally:
            self.concurrent -= 1


@pytest.fixture
def user() -> UserSession:
    return UserSession(user_id="user-1", access_token="token-1")


@pytest.fixture
def portfolio() -> Portfolio:
    return Portfolio(
        id="portfolio-a",
        user_id="user-1",
        name="Ada Lovelace",
        title="Dev",
        bio="Analytical engine enthusiast.",
        skills=[{"name": "Python", "level": "expert"}],
        projects=[
            {
                "title": "Difference Engine",
                "description": "Mechanical calculator for polynomial tables.",
                "technologies": ["brass", "gears"],
            }
        ],
    )


@pytest.fixture
def other_portfolio() -> Portfolio:
    return Portfolio(
        id="portfolio-b",
        user_id="user-1",
        name="Grace Hopper",
        title="Admiral",
    )


@pytest.fixture
def foreign_portfolio() -> Portfolio:
    return Portfolio(id="portfolio-x", user_id="user-2", name="Someone Else")


@pytest.fixture
def store(portfolio, other_portfolio, foreign_portfolio) -> ControlledStore:
    return ControlledStore([portfolio, other_portfolio, foreign_portfolio])
