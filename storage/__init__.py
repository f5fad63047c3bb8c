"""Portfolio persistence backends.

Provides:
- PortfolioStore: the contract the editor consumes
- InMemoryPortfolioStore: dict-backed, for tests and demos
- JsonFilePortfolioStore: one JSON file per portfolio
- HttpPortfolioStore: the PRISMA REST API
"""

from .base import PortfolioStore
from .http_store import HttpPortfolioStore
from .json_store import JsonFilePortfolioStore
from .memory import InMemoryPortfolioStore


def create_store(config=None) -> PortfolioStore:
    """Create the store selected by configuration.

    Args:
        config: Optional Config (default: global config)

    Returns:
        A PortfolioStore instance
    """
    if config is None:
        from editor.config import get_config

        config = get_config()

    storage = config.storage
    if storage.backend == "memory":
        return InMemoryPortfolioStore()
    if storage.backend == "json":
        return JsonFilePortfolioStore(storage.path or None)
    if storage.backend == "http":
        return HttpPortfolioStore(
            base_url=storage.base_url or None,
            api_token=storage.api_token or None,
            timeout=storage.timeout,
        )
    raise ValueError(
        f"Unknown storage backend: {storage.backend}. Expected memory, json or http."
    )


__all__ = [
    "PortfolioStore",
    "InMemoryPortfolioStore",
    "JsonFilePortfolioStore",
    "HttpPortfolioStore",
    "create_store",
]
