"""File-backed portfolio store.

Storage structure:
    ~/.prisma/portfolios/
    ├── <id>.json
    └── ...
"""

import json
import logging
from pathlib import Path
from typing import Any

from editor.errors import PersistenceError
from schemas.portfolio import Portfolio

from .memory import InMemoryPortfolioStore

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path.home() / ".prisma" / "portfolios"


class JsonFilePortfolioStore(InMemoryPortfolioStore):
    """One JSON file per portfolio, same validation as the in-memory store.

    Only the create/save/publish logic is inherited. Every read and write
    goes through the files, so the parent's document dict stays empty
    and nothing is cached between calls.
    """

    def __init__(self, store_path: Path | str | None = None) -> None:
        super().__init__()
        self.store_path = Path(store_path).expanduser() if store_path else DEFAULT_STORE_PATH
        self.store_path.mkdir(parents=True, exist_ok=True)

    @property
    def name(self) -> str:
        return "json"

    def __contains__(self, document_id: str) -> bool:
        return self._path(document_id).exists()

    def __len__(self) -> int:
        return sum(1 for _ in self.store_path.glob("*.json"))

    def list_ids(self) -> list[str]:
        """List stored portfolio ids."""
        return sorted(p.stem for p in self.store_path.glob("*.json"))

    async def delete(self, document_id: str) -> None:
        path = self._path(document_id)
        if not path.exists():
            raise PersistenceError(
                f"Portfolio not found: {document_id}",
                document_id=document_id,
                status_code=404,
            )
        path.unlink()
        logger.info("Deleted portfolio %s", document_id)

    def _path(self, document_id: str) -> Path:
        # Ids become file names; refuse anything that could escape the store
        if not document_id or "/" in document_id or "\\" in document_id or document_id.startswith("."):
            raise PersistenceError(
                f"Invalid portfolio id: {document_id!r}",
                document_id=document_id,
                status_code=400,
            )
        return self.store_path / f"{document_id}.json"

    def _read(self, document_id: str) -> dict[str, Any]:
        path = self._path(document_id)
        if not path.exists():
            raise PersistenceError(
                f"Portfolio not found: {document_id}",
                document_id=document_id,
                status_code=404,
            )
        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(
                f"Failed to read {path}: {e}",
                document_id=document_id,
            ) from e

    def _write(self, portfolio: Portfolio) -> None:
        path = self._path(portfolio.id)
        try:
            with open(path, "w") as f:
                json.dump(portfolio.to_document(), f, indent=2, default=str)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write {path}: {e}",
                document_id=portfolio.id,
            ) from e
