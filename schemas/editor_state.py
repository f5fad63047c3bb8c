"""Editor session state schema.

In-memory state for one editor bound to one portfolio document.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """Immutable snapshot in the undo/redo log."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="When the snapshot was taken")
    action: str = Field(..., description="Human-readable action label")
    state: dict[str, Any] = Field(..., description="Deep copy of the document")


class UserSession(BaseModel):
    """Authenticated user, supplied at editor mount time."""

    user_id: str = Field(..., min_length=1)
    access_token: str | None = None
    email: str | None = None


class EditorSessionState(BaseModel):
    """Complete editor session state.

    `history_index` is -1 when there is no history yet and otherwise
    points at the active entry.
    """

    document_id: str | None = Field(None, description="Active document id")
    document: dict[str, Any] = Field(default_factory=dict)

    history: list[HistoryEntry] = Field(default_factory=list)
    history_index: int = Field(-1, ge=-1)

    is_dirty: bool = False
    last_saved: datetime | None = None
    error: str | None = None

    @property
    def can_undo(self) -> bool:
        return self.history_index > 0

    @property
    def can_redo(self) -> bool:
        return self.history_index < len(self.history) - 1

    @property
    def has_unsaved_changes(self) -> bool:
        return self.is_dirty
