"""Editor core for PRISMA portfolios.

Per-editor session state with:
- Bounded linear undo/redo history
- Debounced, single-flight auto-save
- Stale-response discarding on document switch
"""

from .autosave import AutoSaveCoordinator, SaveOutcome, SaveState
from .errors import (
    AuthorizationError,
    EditorError,
    EnhancementError,
    PersistenceError,
    SessionRequiredError,
    StaleRequestIgnored,
    ValidationError,
)
from .history import DEFAULT_HISTORY_LIMIT, HistoryManager
from .session import EditorSession

__all__ = [
    "AutoSaveCoordinator",
    "SaveOutcome",
    "SaveState",
    "EditorError",
    "ValidationError",
    "PersistenceError",
    "StaleRequestIgnored",
    "SessionRequiredError",
    "AuthorizationError",
    "EnhancementError",
    "DEFAULT_HISTORY_LIMIT",
    "HistoryManager",
    "EditorSession",
]
