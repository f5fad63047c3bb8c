"""Undo/redo history for editor sessions."""

import copy
import logging
from datetime import datetime
from typing import Any, Callable

from schemas.editor_state import EditorSessionState, HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class HistoryManager:
    """Bounded, linear undo/redo log over document snapshots.

    Every operation takes an `EditorSessionState` and returns the next
    one. Out-of-range undo/redo return the input object unchanged, so
    callers can use `is` to detect that nothing happened. Nothing here
    raises.

    Applying an entry shallow-merges its snapshot over the current
    document: top-level fields missing from the snapshot keep their
    current values.
    """

    def __init__(
        self,
        limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize history manager.

        Args:
            limit: Maximum number of retained entries (oldest evicted first)
            clock: Timestamp source for new entries
        """
        self.limit = max(1, limit)
        self.clock = clock

    def push_to_history(
        self,
        state: EditorSessionState,
        action: str,
        snapshot: dict[str, Any],
    ) -> EditorSessionState:
        """Record a snapshot, discarding any redo branch.

        Args:
            state: Current session state
            action: Label for the entry
            snapshot: Document snapshot (deep-copied here)

        Returns:
            New session state with the cursor on the pushed entry
        """
        entry = HistoryEntry(
            timestamp=self.clock(),
            action=action,
            state=copy.deepcopy(snapshot),
        )

        history = state.history[: state.history_index + 1]
        history.append(entry)

        overflow = len(history) - self.limit
        if overflow > 0:
            history = history[overflow:]

        logger.debug(
            "History push %r (entries=%d, evicted=%d)",
            action,
            len(history),
            max(overflow, 0),
        )

        return state.model_copy(
            update={"history": history, "history_index": len(history) - 1}
        )

    def undo(self, state: EditorSessionState) -> EditorSessionState:
        """Move the cursor back one entry and apply it.

        Returns:
            The same object when there is nothing to undo
        """
        if not self.can_undo(state):
            return state
        return self._apply(state, state.history_index - 1)

    def redo(self, state: EditorSessionState) -> EditorSessionState:
        """Move the cursor forward one entry and apply it.

        Returns:
            The same object when there is nothing to redo
        """
        if not self.can_redo(state):
            return state
        return self._apply(state, state.history_index + 1)

    @staticmethod
    def can_undo(state: EditorSessionState) -> bool:
        return state.history_index > 0

    @staticmethod
    def can_redo(state: EditorSessionState) -> bool:
        return state.history_index < len(state.history) - 1

    def _apply(self, state: EditorSessionState, index: int) -> EditorSessionState:
        entry = state.history[index]
        document = {**state.document, **copy.deepcopy(entry.state)}

        logger.debug("History move %d -> %d (%s)", state.history_index, index, entry.action)

        return state.model_copy(
            update={
                "document": document,
                "history_index": index,
                "is_dirty": True,
            }
        )

    def describe(self, state: EditorSessionState) -> dict[str, Any]:
        """Get a summary of the history log.

        Returns:
            Summary dict with cursor position, labels and flags
        """
        return {
            "entries": len(state.history),
            "limit": self.limit,
            "index": state.history_index,
            "current_action": (
                state.history[state.history_index].action
                if state.history_index >= 0
                else None
            ),
            "actions": [entry.action for entry in state.history],
            "can_undo": self.can_undo(state),
            "can_redo": self.can_redo(state),
        }
