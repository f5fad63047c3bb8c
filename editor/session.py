"""Editor session: the per-editor context object.

One `EditorSession` is created per mounted editor and owns the session
state, the undo/redo history and the auto-save coordinator for the
document it is bound to. Nothing is shared between sessions.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from schemas.editor_state import EditorSessionState, UserSession
from schemas.portfolio import EDITABLE_FIELDS, MANAGED_FIELDS, Portfolio

from .autosave import AutoSaveCoordinator, SaveOutcome, SaveState
from .config import EditorConfig
from .errors import (
    AuthorizationError,
    PersistenceError,
    SessionRequiredError,
    ValidationError,
)
from .history import HistoryManager

if TYPE_CHECKING:
    from integrations.base import EnhancementProvider, EnhancementResult
    from storage.base import PortfolioStore

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]

_MISSING = object()


def _snapshot(document: dict[str, Any]) -> dict[str, Any]:
    """History view of a document.

    Store-managed fields (status, timestamps) are left out so undo and
    redo never roll back a publish.
    """
    return {key: value for key, value in document.items() if key not in MANAGED_FIELDS}


class EditorSession:
    """In-memory editor for one portfolio document at a time.

    Edits apply to the in-memory document immediately, are recorded in
    the history and are handed to the auto-save coordinator. The
    in-memory document always holds the user's latest edits, whatever
    the outcome of persistence.
    """

    def __init__(
        self,
        store: PortfolioStore,
        user: UserSession | None,
        config: EditorConfig | None = None,
        notifier: Notifier | None = None,
        enhancer: EnhancementProvider | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Mount an editor session.

        Args:
            store: Persistence collaborator
            user: Authenticated user (required)
            config: Editor settings (debounce, history limit, auto-save)
            notifier: Receives user-visible messages (e.g. save failures)
            enhancer: AI enhancement provider
            clock: Time source

        Raises:
            SessionRequiredError: If no authenticated user is supplied
        """
        if user is None or not user.user_id:
            raise SessionRequiredError("An authenticated user is required to open the editor")

        self.store = store
        self.user = user
        self.config = config or EditorConfig()
        self.notifier = notifier
        self.enhancer = enhancer
        self.clock = clock

        self.history = HistoryManager(limit=self.config.history_limit, clock=clock)
        self.autosave = AutoSaveCoordinator(
            store,
            debounce_seconds=self.config.debounce_seconds,
            on_saved=self._on_saved,
            on_error=self._on_error,
        )
        self.state = EditorSessionState()
        self._load_generation = 0

    async def __aenter__(self) -> "EditorSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close(flush=exc_info[0] is None)

    # -- Read accessors -------------------------------------------------

    @property
    def document_id(self) -> str | None:
        return self.state.document_id

    @property
    def document(self) -> dict[str, Any]:
        return self.state.document

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo(self.state)

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo(self.state)

    @property
    def is_dirty(self) -> bool:
        return self.state.is_dirty

    @property
    def is_saving(self) -> bool:
        return self.autosave.state == SaveState.IN_FLIGHT

    @property
    def last_saved(self) -> datetime | None:
        return self.state.last_saved

    def history_summary(self) -> dict[str, Any]:
        return self.history.describe(self.state)

    # -- Loading ----------------------------------------------------------

    async def load(self, document_id: str) -> EditorSessionState:
        """Load a portfolio and reset the session around it.

        Cancels the pending auto-save of the previous document. A load
        superseded by a later `load()` call is discarded.

        Raises:
            PersistenceError: If the store cannot load the portfolio
            AuthorizationError: If the portfolio belongs to another user
        """
        self._load_generation += 1
        generation = self._load_generation

        self.autosave.activate(document_id)
        self.state = EditorSessionState()

        portfolio = await self.store.load(document_id)

        if generation != self._load_generation:
            logger.info("Discarding superseded load of %s", document_id)
            return self.state

        if portfolio.user_id != self.user.user_id:
            self.autosave.activate(None)
            raise AuthorizationError(f"Unauthorized access to portfolio {document_id}")

        document = portfolio.to_document()
        state = EditorSessionState(
            document_id=document_id,
            document=document,
            last_saved=self.clock(),
        )
        self.state = self.history.push_to_history(state, "load", _snapshot(document))
        logger.info("Loaded portfolio %s", document_id)
        return self.state

    async def switch_document(self, document_id: str) -> EditorSessionState:
        """Switch the editor to another portfolio."""
        return await self.load(document_id)

    # -- Editing ----------------------------------------------------------

    def update_field(self, key: str, value: Any, action: str | None = None) -> None:
        """Set one top-level field.

        Args:
            key: Portfolio field name
            value: New JSON-mode value
            action: History label (default: "update <key>")

        Raises:
            ValidationError: If no document is loaded or the field is not editable
        """
        self.update_fields({key: value}, action=action or f"update {key}")

    def update_fields(self, updates: dict[str, Any], action: str | None = None) -> None:
        """Set several top-level fields as one history entry."""
        self._require_document()
        self._validate_fields(updates)

        changes = copy.deepcopy(updates)
        document = {**self.state.document, **changes}
        state = self.state.model_copy(
            update={"document": document, "is_dirty": True, "error": None}
        )
        label = action or f"update {', '.join(updates)}"
        self.state = self.history.push_to_history(state, label, _snapshot(document))
        self._schedule(changes)

    def undo(self) -> bool:
        """Undo the last edit.

        Returns:
            True if the document changed
        """
        return self._move(self.history.undo)

    def redo(self) -> bool:
        """Redo the last undone edit.

        Returns:
            True if the document changed
        """
        return self._move(self.history.redo)

    def _move(self, step: Callable[[EditorSessionState], EditorSessionState]) -> bool:
        previous = self.state
        state = step(previous)
        if state is previous:
            return False

        changed = {
            key: copy.deepcopy(value)
            for key, value in state.document.items()
            if previous.document.get(key, _MISSING) != value
        }
        self.state = state
        if changed:
            self._schedule(changed)
        return True

    # -- AI enhancement ---------------------------------------------------

    def apply_enhancement(
        self,
        field: str,
        result: EnhancementResult,
        action: str | None = None,
    ) -> None:
        """Commit AI output to a field through the history."""
        self.update_field(field, result.enhanced, action=action or f"AI enhance {field}")

    async def enhance_bio(self) -> EnhancementResult:
        """Enhance the bio with the configured provider and apply it.

        Raises:
            ValidationError: If no provider is configured or the bio is unusable
            EnhancementError: If the provider fails
        """
        provider = self._require_enhancer()
        document_id = self._require_document()

        context = {
            "title": self.document.get("title"),
            "skills": [s.get("name") for s in self.document.get("skills") or []],
        }
        result = await provider.enhance_bio(self.document.get("bio") or "", context)

        if document_id != self.document_id:
            logger.info("Discarding bio enhancement for inactive portfolio %s", document_id)
            return result

        self.apply_enhancement("bio", result)
        return result

    async def optimize_project(self, index: int) -> EnhancementResult:
        """Optimize one project description and apply it."""
        provider = self._require_enhancer()
        document_id = self._require_document()

        projects = self.document.get("projects") or []
        if not 0 <= index < len(projects):
            raise ValidationError(f"No project at index {index}")

        result = await provider.optimize_project(projects[index])

        if document_id != self.document_id:
            logger.info("Discarding project optimization for inactive portfolio %s", document_id)
            return result

        projects = copy.deepcopy(self.document.get("projects") or [])
        if index >= len(projects):
            raise ValidationError(f"No project at index {index}")
        projects[index]["description"] = result.enhanced
        self.update_field(
            "projects",
            projects,
            action=f"AI optimize project '{projects[index].get('title', index)}'",
        )
        return result

    # -- Persistence ------------------------------------------------------

    async def save(self) -> SaveOutcome:
        """Save buffered edits now."""
        return await self.autosave.flush()

    async def retry(self) -> SaveOutcome:
        """Retry after a failed save ("try again")."""
        return await self.autosave.retry()

    async def publish(self) -> Portfolio:
        """Save outstanding edits, then publish.

        Raises:
            PersistenceError: If saving or publishing fails
        """
        document_id = self._require_document()

        await self.autosave.drain()
        if await self.save() == SaveOutcome.FAILED:
            raise PersistenceError(
                "Cannot publish while changes are unsaved",
                document_id=document_id,
            )

        portfolio = await self.store.publish(document_id)

        if document_id != self.document_id:
            logger.info("Discarding publish response for inactive portfolio %s", document_id)
            return portfolio

        published = portfolio.to_document()
        document = {
            **self.state.document,
            **{key: published[key] for key in ("status", "published_at", "updated_at")},
        }
        self.state = self.state.model_copy(update={"document": document})
        logger.info("Published portfolio %s", document_id)
        return portfolio

    async def delete(self) -> None:
        """Delete the loaded portfolio and reset the session.

        Raises:
            PersistenceError: If the store refuses; the session is left intact
        """
        document_id = self._require_document()
        pending = self.autosave.pending_changes

        self.autosave.activate(None)
        try:
            await self.store.delete(document_id)
        except PersistenceError:
            self.autosave.activate(document_id)
            if pending:
                self.autosave.buffer(pending)
            raise

        self.state = EditorSessionState()
        logger.info("Deleted portfolio %s", document_id)

    async def close(self, flush: bool = True) -> None:
        """Unmount: optionally flush pending edits, then stop auto-save."""
        if flush and self.document_id and self.autosave.has_pending_changes:
            await self.autosave.flush()
        await self.autosave.close()

    # -- Callbacks --------------------------------------------------------

    def _on_saved(
        self,
        document_id: str,
        saved: Portfolio,
        changes: dict[str, Any],
    ) -> None:
        pending = self.autosave.pending_changes

        # Take server-side values for everything not edited since the request
        server = saved.to_document()
        document = dict(self.state.document)
        for key, value in server.items():
            if key not in pending:
                document[key] = value

        self.state = self.state.model_copy(
            update={
                "document": document,
                "is_dirty": bool(pending),
                "last_saved": self.clock(),
                "error": None,
            }
        )
        logger.debug("Saved %d field(s) of %s", len(changes), document_id)

    def _on_error(self, document_id: str, error: PersistenceError) -> None:
        self.state = self.state.model_copy(update={"is_dirty": True, "error": str(error)})
        if self.notifier:
            self.notifier(f"Failed to save portfolio: {error}. Try again?")

    # -- Helpers ----------------------------------------------------------

    def _schedule(self, changes: dict[str, Any]) -> None:
        if self.config.auto_save:
            self.autosave.schedule(changes)
        else:
            self.autosave.buffer(changes)

    def _require_document(self) -> str:
        if self.state.document_id is None:
            raise ValidationError("No portfolio is loaded")
        return self.state.document_id

    def _require_enhancer(self) -> EnhancementProvider:
        if self.enhancer is None:
            raise ValidationError("No AI enhancement provider configured")
        return self.enhancer

    @staticmethod
    def _validate_fields(updates: dict[str, Any]) -> None:
        if not updates:
            raise ValidationError("No fields to update")
        read_only = MANAGED_FIELDS & set(updates)
        if read_only:
            raise ValidationError(f"Read-only field(s): {', '.join(sorted(read_only))}")
        unknown = set(updates) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
