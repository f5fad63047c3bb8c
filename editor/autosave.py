"""Debounced, single-flight auto-save."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from schemas.portfolio import Portfolio

from .errors import PersistenceError, StaleRequestIgnored

if TYPE_CHECKING:
    from storage.base import PortfolioStore

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 2.0

SavedCallback = Callable[[str, Portfolio, dict[str, Any]], None]
ErrorCallback = Callable[[str, PersistenceError], None]


class SaveState(str, Enum):
    """Coordinator state for the active document."""

    IDLE = "idle"
    PENDING = "pending"  # Debounce timer running
    IN_FLIGHT = "in_flight"  # Save request outstanding


class SaveOutcome(str, Enum):
    """Result of one save attempt."""

    SAVED = "saved"
    FAILED = "failed"
    STALE = "stale"
    NOTHING_TO_SAVE = "nothing_to_save"


class AutoSaveCoordinator:
    """Collapses bursts of field edits into one save per debounce window.

    Manages:
    - A pending-changes buffer for the active document
    - One debounce timer, restarted by every `schedule()`
    - Per-document locks so saves for a document never overlap
    - Discarding responses for documents that are no longer active

    Failed saves keep their changes buffered and are not retried until
    `retry()` or `flush()` is called.
    """

    def __init__(
        self,
        store: PortfolioStore,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_saved: SavedCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Initialize coordinator.

        Args:
            store: Persistence collaborator
            debounce_seconds: Idle period after the last edit before saving
            on_saved: Called after a successful, non-stale save
            on_error: Called once per failed, non-stale save
        """
        self.store = store
        self.debounce_seconds = debounce_seconds
        self.on_saved = on_saved
        self.on_error = on_error

        self.active_document_id: str | None = None
        # Bumped by every activate(); responses from an older binding are stale
        self._generation = 0
        self._pending: dict[str, Any] = {}
        self._timer: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._locks: dict[str, asyncio.Lock] = {}
        self._in_flight: set[str] = set()

    @property
    def state(self) -> SaveState:
        if self.active_document_id in self._in_flight:
            return SaveState.IN_FLIGHT
        if self._timer is not None and not self._timer.done():
            return SaveState.PENDING
        return SaveState.IDLE

    @property
    def pending_changes(self) -> dict[str, Any]:
        return dict(self._pending)

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    def activate(self, document_id: str | None) -> None:
        """Bind the coordinator to a document.

        Cancels the pending debounce for the previous document and drops
        its buffered changes. In-flight requests keep running; their
        responses are discarded when they arrive, even if the same
        document is activated again before then.
        """
        if document_id != self.active_document_id and self._pending:
            logger.info(
                "Dropping %d unsaved field(s) for %s",
                len(self._pending),
                self.active_document_id,
            )
        self._cancel_timer()
        self._pending = {}
        self.active_document_id = document_id
        self._generation += 1

    def buffer(self, changes: dict[str, Any]) -> None:
        """Buffer changes without touching the debounce timer."""
        if self.active_document_id is None:
            raise RuntimeError("No active document to buffer changes for")
        self._pending.update(changes)

    def schedule(self, changes: dict[str, Any]) -> None:
        """Buffer changes and restart the debounce timer.

        Must be called from within a running event loop.
        """
        self.buffer(changes)
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(
            self._debounce(self.active_document_id)
        )

    async def flush(self) -> SaveOutcome:
        """Save buffered changes now, skipping the debounce window."""
        self._cancel_timer()
        if self.active_document_id is None:
            return SaveOutcome.NOTHING_TO_SAVE
        return await self._save(self.active_document_id)

    async def retry(self) -> SaveOutcome:
        """User-initiated retry after a failed save."""
        return await self.flush()

    async def drain(self) -> None:
        """Wait for every outstanding save task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel the debounce timer and wait for in-flight saves."""
        self._cancel_timer()
        await self.drain()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _debounce(self, document_id: str) -> None:
        await asyncio.sleep(self.debounce_seconds)

        # Run the save outside the timer so a later cancel() cannot abort it
        task = asyncio.get_running_loop().create_task(self._save(document_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._timer = None
        logger.debug("Debounce elapsed for %s", document_id)

    async def _save(self, document_id: str) -> SaveOutcome:
        lock = self._locks.setdefault(document_id, asyncio.Lock())

        async with lock:
            if document_id != self.active_document_id:
                return SaveOutcome.STALE

            generation = self._generation
            changes = self._pending
            self._pending = {}
            if not changes:
                return SaveOutcome.NOTHING_TO_SAVE

            logger.info("Saving %s: %s", document_id, ", ".join(sorted(changes)))
            self._in_flight.add(document_id)
            try:
                saved = await self.store.save(document_id, changes)
            except PersistenceError as e:
                return self._handle_failure(document_id, generation, changes, e)
            except Exception:
                logger.exception("Unexpected error saving %s", document_id)
                if generation == self._generation:
                    self._pending = {**changes, **self._pending}
                raise
            finally:
                self._in_flight.discard(document_id)

            try:
                self._check_active(document_id, generation)
            except StaleRequestIgnored as e:
                logger.info("%s", e)
                return SaveOutcome.STALE

            if self.on_saved:
                self.on_saved(document_id, saved, changes)
            return SaveOutcome.SAVED

    def _handle_failure(
        self,
        document_id: str,
        generation: int,
        changes: dict[str, Any],
        error: PersistenceError,
    ) -> SaveOutcome:
        try:
            self._check_active(document_id, generation)
        except StaleRequestIgnored as e:
            logger.info("%s (save had failed: %s)", e, error)
            return SaveOutcome.STALE

        # Keep the failed changes; anything edited since takes precedence
        self._pending = {**changes, **self._pending}
        logger.warning("Save failed for %s: %s", document_id, error)

        if self.on_error:
            self.on_error(document_id, error)
        return SaveOutcome.FAILED

    def _check_active(self, document_id: str, generation: int) -> None:
        if document_id != self.active_document_id or generation != self._generation:
            raise StaleRequestIgnored(document_id, self.active_document_id)
