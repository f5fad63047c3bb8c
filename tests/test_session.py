"""Tests for the editor session."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from editor import (
    AuthorizationError,
    EditorSession,
    PersistenceError,
    SaveOutcome,
    SessionRequiredError,
    ValidationError,
)
from editor.config import EditorConfig
from integrations.base import EnhancementProvider, EnhancementResult


class FakeEnhancer(EnhancementProvider):
    """Provider that prefixes its input; can be held open with a gate."""

    def __init__(self):
        self.calls = []
        self.gate = None

    @property
    def name(self):
        return "fake"

    async def enhance_bio(self, bio, context=None):
        self.calls.append(("bio", bio, context))
        if self.gate is not None:
            await self.gate.wait()
        return EnhancementResult(enhanced=f"Enhanced: {bio}", quality=87)

    async def optimize_project(self, project):
        self.calls.append(("project", project, None))
        return EnhancementResult(
            enhanced=f"Optimized: {project['description']}",
            metrics=["40% faster"],
        )


def make_session(store, user, auto_save=False, debounce=0.05, **kwargs):
    config = EditorConfig(debounce_seconds=debounce, auto_save=auto_save)
    return EditorSession(store, user, config=config, **kwargs)


class TestMount:
    def test_requires_user(self, store):
        with pytest.raises(SessionRequiredError):
            EditorSession(store, None)

    def test_fresh_session_is_empty(self, store, user):
        session = EditorSession(store, user)

        assert session.document_id is None
        assert session.document == {}
        assert not session.can_undo
        assert not session.can_redo
        assert not session.is_saving

    def test_history_limit_from_config(self, store, user):
        session = EditorSession(store, user, config=EditorConfig(history_limit=7))

        assert session.history.limit == 7
        assert session.autosave.debounce_seconds == 2.0


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_resets_state(self, store, user):
        session = make_session(store, user)

        state = await session.load("portfolio-a")

        assert state.document_id == "portfolio-a"
        assert session.document["title"] == "Dev"
        assert session.history_summary()["actions"] == ["load"]
        assert not session.is_dirty
        assert session.last_saved is not None
        assert session.autosave.active_document_id == "portfolio-a"

    @pytest.mark.asyncio
    async def test_load_snapshot_excludes_managed_fields(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")

        snapshot = session.state.history[0].state

        assert "status" not in snapshot
        assert "updated_at" not in snapshot
        assert "id" not in snapshot
        assert snapshot["name"] == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_foreign_portfolio_is_rejected(self, store, user):
        session = make_session(store, user)

        with pytest.raises(AuthorizationError):
            await session.load("portfolio-x")

        assert session.document_id is None
        assert session.autosave.active_document_id is None

    @pytest.mark.asyncio
    async def test_missing_portfolio_raises_persistence_error(self, store, user):
        session = make_session(store, user)

        with pytest.raises(PersistenceError) as exc:
            await session.load("missing")

        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    async def test_superseded_load_is_discarded(self, store, user):
        session = make_session(store, user)
        original_load = store.load
        release = asyncio.Event()

        async def slow_load(document_id):
            if document_id == "portfolio-a":
                await release.wait()
            return await original_load(document_id)

        store.load = slow_load
        first = asyncio.create_task(session.load("portfolio-a"))
        await asyncio.sleep(0)
        await session.load("portfolio-b")
        release.set()
        await first

        assert session.document_id == "portfolio-b"
        assert session.document["name"] == "Grace Hopper"


class TestEditing:
    @pytest.mark.asyncio
    async def test_update_field_applies_immediately(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")

        session.update_field("title", "Developer")

        assert session.document["title"] == "Developer"
        assert session.is_dirty
        assert session.can_undo
        assert session.history_summary()["current_action"] == "update title"
        assert session.autosave.pending_changes == {"title": "Developer"}

    @pytest.mark.asyncio
    async def test_update_fields_is_one_history_entry(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")

        session.update_fields({"title": "Developer", "tagline": "Ships things"})

        summary = session.history_summary()
        assert summary["entries"] == 2
        assert summary["current_action"] == "update title, tagline"

    @pytest.mark.asyncio
    async def test_edit_is_deep_copied(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        skills = [{"name": "Rust"}]

        session.update_field("skills", skills)
        skills.append({"name": "Go"})

        assert session.document["skills"] == [{"name": "Rust"}]

    def test_update_without_document(self, store, user):
        session = make_session(store, user)

        with pytest.raises(ValidationError):
            session.update_field("title", "Developer")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["id", "user_id", "created_at", "status", "published_at"])
    async def test_managed_fields_are_rejected(self, store, user, key):
        session = make_session(store, user)
        await session.load("portfolio-a")

        with pytest.raises(ValidationError, match="Read-only"):
            session.update_field(key, "x")

        assert session.history_summary()["entries"] == 1

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")

        with pytest.raises(ValidationError, match="Unknown"):
            session.update_field("nickname", "Ada")
        with pytest.raises(ValidationError):
            session.update_fields({})

    @pytest.mark.asyncio
    async def test_edit_is_auto_saved_after_debounce(self, store, user):
        session = make_session(store, user, auto_save=True)
        await session.load("portfolio-a")
        loaded_at = session.last_saved

        session.update_field("title", "Developer")
        await asyncio.sleep(0.1)
        await session.autosave.drain()

        assert [fields for _, fields, _ in store.saves] == [{"title": "Developer"}]
        assert not session.is_dirty
        assert session.last_saved >= loaded_at
        assert session.state.error is None

    @pytest.mark.asyncio
    async def test_history_limit_applies_to_session(self, store, user):
        session = EditorSession(
            store,
            user,
            config=EditorConfig(history_limit=3, auto_save=False),
        )
        await session.load("portfolio-a")

        for i in range(5):
            session.update_field("title", f"Title {i}")

        assert session.history_summary()["actions"] == ["update title"] * 3


class TestUndoRedo:
    @pytest.mark.asyncio
    async def test_undo_and_redo_reschedule_changed_fields(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")
        await session.save()

        assert session.undo() is True
        assert session.document["title"] == "Dev"
        assert session.is_dirty
        assert session.autosave.pending_changes == {"title": "Dev"}

        assert session.redo() is True
        assert session.document["title"] == "Developer"
        assert session.autosave.pending_changes == {"title": "Developer"}

    @pytest.mark.asyncio
    async def test_noop_undo_and_redo(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")

        assert session.undo() is False
        assert session.redo() is False
        assert not session.autosave.has_pending_changes

    @pytest.mark.asyncio
    async def test_undo_does_not_roll_back_publish(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")

        await session.publish()
        assert session.document["status"] == "published"

        session.undo()

        assert session.document["title"] == "Dev"
        assert session.document["status"] == "published"
        assert session.autosave.pending_changes == {"title": "Dev"}


class TestSaving:
    @pytest.mark.asyncio
    async def test_failure_notifies_and_retry_recovers(self, store, user):
        notifier = MagicMock()
        session = make_session(store, user, notifier=notifier)
        await session.load("portfolio-a")
        store.fail_with = PersistenceError("Service unavailable", status_code=503)

        session.update_field("title", "Developer")
        outcome = await session.save()

        assert outcome == SaveOutcome.FAILED
        notifier.assert_called_once()
        assert "Failed to save portfolio" in notifier.call_args[0][0]
        assert session.state.error == "Service unavailable"
        assert session.is_dirty
        assert session.document["title"] == "Developer"

        store.fail_with = None
        assert await session.retry() == SaveOutcome.SAVED
        assert session.state.error is None
        assert not session.is_dirty
        notifier.assert_called_once()

    @pytest.mark.asyncio
    async def test_invalid_value_is_rejected_by_store(self, store, user):
        notifier = MagicMock()
        session = make_session(store, user, notifier=notifier)
        await session.load("portfolio-a")

        session.update_field("tagline", "x" * 501)

        assert await session.save() == SaveOutcome.FAILED
        assert "Rejected invalid portfolio data" in session.state.error
        notifier.assert_called_once()

    @pytest.mark.asyncio
    async def test_save_response_after_switch_is_discarded(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")

        store.gate = asyncio.Event()
        save = asyncio.create_task(session.save())
        await asyncio.sleep(0.01)
        assert session.is_saving

        await session.switch_document("portfolio-b")
        store.gate.set()

        assert await save == SaveOutcome.STALE
        assert session.document_id == "portfolio-b"
        assert session.document["title"] == "Admiral"
        assert not session.is_dirty
        assert session.state.error is None
        assert (await store.load("portfolio-a")).title == "Developer"

    @pytest.mark.asyncio
    async def test_failed_save_from_earlier_visit_is_discarded(self, store, user):
        notifier = MagicMock()
        session = make_session(store, user, notifier=notifier)
        await session.load("portfolio-a")
        session.update_field("title", "Abandoned edit")

        store.gate = asyncio.Event()
        store.fail_with = PersistenceError("offline")
        save = asyncio.create_task(session.save())
        await asyncio.sleep(0.01)

        await session.switch_document("portfolio-b")
        await session.switch_document("portfolio-a")
        store.gate.set()

        assert await save == SaveOutcome.STALE
        notifier.assert_not_called()
        assert not session.autosave.has_pending_changes
        assert session.document["title"] == "Dev"
        assert not session.is_dirty
        assert session.state.error is None

        store.fail_with = None
        session.update_field("bio", "Fresh bio for this visit.")
        assert await session.save() == SaveOutcome.SAVED

        stored = await store.load("portfolio-a")
        assert stored.title == "Dev"
        assert stored.bio == "Fresh bio for this visit."
        assert session.document["title"] == "Dev"

    @pytest.mark.asyncio
    async def test_switch_cancels_pending_auto_save(self, store, user):
        session = make_session(store, user, auto_save=True)
        await session.load("portfolio-a")

        session.update_field("title", "Developer")
        await session.switch_document("portfolio-b")
        await asyncio.sleep(0.1)
        await session.autosave.drain()

        assert store.saves == []
        assert (await store.load("portfolio-a")).title == "Dev"

    @pytest.mark.asyncio
    async def test_server_values_merge_for_fields_not_edited_since(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")

        store.gate = asyncio.Event()
        save = asyncio.create_task(session.save())
        await asyncio.sleep(0.01)
        session.update_field("bio", "Edited while saving")
        store.gate.set()

        assert await save == SaveOutcome.SAVED
        assert session.document["title"] == "Developer"
        assert session.document["bio"] == "Edited while saving"
        assert session.is_dirty
        assert session.autosave.pending_changes == {"bio": "Edited while saving"}

    @pytest.mark.asyncio
    async def test_close_flushes_pending_edits(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")

        await session.close()

        assert len(store.saves) == 1

    @pytest.mark.asyncio
    async def test_close_without_flush_drops_pending_edits(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")

        await session.close(flush=False)

        assert store.saves == []

    @pytest.mark.asyncio
    async def test_context_manager_flushes_on_exit(self, store, user):
        async with make_session(store, user, debounce=10) as session:
            await session.load("portfolio-a")
            session.update_field("tagline", "Poet of numbers")

        assert (await store.load("portfolio-a")).tagline == "Poet of numbers"


class TestPublishAndDelete:
    @pytest.mark.asyncio
    async def test_publish_saves_first(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")

        portfolio = await session.publish()

        assert portfolio.status.value == "published"
        assert portfolio.title == "Developer"
        assert session.document["published_at"] is not None

    @pytest.mark.asyncio
    async def test_publish_refused_when_save_fails(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")
        store.fail_with = PersistenceError("offline")

        with pytest.raises(PersistenceError, match="unsaved"):
            await session.publish()

        assert (await store.load("portfolio-a")).status.value == "draft"

    @pytest.mark.asyncio
    async def test_delete_resets_session(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")

        await session.delete()

        assert "portfolio-a" not in store
        assert session.document_id is None
        assert session.autosave.active_document_id is None

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_session(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")
        session.update_field("title", "Developer")
        store.delete = AsyncMock(side_effect=PersistenceError("nope", status_code=500))

        with pytest.raises(PersistenceError):
            await session.delete()

        assert session.document_id == "portfolio-a"
        assert session.autosave.active_document_id == "portfolio-a"
        assert session.autosave.pending_changes == {"title": "Developer"}


class TestEnhancement:
    @pytest.mark.asyncio
    async def test_enhance_bio_goes_through_history(self, store, user):
        enhancer = FakeEnhancer()
        session = make_session(store, user, enhancer=enhancer)
        await session.load("portfolio-a")

        result = await session.enhance_bio()

        assert result.quality == 87
        assert session.document["bio"] == "Enhanced: Analytical engine enthusiast."
        assert enhancer.calls[0][2] == {"title": "Dev", "skills": ["Python"]}
        assert session.history_summary()["current_action"] == "AI enhance bio"

        session.undo()
        assert session.document["bio"] == "Analytical engine enthusiast."

    @pytest.mark.asyncio
    async def test_enhance_without_provider(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")

        with pytest.raises(ValidationError):
            await session.enhance_bio()

    @pytest.mark.asyncio
    async def test_enhancement_for_inactive_document_is_discarded(self, store, user):
        enhancer = FakeEnhancer()
        enhancer.gate = asyncio.Event()
        session = make_session(store, user, enhancer=enhancer)
        await session.load("portfolio-a")

        task = asyncio.create_task(session.enhance_bio())
        await asyncio.sleep(0)
        await session.switch_document("portfolio-b")
        enhancer.gate.set()
        await task

        assert session.document["bio"] is None
        assert session.history_summary()["entries"] == 1
        assert not session.autosave.has_pending_changes

    @pytest.mark.asyncio
    async def test_apply_enhancement_with_custom_label(self, store, user):
        session = make_session(store, user)
        await session.load("portfolio-a")

        session.apply_enhancement(
            "tagline",
            EnhancementResult(enhanced="Poet of numbers"),
            action="Accept tagline suggestion",
        )

        assert session.document["tagline"] == "Poet of numbers"
        assert session.history_summary()["current_action"] == "Accept tagline suggestion"

    @pytest.mark.asyncio
    async def test_optimize_project_replaces_description_only(self, store, user):
        session = make_session(store, user, enhancer=FakeEnhancer())
        await session.load("portfolio-a")

        result = await session.optimize_project(0)

        project = session.document["projects"][0]
        assert result.metrics == ["40% faster"]
        assert project["title"] == "Difference Engine"
        assert project["technologies"] == ["brass", "gears"]
        assert project["description"].startswith("Optimized: ")
        assert session.history_summary()["current_action"] == (
            "AI optimize project 'Difference Engine'"
        )

    @pytest.mark.asyncio
    async def test_optimize_project_out_of_range(self, store, user):
        session = make_session(store, user, enhancer=FakeEnhancer())
        await session.load("portfolio-a")

        with pytest.raises(ValidationError):
            await session.optimize_project(3)
