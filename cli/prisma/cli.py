"""PRISMA editor CLI.

Runs editor sessions against the configured portfolio store.
"""

import asyncio
import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import List, Optional

import typer

from cli.prisma.output import (
    console,
    print_config,
    print_error,
    print_history,
    print_info,
    print_json,
    print_portfolio,
    print_success,
    print_warning,
)
from editor import EditorError, EditorSession, SaveOutcome
from editor.config import Config, find_config_file, load_config
from integrations import PrismaAIClient
from schemas.editor_state import UserSession
from storage import create_store

app = typer.Typer(
    name="prisma",
    help="PRISMA portfolio editor",
    no_args_is_help=True,
)

# Config sub-app
config_app = typer.Typer(
    name="config",
    help="Inspect configuration.",
)
app.add_typer(config_app, name="config")

_config_path: Optional[Path] = None

USER_OPTION = typer.Option(
    None,
    "--user",
    "-u",
    envvar="PRISMA_USER_ID",
    help="Acting user id (or PRISMA_USER_ID)",
)


@app.callback()
def main_callback(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to prisma.toml (default: search upwards from cwd)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """PRISMA portfolio editor."""
    global _config_path
    _config_path = config

    settings = _settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.logging.level.upper(),
        format=settings.logging.format,
    )


def _settings() -> Config:
    return load_config(_config_path)


def _user(user_id: Optional[str]) -> Optional[UserSession]:
    if not user_id:
        return None
    return UserSession(user_id=user_id, access_token=os.environ.get("PRISMA_ACCESS_TOKEN"))


def _parse_assignment(raw: str) -> tuple[str, object]:
    """Parse key=value; JSON values are accepted for lists, objects and quoted strings."""
    if "=" not in raw:
        raise typer.BadParameter(f"Expected key=value, got {raw!r}")
    key, value = raw.split("=", 1)
    key = key.strip()
    if value[:1] in ("[", "{", '"'):
        try:
            return key, json.loads(value)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"Invalid JSON for {key}: {e}")
    return key, value


def _open_session(settings: Config, user_id: Optional[str]) -> EditorSession:
    # Edits are saved explicitly at the end of each command
    editor_config = dataclasses.replace(settings.editor, auto_save=False)
    enhancer = None
    if settings.ai.enabled:
        enhancer = PrismaAIClient(
            base_url=settings.ai.base_url or settings.storage.base_url or None,
            api_token=settings.ai.api_token or settings.storage.api_token or None,
            timeout=settings.ai.timeout,
        )
    return EditorSession(
        create_store(settings),
        _user(user_id),
        config=editor_config,
        notifier=print_warning,
        enhancer=enhancer,
    )


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except EditorError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command()
def new(
    name: str = typer.Argument(..., help="Portfolio display name"),
    template: str = typer.Option("developer", "--template", "-t", help="Template selector"),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Create a new draft portfolio."""
    if not user:
        print_error("A user id is required (--user or PRISMA_USER_ID)")
        raise typer.Exit(1)

    async def _new() -> None:
        store = create_store(_settings())
        try:
            portfolio = await store.create(user, name, template)
        finally:
            await store.close()
        print_success(f"Created portfolio {portfolio.id}")

    _run(_new())


@app.command()
def show(
    portfolio_id: str = typer.Argument(..., help="Portfolio id"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """Show a portfolio."""

    async def _show() -> None:
        store = create_store(_settings())
        try:
            portfolio = await store.load(portfolio_id)
        finally:
            await store.close()
        if as_json:
            print_json(portfolio.to_document())
        else:
            print_portfolio(portfolio.to_document())

    _run(_show())


@app.command()
def edit(
    portfolio_id: str = typer.Argument(..., help="Portfolio id"),
    assignments: Optional[List[str]] = typer.Option(
        None,
        "--set",
        "-s",
        help="Field assignment key=value (repeatable)",
    ),
    undo: int = typer.Option(0, "--undo", help="Undo this many edits before saving"),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Edit fields of a portfolio and save.

    Examples:
        prisma edit 3f2a --set title=Developer --set bio="Hi there"
        prisma edit 3f2a --set 'skills=[{"name": "Python"}]'
        prisma edit 3f2a --set title=Oops --undo 1
    """
    updates = [_parse_assignment(raw) for raw in assignments or []]
    if not updates and not undo:
        print_warning("Nothing to do (use --set key=value)")
        raise typer.Exit(0)

    async def _edit() -> None:
        session = _open_session(_settings(), user)
        try:
            await session.load(portfolio_id)
            for key, value in updates:
                session.update_field(key, value)

            for _ in range(undo):
                if not session.undo():
                    print_warning("Nothing left to undo")
                    break

            outcome = await session.save()
            print_history(session.history_summary())
            _report(outcome, session)
        finally:
            await session.close(flush=False)
            await session.store.close()

    _run(_edit())


@app.command()
def enhance(
    portfolio_id: str = typer.Argument(..., help="Portfolio id"),
    project: Optional[int] = typer.Option(
        None,
        "--project",
        "-p",
        help="Optimize the project at this index instead of the bio",
    ),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Enhance the bio (or a project description) with PRISMA AI and save."""

    async def _enhance() -> None:
        session = _open_session(_settings(), user)
        try:
            await session.load(portfolio_id)
            if project is None:
                result = await session.enhance_bio()
            else:
                result = await session.optimize_project(project)

            console.print(result.enhanced)
            if result.quality is not None:
                print_info(f"Quality score: {result.quality}")
            if result.credits_remaining is not None:
                print_info(f"AI credits remaining: {result.credits_remaining}")

            _report(await session.save(), session)
        finally:
            await session.close(flush=False)
            await session.store.close()

    _run(_enhance())


@app.command()
def publish(
    portfolio_id: str = typer.Argument(..., help="Portfolio id"),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Publish a portfolio."""

    async def _publish() -> None:
        session = _open_session(_settings(), user)
        try:
            await session.load(portfolio_id)
            portfolio = await session.publish()
        finally:
            await session.close(flush=False)
            await session.store.close()
        print_success(f"Published {portfolio.name} ({portfolio.id})")

    _run(_publish())


@app.command()
def delete(
    portfolio_id: str = typer.Argument(..., help="Portfolio id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    user: Optional[str] = USER_OPTION,
) -> None:
    """Delete a portfolio."""
    if not yes and not typer.confirm(f"Delete portfolio {portfolio_id}?"):
        raise typer.Exit(0)

    async def _delete() -> None:
        session = _open_session(_settings(), user)
        try:
            await session.load(portfolio_id)
            await session.delete()
        finally:
            await session.close(flush=False)
            await session.store.close()
        print_success(f"Deleted {portfolio_id}")

    _run(_delete())


def _report(outcome: SaveOutcome, session: EditorSession) -> None:
    if outcome == SaveOutcome.SAVED:
        print_success(f"Saved {session.document_id}")
    elif outcome == SaveOutcome.NOTHING_TO_SAVE:
        print_info("No changes to save")
    elif outcome == SaveOutcome.FAILED:
        print_error(session.state.error or "Save failed")
        raise typer.Exit(1)
    else:
        print_warning(f"Save outcome: {outcome.value}")


@config_app.command("show")
def config_show(
    section: Optional[str] = typer.Argument(
        None,
        help="Config section to show (editor, storage, ai, logging)",
    ),
) -> None:
    """Show current configuration."""
    config_path = _config_path or find_config_file()
    if config_path:
        print_info(f"Config file: {config_path}")
    else:
        print_warning("No prisma.toml found (using defaults)")

    data = _settings().to_dict()
    if section:
        if section not in data:
            print_error(f"Unknown section: {section}")
            print_info(f"Available: {', '.join(data)}")
            raise typer.Exit(1)
        data = {section: data[section]}

    print_config(data)


@app.command()
def version() -> None:
    """Show version."""
    from cli.prisma import __version__

    console.print(f"PRISMA editor v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
