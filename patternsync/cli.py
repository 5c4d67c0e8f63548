from __future__ import annotations

# ruff: noqa: UP045
import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from . import __version__
from .browser import PlaywrightConsole, login
from .config import PushProtectionMode, RunConfig, detect_scope, load_config
from .delete import delete_existing
from .errors import (
    AuthenticationError,
    CatalogError,
    NavigationFailure,
    SessionLost,
    ValidationFailure,
)
from .export import DEFAULT_EXPORT_FILE, download_existing
from .patterns import load_pattern_file
from .prompts import RichPrompter
from .report import print_run_summary
from .session import Session
from .sync import SyncReport, check_catalog, sync_patterns

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()

_FATAL = (AuthenticationError, SessionLost, NavigationFailure)


def _push_protection_mode(enable: bool, disable: bool, keep: bool) -> PushProtectionMode:
    if keep:
        return PushProtectionMode.keep
    if disable:
        return PushProtectionMode.disable
    if enable:
        return PushProtectionMode.enable
    return PushProtectionMode.unset


def _base_config(
    target: str,
    *,
    scope: Optional[str],
    server: Optional[str],
    config: Optional[Path],
    headed: bool = False,
    debug: bool = False,
) -> RunConfig:
    cfg = load_config(config)
    if server:
        cfg.server = server.rstrip("/")
    cfg.target = target.strip()
    try:
        cfg.scope = detect_scope(cfg.target, scope)
        cfg.url()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    cfg.headless = not headed
    cfg.debug = debug
    return cfg


def _print_banner(cfg: RunConfig) -> None:
    console.print(f"[bold blue]patternsync {__version__}[/bold blue]")
    console.print(f"[dim]Using server: {escape(cfg.server)}[/dim]")
    console.print(f"[dim]Target: {escape(cfg.target)}[/dim]")
    console.print(f"[dim]Scope: {cfg.scope.value}[/dim]\n")


def _wait_for_login() -> None:
    console.input("Log in to the browser window, then press [bold]Enter[/bold] here... ")


async def _ensure_login(cfg: RunConfig) -> None:
    if await login(cfg.server, cfg.state_path, wait_for_operator=_wait_for_login):
        console.print(f"[green]Login successful, state saved to {escape(str(cfg.state_path))}[/green]")
    else:
        console.print(f"[dim]Using existing authentication state from {escape(str(cfg.state_path))}[/dim]")


async def _open_session(cfg: RunConfig) -> Session:
    await _ensure_login(cfg)
    remote = await PlaywrightConsole.start(state_path=cfg.state_path, headless=cfg.headless)
    return Session(remote=remote, config=cfg, out=console, prompter=RichPrompter(console))


async def _run_sync(cfg: RunConfig) -> SyncReport:
    session = await _open_session(cfg)
    try:
        return await sync_patterns(session, cfg.patterns)
    finally:
        await session.remote.close()


async def _run_download(cfg: RunConfig, out: Path) -> int:
    session = await _open_session(cfg)
    try:
        return await download_existing(session, out)
    finally:
        await session.remote.close()


async def _run_delete(cfg: RunConfig) -> list[str]:
    session = await _open_session(cfg)
    try:
        return await delete_existing(session)
    finally:
        await session.remote.close()


def _fatal(exc: Exception) -> typer.Exit:
    if isinstance(exc, SessionLost):
        console.print(f"[bold red]Session lost:[/bold red] {escape(str(exc))}")
    elif isinstance(exc, AuthenticationError):
        console.print(f"[bold red]Authentication error:[/bold red] {escape(str(exc))}")
    else:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=1)


@app.command()
def sync(
    target: str = typer.Argument(..., help="Repository (owner/repo), organization, or enterprise."),
    pattern: list[Path] = typer.Option(
        ..., "--pattern", "-p", exists=True, dir_okay=False, help="Pattern file(s) to upload."
    ),
    scope: Optional[str] = typer.Option(
        None, "--scope", help="repo|org|enterprise (auto-detected for owner/repo targets)"
    ),
    server: Optional[str] = typer.Option(None, "--server", help="GitHub server URL."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to patternsync.toml"),
    include: Optional[list[str]] = typer.Option(
        None, "--include", help="Only process these pattern names (globs allowed)."
    ),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", help="Skip these pattern names (globs allowed)."
    ),
    dry_run_threshold: Optional[int] = typer.Option(
        None, "--dry-run-threshold", min=0, help="Dry-run hits allowed before asking to confirm."
    ),
    dry_run_all_repos: bool = typer.Option(
        False, "--dry-run-all-repos", help="Dry run against every repository (org/enterprise)."
    ),
    dry_run_repo: Optional[list[str]] = typer.Option(
        None, "--dry-run-repo-list", help="Repository to include in the dry run (repeatable)."
    ),
    dry_run_max_polls: Optional[int] = typer.Option(
        None, "--dry-run-max-polls", min=1, help="Give up on a dry run after this many status checks."
    ),
    enable_push_protection: bool = typer.Option(
        False, "--enable-push-protection", help="Enable push protection for processed patterns."
    ),
    disable_push_protection: bool = typer.Option(
        False, "--disable-push-protection", help="Disable push protection for processed patterns."
    ),
    keep_push_protection: bool = typer.Option(
        False,
        "--keep-push-protection",
        "--no-change-push-protection",
        help="Leave push protection settings untouched.",
    ),
    max_test_tries: Optional[int] = typer.Option(
        None, "--max-test-tries", min=1, help="Polls of the pattern test result before giving up."
    ),
    force: bool = typer.Option(False, "--force", help="Submit patterns even when unchanged."),
    no_validate: bool = typer.Option(False, "--no-validate", help="Skip pattern validation."),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window."),
    debug: bool = typer.Option(False, "--debug", help="Verbose output and screenshots."),
) -> None:
    """Create or update custom secret scanning patterns on a target."""
    cfg = _base_config(target, scope=scope, server=server, config=config, headed=headed, debug=debug)
    cfg.patterns = list(pattern)
    if include:
        cfg.include = list(include)
    if exclude:
        cfg.exclude = list(exclude)
    if dry_run_threshold is not None:
        cfg.dry_run_threshold = dry_run_threshold
    if dry_run_all_repos:
        cfg.dry_run_all_repos = True
    if dry_run_repo:
        cfg.dry_run_repo_list = list(dry_run_repo)
    if dry_run_max_polls is not None:
        cfg.dry_run_max_polls = dry_run_max_polls
    if max_test_tries is not None:
        cfg.max_test_tries = max_test_tries
    mode = _push_protection_mode(enable_push_protection, disable_push_protection, keep_push_protection)
    if mode is not PushProtectionMode.unset:
        cfg.push_protection = mode
    cfg.force_submission = force
    cfg.validate = not no_validate

    _print_banner(cfg)
    try:
        report = asyncio.run(_run_sync(cfg))
    except _FATAL as exc:
        raise _fatal(exc) from exc

    console.print()
    print_run_summary(console, report)
    raise typer.Exit(code=0)


@app.command()
def validate(
    pattern: list[Path] = typer.Option(
        ..., "--pattern", "-p", exists=True, dir_okay=False, help="Pattern file(s) to validate."
    ),
) -> None:
    """Validate pattern files without contacting the server."""
    console.print("[yellow]Running validation-only mode (no upload)[/yellow]")
    for path in pattern:
        console.print(f"\n[blue]Loading pattern file: {escape(str(path))}[/blue]")
        try:
            check_catalog(console, load_pattern_file(path), str(path))
        except (CatalogError, ValidationFailure) as exc:
            console.print(f"[bold red]Validation failed for {escape(str(path))}:[/bold red] {escape(str(exc))}")
            raise typer.Exit(code=1) from exc

    console.print("\n[bold green]All pattern files passed validation![/bold green]")
    raise typer.Exit(code=0)


@app.command()
def download(
    target: str = typer.Argument(..., help="Repository (owner/repo), organization, or enterprise."),
    out: Path = typer.Option(Path(DEFAULT_EXPORT_FILE), "--out", help="Where to write the catalog."),
    scope: Optional[str] = typer.Option(None, "--scope", help="repo|org|enterprise"),
    server: Optional[str] = typer.Option(None, "--server", help="GitHub server URL."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to patternsync.toml"),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window."),
    debug: bool = typer.Option(False, "--debug", help="Verbose output and screenshots."),
) -> None:
    """Export the target's existing custom patterns to a catalog file."""
    cfg = _base_config(target, scope=scope, server=server, config=config, headed=headed, debug=debug)
    _print_banner(cfg)
    try:
        count = asyncio.run(_run_download(cfg, out))
    except _FATAL as exc:
        raise _fatal(exc) from exc
    console.print(f"[bold]{count}[/bold] pattern(s) exported.")
    raise typer.Exit(code=0)


@app.command()
def delete(
    target: str = typer.Argument(..., help="Repository (owner/repo), organization, or enterprise."),
    include: Optional[list[str]] = typer.Option(
        None, "--include", help="Only delete these pattern names (globs allowed)."
    ),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", help="Never delete these pattern names (globs allowed)."
    ),
    scope: Optional[str] = typer.Option(None, "--scope", help="repo|org|enterprise"),
    server: Optional[str] = typer.Option(None, "--server", help="GitHub server URL."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to patternsync.toml"),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window."),
    debug: bool = typer.Option(False, "--debug", help="Verbose output and screenshots."),
) -> None:
    """Delete existing custom patterns after a single confirmation."""
    cfg = _base_config(target, scope=scope, server=server, config=config, headed=headed, debug=debug)
    if include:
        cfg.include = list(include)
    if exclude:
        cfg.exclude = list(exclude)
    _print_banner(cfg)
    try:
        asyncio.run(_run_delete(cfg))
    except _FATAL as exc:
        raise _fatal(exc) from exc
    raise typer.Exit(code=0)


@app.command(name="login")
def login_command(
    server: Optional[str] = typer.Option(None, "--server", help="GitHub server URL."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to patternsync.toml"),
) -> None:
    """Sign in interactively and store the browser session for later runs."""
    cfg = load_config(config)
    if server:
        cfg.server = server.rstrip("/")
    if cfg.state_path.exists():
        cfg.state_path.unlink()
    try:
        asyncio.run(_ensure_login(cfg))
    except AuthenticationError as exc:
        raise _fatal(exc) from exc
    raise typer.Exit(code=0)
