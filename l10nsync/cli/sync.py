"""Sync command implementation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from l10nsync.runtime.config_loader import load_sync_config
from l10nsync.runtime.context import PlatformStatus, RunContext
from l10nsync.runtime.orchestrator import RunSummary, expand_platforms, run

logger = logging.getLogger("l10nsync.cli.sync")

_STATUS_STYLES = {
    PlatformStatus.UPDATED: "green",
    PlatformStatus.UNCHANGED: "dim",
    PlatformStatus.SKIPPED: "yellow",
    PlatformStatus.PARTIAL: "yellow",
    PlatformStatus.FAILED: "bold red",
}


def render_summary(summary: RunSummary, project_root: Path, console: Console) -> None:
    """Print one row per platform plus skipped locale files."""
    table = Table(title="Localization sync", show_lines=False)
    table.add_column("Platform")
    table.add_column("Status")
    table.add_column("Files written", justify="right")
    table.add_column("Warnings", justify="right")
    table.add_column("Details")

    for result in summary.results:
        style = _STATUS_STYLES.get(result.status, "")
        details = result.message or "; ".join(result.errors)
        table.add_row(
            result.platform,
            f"[{style}]{result.status.value}[/{style}]" if style else result.status.value,
            str(len(result.written)),
            str(len(result.warnings)),
            details,
        )
    console.print(table)

    for result in summary.results:
        for path in result.written:
            try:
                shown = path.relative_to(project_root)
            except ValueError:
                shown = path
            console.print(f"  [green]✓[/green] {result.platform}: {shown}")
    for err in summary.config_errors:
        console.print(f"  [yellow]skipped[/yellow] {err.path.name}: {err.reason}")


def sync_command(args, console: Optional[Console] = None) -> int:
    """Execute the sync command.

    Args:
        args: Parsed command-line arguments containing:
            - platform: ios, android or both
            - project_root: application root (defaults to the current directory)
            - config: optional TOML/JSON path or inline string
            - dry_run: compute changes without writing
            - strict: fail when a platform pipeline failed

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    console = console or Console(stderr=True)
    project_root = Path(getattr(args, "project_root", None) or ".").expanduser().resolve()

    try:
        platforms = expand_platforms(getattr(args, "platform", "both"))
        config = load_sync_config(getattr(args, "config", None))
    except (ValueError, ValidationError, OSError) as err:
        logger.error("Invalid configuration: %s", err)
        return 1

    context = RunContext(
        project_root=project_root,
        config=config,
        dry_run=bool(getattr(args, "dry_run", False)),
    )

    if not context.localizations_dir.is_dir():
        logger.error(
            "localizations directory not found in project root (%s). "
            "Please create a 'localizations' directory with your localization files.",
            context.localizations_dir,
        )
        return 1

    logger.info("Project root: %s", project_root)
    if context.dry_run:
        logger.info("Dry run: no file will be written")

    try:
        summary = run(context, platforms)
    except (OSError, RuntimeError) as err:
        logger.error("Error updating localizations: %s", err, exc_info=True)
        return 1

    render_summary(summary, project_root, console)

    if summary.failed and getattr(args, "strict", False):
        return 1
    return 0
