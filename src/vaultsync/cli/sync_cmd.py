"""Sync commands: pull, push."""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.panel import Panel

from ..models import SyncDirection, SyncOutcome, SyncResult
from ._common import console, make_engine, outcome_label


def _report(result: SyncResult) -> None:
    """Print a sync result and exit non-zero on failure."""
    if result.outcome == SyncOutcome.ROLLBACK_FAILURE:
        console.print(Panel(
            f"[bold red]{escape(result.message)}[/]\n\n"
            f"Previous vault: [cyan]{result.backup_dir}[/]",
            title="Manual intervention required",
            border_style="red",
        ))
        sys.exit(result.exit_code)

    if not result.ok:
        console.print(f"\n  {outcome_label(result)} {escape(result.message)}")
        if result.rolled_back:
            console.print("  [yellow]The previous vault was put back in place.[/]")
        console.print()
        sys.exit(result.exit_code)

    lines = [f"[bold green]{escape(result.message)}[/]"]
    if result.snapshot:
        lines.append(f"Snapshot: [cyan]{result.snapshot}[/]")
    if result.archive_path:
        lines.append(f"Local copy: [dim]{result.archive_path}[/]")
    if result.backup_dir:
        lines.append(f"Backup: [dim]{result.backup_dir}[/]")
    title = "Pull Complete" if result.direction == SyncDirection.PULL else "Push Complete"
    console.print(Panel("\n".join(lines), title=title, border_style="green"))


def register_sync_commands(main: click.Group) -> None:
    """Register the pull and push commands."""

    @main.command("pull")
    @click.pass_obj
    def sync_pull(obj):
        """Replace the local vault with the latest remote snapshot.

        The current vault is renamed to <vault>_backup_<timestamp>
        before extraction and is left in place afterwards.
        """
        engine = make_engine(obj["config"])
        console.print(
            f"\n  Pulling [cyan]{engine.paths.vault_name}[/] "
            f"from [cyan]{engine.paths.remote_dir}[/]..."
        )
        _report(engine.run("pull"))

    @main.command("push")
    @click.pass_obj
    def sync_push(obj):
        """Upload a fresh snapshot of the local vault.

        The snapshot zip is kept in the local archive directory.
        """
        engine = make_engine(obj["config"])
        console.print(
            f"\n  Pushing [cyan]{engine.paths.vault_dir}[/] "
            f"to [cyan]{engine.paths.remote_dir}[/]..."
        )
        _report(engine.run("push"))
