"""Status and diagnostics commands: status, doctor."""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..errors import RemoteStoreError
from ..preflight import run_preflight
from ._common import console, make_engine


def register_status_commands(main: click.Group) -> None:
    """Register the status and doctor commands."""

    @main.command("status")
    @click.option("--remote", "show_remote", is_flag=True, help="Also list remote snapshots.")
    @click.pass_obj
    def status(obj, show_remote: bool):
        """Show vault paths, local snapshots and retained backups.

        Nothing is deleted; old snapshots and backups accumulate
        until you remove them yourself.
        """
        engine = make_engine(obj["config"])
        paths = engine.paths

        vault_state = "[green]present[/]" if paths.vault_dir.is_dir() else "[red]missing[/]"
        console.print()
        console.print(Panel(
            f"Vault: [cyan]{paths.vault_dir}[/] ({vault_state})\n"
            f"Archive dir: [cyan]{paths.archive_dir}[/]\n"
            f"Remote: [cyan]{paths.remote_dir}[/]",
            title=f"VaultSync: {paths.vault_name}",
            border_style="magenta",
        ))

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Kind")
        table.add_column("Name", style="cyan")

        for snap in engine.local_snapshots():
            table.add_row("snapshot", snap.name)
        for backup in engine.backups():
            table.add_row("backup", backup.name)

        if show_remote:
            try:
                for name in engine.remote_snapshots():
                    table.add_row("remote", name)
            except RemoteStoreError as exc:
                console.print(f"  [red]Remote listing failed:[/] {escape(str(exc))}")

        if table.row_count:
            console.print(table)
        else:
            console.print("  [dim]No snapshots or backups found.[/]")
        console.print()

    @main.command("doctor")
    @click.pass_obj
    def doctor(obj):
        """Check that rclone, zip and unzip are installed and the remote exists."""
        config = obj["config"]
        result = run_preflight(config)

        console.print()
        for check in result.tools:
            if check.installed:
                version = f" [dim]{escape(check.version)}[/]" if check.version else ""
                console.print(f"  [green]OK[/]      {check.name}{version}")
            else:
                console.print(f"  [red]MISSING[/] {check.name}")
                if check.install_cmd:
                    console.print(f"          install: [cyan]{check.install_cmd}[/]")
                if check.download_url:
                    console.print(f"          download: [dim]{check.download_url}[/]")

        if result.remote_configured:
            console.print(f"  [green]OK[/]      remote {config.remote_name}:")
        else:
            console.print(f"  [red]MISSING[/] remote {config.remote_name}:")
            console.print("          run: [cyan]rclone config[/]")
        console.print()

        if not result.all_ok:
            sys.exit(1)
