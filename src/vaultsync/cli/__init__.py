"""
VaultSync CLI -- push and pull vault snapshots.

The main Click group is defined here and all subcommands are
registered via register functions from their own modules.

    vaultsync push
    vaultsync pull

Entry point: vaultsync.cli:main
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.markup import escape

from .. import __version__
from ..config import load_config
from ..engine import USAGE
from ._common import console, setup_logging


class UsageGroup(click.Group):
    """Click group that answers any command line misuse with the short usage line.

    Unknown commands, unknown options and stray arguments all print
    ``Usage: vaultsync [pull|push]`` to stdout and exit 1.
    """

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError:
            click.echo(USAGE)
            raise click.exceptions.Exit(1)

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except click.UsageError:
            click.echo(USAGE)
            ctx.exit(1)


@click.group(cls=UsageGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="vaultsync")
@click.option("--config", "config_file", default=None, type=click.Path(), help="YAML config file.")
@click.option("--vault-name", default=None, help="Vault directory name and snapshot prefix.")
@click.option("--archive-base", default=None, type=click.Path(), help="Local directory holding the vault.")
@click.option("--remote-name", default=None, help="rclone remote name.")
@click.option("--remote-path", default=None, help="Folder on the remote.")
@click.option("--verbose", "-v", is_flag=True, help="Log each step.")
@click.pass_context
def main(ctx, config_file, vault_name, archive_base, remote_name, remote_path, verbose):
    """VaultSync -- zip snapshot sync between a local vault and rclone."""
    setup_logging(verbose)
    try:
        config = load_config(
            Path(config_file) if config_file else None,
            overrides={
                "vault_name": vault_name,
                "archive_base": archive_base,
                "remote_name": remote_name,
                "remote_path": remote_path,
            },
        )
    except ValidationError as exc:
        console.print(f"\n  [bold red]Invalid configuration:[/] {escape(str(exc))}\n")
        sys.exit(1)

    ctx.obj = {"config": config}
    if ctx.invoked_subcommand is None:
        click.echo(USAGE)
        ctx.exit(1)


# ---------------------------------------------------------------------------
# Register all commands from modular files
# ---------------------------------------------------------------------------

from .sync_cmd import register_sync_commands
from .status import register_status_commands

register_sync_commands(main)
register_status_commands(main)
