"""Shared utilities for all CLI command modules.

Provides the Rich console instance, logging setup, and the engine
factory used by every command.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from ..engine import VaultSync
from ..models import SyncConfig, SyncResult

console = Console()
logger = logging.getLogger("vaultsync.cli")


def setup_logging(verbose: bool = False) -> None:
    """Route vaultsync logs through Rich on stderr.

    Args:
        verbose: Log INFO and above instead of WARNING and above.
    """
    handler = RichHandler(
        console=Console(stderr=True), show_path=False, markup=False,
    )
    root = logging.getLogger("vaultsync")
    root.handlers = [handler]
    root.setLevel(logging.INFO if verbose else logging.WARNING)
    root.propagate = False


def make_engine(config: SyncConfig) -> VaultSync:
    """Build the sync engine for a resolved configuration."""
    return VaultSync(config)


def outcome_label(result: SyncResult) -> str:
    """Rich markup label for a run outcome.

    Args:
        result: Result of a sync run.

    Returns:
        str: Rich markup string.
    """
    if result.ok:
        return "[bold green]OK[/]"
    return f"[bold red]{result.outcome.value.upper()}[/]"
