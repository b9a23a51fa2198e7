"""
Sync data models -- configuration, resolved paths, and run results.

Snapshot names embed a fixed-width ``YYYYMMDD_HHMMSS`` timestamp so that
sorting names as strings sorts them by creation time.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
SNAPSHOT_SUFFIX = ".zip"


class SyncDirection(str, Enum):
    """Sync operation direction."""

    PULL = "pull"
    PUSH = "push"


class SyncOutcome(str, Enum):
    """Result category of a single sync run."""

    SUCCESS = "success"
    PREREQUISITE_MISSING = "prerequisite_missing"
    NOT_FOUND = "not_found"
    TRANSFER_FAILURE = "transfer_failure"
    BACKUP_FAILURE = "backup_failure"
    PACK_FAILURE = "pack_failure"
    EXTRACT_FAILURE = "extract_failure"
    ROLLBACK_FAILURE = "rollback_failure"
    USAGE = "usage"


class SyncConfig(BaseModel):
    """User configuration for the vault and its remote."""

    vault_name: str = "FoxVault"
    archive_base: Path = Path("~/Archives")
    remote_name: str = "gdrive"
    remote_path: str = "Archives"

    rclone_binary: str = "rclone"
    zip_binary: str = "zip"
    unzip_binary: str = "unzip"


class SyncPaths(BaseModel):
    """Paths derived from a SyncConfig, recomputed for every run."""

    vault_name: str
    vault_dir: Path
    archive_dir: Path
    remote_dir: str

    @classmethod
    def from_config(cls, config: SyncConfig) -> "SyncPaths":
        """Resolve local and remote locations for a config.

        Args:
            config: The sync configuration.

        Returns:
            SyncPaths with the local vault, archive dir and remote dir.
        """
        archive_dir = config.archive_base.expanduser()
        remote_path = config.remote_path.strip("/")
        return cls(
            vault_name=config.vault_name,
            vault_dir=archive_dir / config.vault_name,
            archive_dir=archive_dir,
            remote_dir=f"{config.remote_name}:{remote_path}",
        )

    @property
    def snapshot_pattern(self) -> str:
        """Glob matching every snapshot of this vault."""
        return snapshot_pattern(self.vault_name)

    def remote_file(self, name: str) -> str:
        """Full remote location of a snapshot file."""
        return f"{self.remote_dir}/{name}"


class SyncResult(BaseModel):
    """Outcome of one VaultSync run."""

    outcome: SyncOutcome
    message: str = ""
    direction: Optional[SyncDirection] = None
    snapshot: Optional[str] = None
    archive_path: Optional[Path] = None
    backup_dir: Optional[Path] = None
    rolled_back: bool = False

    @property
    def ok(self) -> bool:
        """Whether the run succeeded."""
        return self.outcome == SyncOutcome.SUCCESS

    @property
    def exit_code(self) -> int:
        """Process exit status for this result."""
        return 0 if self.ok else 1


def format_timestamp(when: datetime) -> str:
    """Render a datetime in the sortable snapshot timestamp format."""
    return when.strftime(TIMESTAMP_FORMAT)


def snapshot_name(vault_name: str, when: datetime) -> str:
    """Build the snapshot filename for a vault at a point in time.

    Args:
        vault_name: Vault identity, used as the filename prefix.
        when: Snapshot creation time.

    Returns:
        Filename like ``FoxVault_20240101_120000.zip``.
    """
    return f"{vault_name}_{format_timestamp(when)}{SNAPSHOT_SUFFIX}"


def snapshot_pattern(vault_name: str) -> str:
    """Glob pattern matching all snapshots of a vault."""
    return f"{vault_name}_*{SNAPSHOT_SUFFIX}"


def backup_dir_for(vault_dir: Path, when: datetime) -> Path:
    """Location the existing vault is moved to before a pull extracts."""
    return vault_dir.with_name(f"{vault_dir.name}_backup_{format_timestamp(when)}")


def latest_snapshot(names: list[str]) -> Optional[str]:
    """Pick the most recent snapshot from a list of filenames.

    Names sort chronologically, so the latest is the string maximum.

    Args:
        names: Snapshot filenames.

    Returns:
        The latest filename, or None for an empty list.
    """
    return max(names) if names else None
