"""
Sync errors -- one exception per way a run can stop.

Each error carries the SyncOutcome it maps to so the engine can turn
any of them into a SyncResult without a lookup table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .models import SyncOutcome


class VaultSyncError(Exception):
    """Base class for failures that stop a sync run."""

    outcome = SyncOutcome.TRANSFER_FAILURE


class PrerequisiteMissing(VaultSyncError):
    """A required tool is absent or the remote is not configured."""

    outcome = SyncOutcome.PREREQUISITE_MISSING

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__("Missing prerequisites: " + ", ".join(missing))


class NotFound(VaultSyncError):
    """No remote snapshot (pull) or no local vault (push)."""

    outcome = SyncOutcome.NOT_FOUND


class TransferFailure(VaultSyncError):
    """Listing, download or upload through the remote store failed."""

    outcome = SyncOutcome.TRANSFER_FAILURE


class BackupFailure(VaultSyncError):
    """The existing vault could not be moved aside before extraction."""

    outcome = SyncOutcome.BACKUP_FAILURE


class PackFailure(VaultSyncError):
    """The archiver could not produce a snapshot."""

    outcome = SyncOutcome.PACK_FAILURE


class ExtractFailure(VaultSyncError):
    """The archiver could not extract a snapshot."""

    outcome = SyncOutcome.EXTRACT_FAILURE

    def __init__(self, message: str, rolled_back: bool = False):
        self.rolled_back = rolled_back
        super().__init__(message)


class RollbackFailure(VaultSyncError):
    """Restoring the backup after a failed extraction also failed.

    The vault path may be empty or half-extracted; the previous vault
    survives only at ``backup_dir`` and must be moved back by hand.
    """

    outcome = SyncOutcome.ROLLBACK_FAILURE

    def __init__(self, message: str, backup_dir: Optional[Path] = None):
        self.backup_dir = backup_dir
        super().__init__(message)


class RemoteStoreError(Exception):
    """Raised by a RemoteStore when a listing command fails."""
