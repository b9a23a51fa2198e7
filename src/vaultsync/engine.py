"""
Sync Engine -- moves the vault between this machine and the remote.

    vaultsync push  ->  zip vault -> verify zip -> mkdir remote -> upload
    vaultsync pull  ->  find latest -> download -> back up vault -> unzip

Every step is a gate: the first failure stops the run. The only recovery
is on pull, where a failed extraction puts the backed-up vault back.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from .archiver import Archiver, ZipArchiver
from .backends import RemoteStore, create_remote
from .config import load_config
from .errors import (
    BackupFailure,
    ExtractFailure,
    NotFound,
    PackFailure,
    PrerequisiteMissing,
    RemoteStoreError,
    RollbackFailure,
    TransferFailure,
    VaultSyncError,
)
from .models import (
    SyncConfig,
    SyncDirection,
    SyncOutcome,
    SyncPaths,
    SyncResult,
    backup_dir_for,
    latest_snapshot,
    snapshot_name,
)

logger = logging.getLogger("vaultsync.engine")

USAGE = "Usage: vaultsync [pull|push]"


class VaultSync:
    """Synchronizes one local vault directory with a remote store.

    Collaborators are injectable so the same flow runs against rclone
    and zip in production and against fakes in tests.
    """

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        remote: Optional[RemoteStore] = None,
        archiver: Optional[Archiver] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the engine.

        Args:
            config: Sync configuration. Defaults to load_config().
            remote: Remote store. Defaults to rclone for config.remote_name.
            archiver: Snapshot archiver. Defaults to zip/unzip.
            clock: Source of the current time for timestamps.
        """
        self.config = config or load_config()
        self.paths = SyncPaths.from_config(self.config)
        self.remote = remote or create_remote(
            self.config.remote_name, binary=self.config.rclone_binary
        )
        self.archiver = archiver or ZipArchiver(
            self.config.zip_binary, self.config.unzip_binary
        )
        self._clock = clock or datetime.now

    def run(self, direction: Union[str, SyncDirection, None]) -> SyncResult:
        """Run one sync in the given direction.

        Never raises for sync failures; every outcome is a SyncResult.

        Args:
            direction: ``pull`` or ``push``. Anything else yields a
                usage result.

        Returns:
            SyncResult describing what happened.
        """
        try:
            parsed: Optional[SyncDirection] = SyncDirection(direction)
        except ValueError:
            parsed = None

        # Prerequisites are reported before usage errors.
        try:
            self.check_prerequisites()
        except PrerequisiteMissing as exc:
            logger.error("%s", exc)
            return SyncResult(outcome=exc.outcome, message=str(exc), direction=parsed)

        if parsed is None:
            return SyncResult(outcome=SyncOutcome.USAGE, message=USAGE)

        try:
            if parsed == SyncDirection.PULL:
                return self.pull()
            return self.push()
        except VaultSyncError as exc:
            logger.error("%s failed: %s", parsed.value, exc)
            return SyncResult(
                outcome=exc.outcome,
                message=str(exc),
                direction=parsed,
                backup_dir=getattr(exc, "backup_dir", None),
                rolled_back=getattr(exc, "rolled_back", False),
            )

    def check_prerequisites(self) -> None:
        """Verify tools and remote registration before touching anything.

        Raises:
            PrerequisiteMissing: Listing every missing piece.
        """
        missing: list[str] = []
        if not self.remote.available():
            missing.append(self.config.rclone_binary)
        elif not self.remote.configured():
            missing.append(f"remote '{self.config.remote_name}:' not configured")
        missing.extend(self.archiver.missing_tools())
        if missing:
            raise PrerequisiteMissing(missing)

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def pull(self) -> SyncResult:
        """Replace the local vault with the latest remote snapshot.

        Returns:
            Successful SyncResult.

        Raises:
            NotFound: No snapshot on the remote.
            TransferFailure: Listing or download failed.
            BackupFailure: The current vault could not be moved aside.
            ExtractFailure: Extraction failed (rolled back if possible).
            RollbackFailure: Extraction and the rollback both failed.
        """
        paths = self.paths
        try:
            names = self.remote.list(paths.remote_dir, paths.snapshot_pattern)
        except RemoteStoreError as exc:
            raise TransferFailure(str(exc)) from exc

        latest = latest_snapshot(names)
        if latest is None:
            raise NotFound(
                f"No {paths.snapshot_pattern} found in {paths.remote_dir}"
            )
        logger.info("Latest snapshot: %s", latest)

        paths.archive_dir.mkdir(parents=True, exist_ok=True)
        archive_path = paths.archive_dir / latest

        if not self.remote.copy_down(paths.remote_file(latest), paths.archive_dir):
            raise TransferFailure(f"Download of {latest} failed")
        if not archive_path.exists():
            raise TransferFailure(
                f"Download of {latest} reported success but {archive_path} is missing"
            )

        backup_dir = self._backup_existing_vault()

        extracted = self.archiver.unpack(archive_path, paths.vault_dir.parent)
        if extracted and not paths.vault_dir.is_dir():
            logger.error(
                "%s did not contain a %s/ directory", latest, paths.vault_name
            )
            extracted = False

        if not extracted:
            self._handle_extract_failure(latest, backup_dir)

        logger.info("Vault restored from %s", latest)
        message = f"Vault restored from {latest}"
        if backup_dir:
            message += f"; previous vault kept at {backup_dir}"
        return SyncResult(
            outcome=SyncOutcome.SUCCESS,
            message=message,
            direction=SyncDirection.PULL,
            snapshot=latest,
            archive_path=archive_path,
            backup_dir=backup_dir,
        )

    def _backup_existing_vault(self) -> Optional[Path]:
        """Move the current vault aside so extraction never overwrites it."""
        vault_dir = self.paths.vault_dir
        if not vault_dir.exists():
            return None

        backup_dir = backup_dir_for(vault_dir, self._clock())
        if backup_dir.exists():
            raise BackupFailure(f"Backup target {backup_dir} already exists")
        try:
            vault_dir.rename(backup_dir)
        except OSError as exc:
            raise BackupFailure(
                f"Could not move {vault_dir} to {backup_dir}: {exc}"
            ) from exc

        logger.info("Existing vault moved to %s", backup_dir)
        return backup_dir

    def _handle_extract_failure(
        self, snapshot: str, backup_dir: Optional[Path]
    ) -> None:
        """Put the backed-up vault back after a failed extraction.

        Always raises: ExtractFailure when the vault is back in place
        (or there was nothing to restore), RollbackFailure otherwise.
        """
        if backup_dir is None:
            raise ExtractFailure(f"Extraction of {snapshot} failed")

        vault_dir = self.paths.vault_dir
        try:
            if vault_dir.is_dir():
                shutil.rmtree(vault_dir)
            elif vault_dir.exists():
                vault_dir.unlink()
            backup_dir.rename(vault_dir)
        except OSError as exc:
            logger.critical(
                "Rollback failed, previous vault is at %s: %s", backup_dir, exc
            )
            raise RollbackFailure(
                f"Extraction of {snapshot} failed and restoring the previous "
                f"vault failed ({exc}). Manual intervention required: "
                f"move {backup_dir} back to {vault_dir}",
                backup_dir=backup_dir,
            ) from exc

        logger.warning("Extraction failed, previous vault restored")
        raise ExtractFailure(
            f"Extraction of {snapshot} failed; previous vault restored",
            rolled_back=True,
        )

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def push(self) -> SyncResult:
        """Snapshot the local vault and upload it.

        Returns:
            Successful SyncResult.

        Raises:
            NotFound: The local vault does not exist.
            PackFailure: The zip could not be created, or a snapshot with
                the same name is already on disk.
            TransferFailure: The upload failed. The zip stays on disk.
        """
        paths = self.paths
        if not paths.vault_dir.is_dir():
            raise NotFound(f"Vault not found: {paths.vault_dir}")

        name = snapshot_name(paths.vault_name, self._clock())
        archive_path = paths.archive_dir / name
        # zip -r adds to an existing archive instead of replacing it.
        if archive_path.exists():
            raise PackFailure(f"Snapshot {archive_path} already exists")

        logger.info("Packing %s into %s", paths.vault_dir, archive_path)
        if not self.archiver.pack(paths.vault_dir, archive_path):
            archive_path.unlink(missing_ok=True)
            raise PackFailure(f"Packing {paths.vault_dir} failed")
        if not archive_path.exists():
            raise PackFailure(
                f"Archiver reported success but {archive_path} was not created"
            )

        if not self.remote.ensure_dir(paths.remote_dir):
            logger.warning(
                "Could not create %s; continuing with upload", paths.remote_dir
            )

        if not self.remote.copy_up(archive_path, paths.remote_dir):
            raise TransferFailure(
                f"Upload of {name} failed; local snapshot kept at {archive_path}"
            )

        logger.info("Snapshot %s uploaded to %s", name, paths.remote_dir)
        return SyncResult(
            outcome=SyncOutcome.SUCCESS,
            message=f"Uploaded {name} to {paths.remote_dir}",
            direction=SyncDirection.PUSH,
            snapshot=name,
            archive_path=archive_path,
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def local_snapshots(self) -> list[Path]:
        """Snapshot zips in the local archive directory, newest first."""
        archive_dir = self.paths.archive_dir
        if not archive_dir.exists():
            return []
        return sorted(
            (p for p in archive_dir.glob(self.paths.snapshot_pattern) if p.is_file()),
            key=lambda p: p.name,
            reverse=True,
        )

    def backups(self) -> list[Path]:
        """Retained backup directories, newest first."""
        archive_dir = self.paths.archive_dir
        if not archive_dir.exists():
            return []
        return sorted(
            (
                p for p in archive_dir.glob(f"{self.paths.vault_name}_backup_*")
                if p.is_dir()
            ),
            key=lambda p: p.name,
            reverse=True,
        )

    def remote_snapshots(self) -> list[str]:
        """Snapshot names on the remote, newest first.

        Raises:
            RemoteStoreError: If the listing failed.
        """
        names = self.remote.list(self.paths.remote_dir, self.paths.snapshot_pattern)
        return sorted(names, reverse=True)
