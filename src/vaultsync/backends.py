"""
Remote storage backends -- where the snapshots travel.

A backend knows how to list, upload and download snapshot files and
how to create the remote folder that holds them. The engine never
talks to a storage client directly; it goes through this interface.

Rclone: any cloud remote registered in the user's rclone config.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from .errors import RemoteStoreError

logger = logging.getLogger("vaultsync.backends")


class RemoteStore(ABC):
    """Abstract remote snapshot store."""

    @abstractmethod
    def list(self, remote_dir: str, pattern: str) -> list[str]:
        """List filenames in a remote folder matching a glob.

        Args:
            remote_dir: Remote folder, e.g. ``gdrive:Archives``.
            pattern: Glob the filenames must match.

        Returns:
            Matching filenames (no directory part), possibly empty.

        Raises:
            RemoteStoreError: If the listing itself failed.
        """

    @abstractmethod
    def copy_up(self, local_file: Path, remote_dir: str) -> bool:
        """Upload a local file into a remote folder."""

    @abstractmethod
    def copy_down(self, remote_file: str, local_dir: Path) -> bool:
        """Download a remote file into a local directory."""

    @abstractmethod
    def ensure_dir(self, remote_dir: str) -> bool:
        """Create a remote folder. Succeeds if it already exists."""

    @abstractmethod
    def available(self) -> bool:
        """Check if the storage client is installed."""

    @abstractmethod
    def configured(self) -> bool:
        """Check if the configured remote is known to the client."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name."""


class RcloneRemote(RemoteStore):
    """Remote store backed by the rclone command line client.

    The remote must already exist in the user's rclone config
    (``rclone config``); this class never creates or edits remotes.
    """

    def __init__(self, remote_name: str, binary: str = "rclone"):
        self.remote_name = remote_name
        self.binary = binary

    @property
    def name(self) -> str:
        return f"rclone ({self.remote_name})"

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug("Running: %s", " ".join(cmd))
        return subprocess.run(
            cmd, capture_output=True, text=True, check=False,
        )

    def list(self, remote_dir: str, pattern: str) -> list[str]:
        try:
            result = self._run(
                "lsf", remote_dir, "--files-only", "--include", pattern,
            )
        except OSError as exc:
            raise RemoteStoreError(f"rclone lsf failed: {exc}") from exc

        if result.returncode != 0:
            raise RemoteStoreError(
                f"rclone lsf {remote_dir} failed: {result.stderr.strip()}"
            )
        return [
            line.strip() for line in result.stdout.splitlines()
            if line.strip()
        ]

    def copy_up(self, local_file: Path, remote_dir: str) -> bool:
        return self._copy(str(local_file), remote_dir)

    def copy_down(self, remote_file: str, local_dir: Path) -> bool:
        return self._copy(remote_file, str(local_dir))

    def _copy(self, source: str, dest: str) -> bool:
        try:
            result = self._run("copy", source, dest)
        except OSError as exc:
            logger.error("rclone copy failed: %s", exc)
            return False

        if result.returncode != 0:
            logger.error(
                "rclone copy %s -> %s failed: %s",
                source, dest, result.stderr.strip(),
            )
            return False

        logger.info("Copied %s -> %s", source, dest)
        return True

    def ensure_dir(self, remote_dir: str) -> bool:
        try:
            result = self._run("mkdir", remote_dir)
        except OSError as exc:
            logger.warning("rclone mkdir failed: %s", exc)
            return False

        if result.returncode != 0:
            logger.warning(
                "rclone mkdir %s failed: %s",
                remote_dir, result.stderr.strip(),
            )
            return False
        return True

    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    def configured(self) -> bool:
        try:
            result = self._run("listremotes")
        except OSError as exc:
            logger.debug("rclone listremotes failed: %s", exc)
            return False

        if result.returncode != 0:
            return False
        remotes = {line.strip() for line in result.stdout.splitlines()}
        return f"{self.remote_name}:" in remotes


def create_remote(remote_name: str, binary: str = "rclone") -> RemoteStore:
    """Factory for the configured remote store.

    Args:
        remote_name: Name of the rclone remote.
        binary: rclone executable name or path.

    Returns:
        Instantiated RemoteStore.
    """
    return RcloneRemote(remote_name, binary=binary)
