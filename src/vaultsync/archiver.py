"""
Snapshot archiver -- zip and unzip as external tools.

Snapshots are packed from the vault's parent directory so the archive's
root entry is the vault directory itself. Extracting into the same parent
on another machine recreates the vault under its original name.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger("vaultsync.archiver")


class Archiver(ABC):
    """Abstract snapshot packer/extractor."""

    @abstractmethod
    def pack(self, source_dir: Path, dest_zip: Path) -> bool:
        """Pack a directory into a zip archive.

        Entries are stored relative to ``source_dir.parent``, so the
        archive root is ``source_dir.name``.

        Args:
            source_dir: Directory to archive.
            dest_zip: Archive to create.

        Returns:
            True if the archiver reported success.
        """

    @abstractmethod
    def unpack(self, zip_path: Path, dest_dir: Path) -> bool:
        """Extract a zip archive into a directory.

        Args:
            zip_path: Archive to extract.
            dest_dir: Directory receiving the archive's root entries.

        Returns:
            True if the archiver reported success.
        """

    @abstractmethod
    def missing_tools(self) -> list[str]:
        """Names of required executables that are not installed."""

    def available(self) -> bool:
        """Check if every required executable is installed."""
        return not self.missing_tools()


class ZipArchiver(Archiver):
    """Archiver backed by the Info-ZIP ``zip`` and ``unzip`` commands."""

    def __init__(self, zip_binary: str = "zip", unzip_binary: str = "unzip"):
        self.zip_binary = zip_binary
        self.unzip_binary = unzip_binary

    def _run(self, cmd: list[str], cwd: Optional[Path] = None) -> bool:
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True, text=True, check=False,
                cwd=str(cwd) if cwd else None,
            )
        except OSError as exc:
            logger.error("%s failed: %s", cmd[0], exc)
            return False

        if result.returncode != 0:
            logger.error(
                "%s exited with %d: %s",
                cmd[0], result.returncode, result.stderr.strip(),
            )
            return False
        return True

    def pack(self, source_dir: Path, dest_zip: Path) -> bool:
        source_dir = source_dir.resolve()
        return self._run(
            [self.zip_binary, "-r", "-q",
             str(dest_zip.resolve()), source_dir.name],
            cwd=source_dir.parent,
        )

    def unpack(self, zip_path: Path, dest_dir: Path) -> bool:
        return self._run(
            [self.unzip_binary, "-q", "-o",
             str(zip_path), "-d", str(dest_dir)],
        )

    def missing_tools(self) -> list[str]:
        return [
            binary for binary in (self.zip_binary, self.unzip_binary)
            if shutil.which(binary) is None
        ]
