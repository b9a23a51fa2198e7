"""Shared test fixtures for vaultsync."""

from __future__ import annotations

import fnmatch
import shutil
import zipfile
from datetime import datetime
from pathlib import Path

import pytest

from vaultsync.archiver import Archiver
from vaultsync.backends import RemoteStore
from vaultsync.engine import VaultSync
from vaultsync.errors import RemoteStoreError
from vaultsync.models import SyncConfig


class DirRemote(RemoteStore):
    """RemoteStore backed by a local directory.

    ``name:folder`` maps to ``root/folder``.
    """

    def __init__(self, root: Path):
        self.root = root
        self.installed = True
        self.registered = True
        self.fail_list = False
        self.fail_down = False
        self.fail_up = False
        self.fail_mkdir = False
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "dir"

    def _local(self, remote: str) -> Path:
        return self.root / remote.split(":", 1)[1]

    def list(self, remote_dir, pattern):
        self.calls.append("list")
        if self.fail_list:
            raise RemoteStoreError("listing failed")
        folder = self._local(remote_dir)
        if not folder.exists():
            return []
        return [
            p.name for p in folder.iterdir()
            if p.is_file() and fnmatch.fnmatch(p.name, pattern)
        ]

    def copy_up(self, local_file, remote_dir):
        self.calls.append("copy_up")
        if self.fail_up:
            return False
        shutil.copy2(local_file, self._local(remote_dir) / local_file.name)
        return True

    def copy_down(self, remote_file, local_dir):
        self.calls.append("copy_down")
        if self.fail_down:
            return False
        source = self._local(remote_file)
        shutil.copy2(source, local_dir / source.name)
        return True

    def ensure_dir(self, remote_dir):
        self.calls.append("ensure_dir")
        if self.fail_mkdir:
            return False
        self._local(remote_dir).mkdir(parents=True, exist_ok=True)
        return True

    def available(self):
        return self.installed

    def configured(self):
        return self.registered

    def put(self, folder: str, name: str, source: Path) -> None:
        """Place a file on the fake remote."""
        dest = self.root / folder
        dest.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, dest / name)


class ZipfileArchiver(Archiver):
    """Archiver using the zipfile module, with failure switches."""

    def __init__(self):
        self.fail_pack = False
        self.pack_writes_nothing = False
        self.fail_unpack = False
        self.partial_unpack = False
        self.calls: list[str] = []

    def pack(self, source_dir, dest_zip):
        self.calls.append("pack")
        if self.pack_writes_nothing:
            return True
        if self.fail_pack:
            dest_zip.write_bytes(b"PK partial")
            return False
        with zipfile.ZipFile(dest_zip, "w") as zf:
            for path in sorted(source_dir.rglob("*")):
                if path.is_file():
                    zf.write(path, path.relative_to(source_dir.parent).as_posix())
        return True

    def unpack(self, zip_path, dest_dir):
        self.calls.append("unpack")
        if self.fail_unpack:
            if self.partial_unpack:
                with zipfile.ZipFile(zip_path) as zf:
                    first = zf.namelist()[0]
                    zf.extract(first, dest_dir)
            return False
        with zipfile.ZipFile(zip_path) as zf:
            zf.extractall(dest_dir)
        return True

    def missing_tools(self):
        return []


def make_zip(path: Path, entries: dict[str, str]) -> Path:
    """Write a zip with the given name -> text entries."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, text in entries.items():
            zf.writestr(name, text)
    return path


class Clock:
    """Settable clock for deterministic timestamps."""

    def __init__(self, when: datetime):
        self.now = when

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def archive_base(tmp_path: Path) -> Path:
    """Local directory that holds the vault, snapshots and backups."""
    return tmp_path / "Archives"


@pytest.fixture
def sync_config(archive_base: Path) -> SyncConfig:
    """Config pointing at the temporary archive base."""
    return SyncConfig(
        vault_name="FoxVault",
        archive_base=archive_base,
        remote_name="gdrive",
        remote_path="Archives",
    )


@pytest.fixture
def remote(tmp_path: Path) -> DirRemote:
    """Directory-backed remote store."""
    root = tmp_path / "remote"
    root.mkdir()
    return DirRemote(root)


@pytest.fixture
def archiver() -> ZipfileArchiver:
    """zipfile-backed archiver."""
    return ZipfileArchiver()


@pytest.fixture
def clock() -> Clock:
    """Clock fixed at 2024-01-01 12:00:00."""
    return Clock(datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def vault(archive_base: Path) -> Path:
    """A local vault with a.md and notes/b.md."""
    vault_dir = archive_base / "FoxVault"
    (vault_dir / "notes").mkdir(parents=True)
    (vault_dir / "a.md").write_text("# a\n")
    (vault_dir / "notes" / "b.md").write_text("# b\n")
    return vault_dir


@pytest.fixture
def zip_factory(tmp_path: Path):
    """Build zips outside the archive base: zip_factory(name, entries)."""
    build_dir = tmp_path / "build"

    def _make(name: str, entries: dict[str, str]) -> Path:
        return make_zip(build_dir / name, entries)

    return _make


@pytest.fixture
def engine(sync_config, remote, archiver, clock) -> VaultSync:
    """VaultSync wired to the fake remote, zipfile archiver and clock."""
    return VaultSync(sync_config, remote=remote, archiver=archiver, clock=clock)
