"""
Preflight system checks -- are the external tools in place?

Checks for:
  - rclone (remote storage client) and the configured remote
  - zip (snapshot packer)
  - unzip (snapshot extractor)

Each missing tool comes with an install command for the detected
platform package manager. The platform is detected once and passed
in explicitly so checks stay deterministic under test.
"""

from __future__ import annotations

import platform
import shutil
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .backends import RcloneRemote
from .models import SyncConfig


class ToolStatus(str, Enum):
    """Status of a system tool."""
    INSTALLED = "installed"
    MISSING = "missing"


@dataclass
class ToolCheck:
    """Result of checking a single system tool."""

    name: str
    status: ToolStatus
    version: str = ""
    install_cmd: str = ""
    download_url: str = ""

    @property
    def installed(self) -> bool:
        """Whether the tool is installed."""
        return self.status == ToolStatus.INSTALLED


@dataclass
class Platform:
    """Detected operating system and package manager."""

    system: str
    pkg_manager: Optional[str] = None


@dataclass
class PreflightResult:
    """Combined result of all preflight checks."""

    tools: list[ToolCheck] = field(default_factory=list)
    remote_name: str = ""
    remote_configured: bool = False

    @property
    def all_ok(self) -> bool:
        """True if every tool is installed and the remote is registered."""
        return self.remote_configured and all(c.installed for c in self.tools)

    @property
    def missing(self) -> list[ToolCheck]:
        """Tools that are not installed."""
        return [c for c in self.tools if not c.installed]


# ---------------------------------------------------------------------------
# Platform detection
# ---------------------------------------------------------------------------

PKG_MANAGERS = {
    "Linux": ("apt", "dnf", "pacman", "zypper", "apk"),
    "Darwin": ("brew",),
    "Windows": ("winget", "choco", "scoop"),
}

# pkg manager -> install command template; {package} is filled per tool
INSTALL_TEMPLATES = {
    "apt": "sudo apt install -y {package}",
    "dnf": "sudo dnf install -y {package}",
    "pacman": "sudo pacman -S --noconfirm {package}",
    "zypper": "sudo zypper install -y {package}",
    "apk": "sudo apk add {package}",
    "brew": "brew install {package}",
    "winget": "winget install --id {package}",
    "choco": "choco install -y {package}",
    "scoop": "scoop install {package}",
}

# tool -> pkg manager -> package name, where it differs from the tool name
PACKAGE_NAMES = {
    "rclone": {"winget": "Rclone.Rclone"},
    "zip": {"winget": "GnuWin32.Zip"},
    "unzip": {"winget": "GnuWin32.UnZip"},
}

DOWNLOAD_URLS = {
    "rclone": "https://rclone.org/downloads/",
    "zip": "https://infozip.sourceforge.net/Zip.html",
    "unzip": "https://infozip.sourceforge.net/UnZip.html",
}


def detect_platform() -> Platform:
    """Detect the OS and the first available package manager."""
    system = platform.system()
    for mgr in PKG_MANAGERS.get(system, ()):
        if shutil.which(mgr):
            return Platform(system=system, pkg_manager=mgr)
    return Platform(system=system)


def install_command(tool: str, host: Platform) -> str:
    """Install command for a tool on a platform, or empty if unknown.

    Args:
        tool: Tool name (``rclone``, ``zip``, ``unzip``).
        host: Detected platform.

    Returns:
        Shell command string.
    """
    template = INSTALL_TEMPLATES.get(host.pkg_manager or "")
    if not template:
        return ""
    package = PACKAGE_NAMES.get(tool, {}).get(host.pkg_manager or "", tool)
    return template.format(package=package)


# ---------------------------------------------------------------------------
# Individual tool checks
# ---------------------------------------------------------------------------

def _version(binary: str, flag: str) -> str:
    try:
        result = subprocess.run(
            [binary, flag],
            capture_output=True, text=True, timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired):
        return ""
    if result.returncode != 0:
        return ""
    lines = result.stdout.strip().split("\n")
    return lines[0][:60] if lines else ""


def check_tool(
    tool: str, host: Platform, binary: Optional[str] = None,
    version_flag: str = "--version",
) -> ToolCheck:
    """Check if a tool is on PATH.

    Args:
        tool: Canonical tool name.
        host: Detected platform, used for install hints.
        binary: Executable to look up. Defaults to the tool name.
        version_flag: Flag that prints the version.

    Returns:
        ToolCheck for the tool.
    """
    binary = binary or tool
    if shutil.which(binary):
        return ToolCheck(
            name=tool,
            status=ToolStatus.INSTALLED,
            version=_version(binary, version_flag),
        )

    return ToolCheck(
        name=tool,
        status=ToolStatus.MISSING,
        install_cmd=install_command(tool, host),
        download_url=DOWNLOAD_URLS.get(tool, ""),
    )


def check_remote(remote_name: str, binary: str = "rclone") -> bool:
    """Check that rclone knows the configured remote."""
    remote = RcloneRemote(remote_name, binary=binary)
    return remote.available() and remote.configured()


# ---------------------------------------------------------------------------
# Full preflight
# ---------------------------------------------------------------------------

def run_preflight(
    config: SyncConfig, host: Optional[Platform] = None,
) -> PreflightResult:
    """Run all preflight checks for a configuration.

    Args:
        config: Sync configuration naming the binaries and remote.
        host: Platform to build install hints for. Detected if omitted.

    Returns:
        PreflightResult with all tool checks.
    """
    host = host or detect_platform()
    return PreflightResult(
        tools=[
            check_tool("rclone", host, config.rclone_binary, "version"),
            check_tool("zip", host, config.zip_binary, "-v"),
            check_tool("unzip", host, config.unzip_binary, "-v"),
        ],
        remote_name=config.remote_name,
        remote_configured=check_remote(config.remote_name, config.rclone_binary),
    )
