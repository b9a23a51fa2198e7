"""
VaultSync -- zip snapshot synchronization for a single local vault.

Push packs the vault into a timestamped zip and uploads it with rclone.
Pull downloads the latest snapshot, sets the current vault aside as a
backup, and extracts the snapshot in its place.
"""

import os

__version__ = "0.1.0"
__author__ = "smilinTux"

CONFIG_PATH = os.environ.get(
    "VAULTSYNC_CONFIG", "~/.config/vaultsync/config.yaml"
)
