"""InfraStack runtime configuration and settings."""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from infrastack.core.logger import get_logger

logger = get_logger(__name__)

VERSION = "2.0.0"

DEFAULT_CONFIG_FILE = "/etc/infrastack/infrastack.yml"


@dataclass
class InfraStackConfig:
    """Runtime configuration for InfraStack operations.

    Values are resolved in three layers: dataclass defaults, the YAML file
    named by INFRASTACK_CONFIG, then individual environment variables.

    Attributes:
        state_dir: Directory holding inventory.csv and state.json
        credentials_dir: Directory where per-CTID credentials files are written
        media_root: Parent dataset for per-platform media datasets
        network_prefix: First three octets of the station network
        gateway: Default gateway for static container IPs
        bridge: Proxmox bridge for net0
        rootfs_storage: Proxmox storage for container root disks
        template: LXC template volume used by pct create
        backup_storage: vzdump/pvesm storage target
        backup_mode: vzdump --mode
        backup_compress: vzdump --compress
    """

    state_dir: str = "/var/lib/infrastack"
    credentials_dir: str = "/root"
    media_root: str = "hdd-pool/container-data"

    # Container networking
    network_prefix: str = "192.168.2"
    gateway: str = "192.168.2.1"
    bridge: str = "vmbr1"
    nameserver: str = "8.8.8.8"

    # Container creation
    rootfs_storage: str = "data"
    template: str = "local:vztmpl/debian-13-standard_13.1-2_amd64.tar.zst"

    # Backups
    backup_storage: str = "hdd-backups"
    backup_mode: str = "snapshot"
    backup_compress: str = "zstd"

    # Timeouts
    container_boot_timeout: int = 60  # seconds to wait for systemd in a new container
    command_check_timeout: int = 5
    lock_timeout: int = 30  # seconds to wait for the inventory lock

    @property
    def inventory_file(self) -> Path:
        return Path(self.state_dir) / "inventory.csv"

    @property
    def state_file(self) -> Path:
        return Path(self.state_dir) / "state.json"

    @property
    def lock_file(self) -> Path:
        return Path(self.state_dir) / "inventory.lock"

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "InfraStackConfig":
        """Create config from the YAML file and environment variables.

        Environment variables:
            INFRASTACK_CONFIG: YAML configuration file path
            INFRASTACK_ROOT: Root directory override for state and credentials
            INFRASTACK_STATE_DIR: Explicit state directory
            INFRASTACK_BACKUP_STORAGE: Backup storage target

        Returns:
            InfraStackConfig instance
        """
        values: Dict[str, Any] = {}

        root = os.getenv("INFRASTACK_ROOT")
        if root:
            values["state_dir"] = str(Path(root) / "var" / "lib" / "infrastack")
            values["credentials_dir"] = str(Path(root) / "root")

        config_path = Path(config_file or os.getenv("INFRASTACK_CONFIG", DEFAULT_CONFIG_FILE))
        values.update(_load_yaml(config_path))

        env_overrides = {
            "state_dir": "INFRASTACK_STATE_DIR",
            "backup_storage": "INFRASTACK_BACKUP_STORAGE",
            "backup_mode": "INFRASTACK_BACKUP_MODE",
            "backup_compress": "INFRASTACK_BACKUP_COMPRESS",
            "lock_timeout": "INFRASTACK_LOCK_TIMEOUT",
        }
        for key, env_name in env_overrides.items():
            if env_name in os.environ:
                values[key] = os.environ[env_name]

        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            if known[key].type in (int, "int"):
                value = int(value)
            kwargs[key] = value

        return cls(**kwargs)


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Read a flat YAML mapping, returning {} when the file is absent."""
    if not path.exists():
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Failed to load config {path}: {e}, using defaults")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Config {path} is not a mapping, using defaults")
        return {}

    return data


_config: Optional[InfraStackConfig] = None


def get_config() -> InfraStackConfig:
    """Get the global InfraStack configuration.

    Returns:
        InfraStackConfig instance (creates from environment if not set)
    """
    global _config
    if _config is None:
        _config = InfraStackConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads it."""
    global _config
    _config = None
