"""Abstract base class for radio streaming platforms."""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from infrastack.core.logger import get_logger
from infrastack.services.post_install import PostInstallManager

logger = get_logger(__name__)

# Media datasets hold large audio files written once, read sequentially
BASE_ZFS_PROPERTIES = {
    "compression": "lz4",
    "recordsize": "1M",
    "atime": "off",
}


class Platform(ABC):
    """A radio platform that can be installed into an LXC container.

    Subclasses set the resource defaults and the commands that install,
    update, back up and show logs for the platform inside the container.
    """

    name: str = ""
    display_name: str = ""

    # Container defaults (memory and swap in MB, disk in GB)
    cores: int = 2
    memory: int = 4096
    swap: int = 2048
    disk: int = 32
    quota: str = "100G"

    # Where the media dataset is mounted inside the container
    mount_path: str = "/srv/media"

    def __init__(self, mock: bool = False):
        self.mock = mock
        self.post_install = PostInstallManager(mock=mock)

    def zfs_properties(self, quota: Optional[str] = None) -> Dict[str, str]:
        """Properties for the station's media dataset."""
        properties = dict(BASE_ZFS_PROPERTIES)
        properties["quota"] = quota or self.quota
        return properties

    def hostname(self, station_name: str) -> str:
        return f"{self.name}-{station_name}"

    def credentials_file(self, credentials_dir: str, ctid: int) -> Path:
        return Path(credentials_dir) / f"{self.name}-credentials-ct{ctid}.txt"

    @abstractmethod
    def install(self, ctid: int, station_name: str, ip: str) -> Optional[Dict[str, str]]:
        """Install the platform stack.

        Returns:
            Credential/access details to store for the operator, or None on failure
        """
        pass

    @abstractmethod
    def update(self, ctid: int) -> bool:
        """Upgrade the platform in place."""
        pass

    @abstractmethod
    def backup_application(self, ctid: int) -> bool:
        """Run the platform's own backup inside the container."""
        pass

    @abstractmethod
    def log_command(self, lines: int = 50, follow: bool = False,
                    service: Optional[str] = None) -> List[str]:
        """Command (run via pct exec) printing the platform's logs."""
        pass

    def _run(self, ctid: int, script: str, action: str) -> bool:
        logger.info(f"{action} in container {ctid}...")
        if not self.post_install.run_custom_command(ctid, script):
            logger.error(f"✗ {action} failed in container {ctid}")
            return False
        logger.info(f"✓ {action} completed in container {ctid}")
        return True
