"""Station deployment: dataset, container, platform stack, inventory row.

A deploy is a fixed sequence of external commands. Each completed step is
written to the step journal; the first failing step is recorded there and
the deploy stops without undoing earlier steps.
"""
import os
from pathlib import Path
from typing import Dict, Optional

from infrastack.core.config import InfraStackConfig, get_config
from infrastack.core.inventory import InventoryError, InventoryStore
from infrastack.core.lock import LockError
from infrastack.core.logger import get_logger
from infrastack.core.state_store import StateStore
from infrastack.core.validator import (
    ValidationError,
    validate_ctid,
    validate_ip_suffix,
    validate_quota,
    validate_station_name,
)
from infrastack.core.zfs_manager import ZFSManager
from infrastack.models import StationRecord, default_dataset_path
from infrastack.radio.platforms import Platform, get_platform, platform_names
from infrastack.services.post_install import PostInstallManager
from infrastack.services.proxmox.containers import ContainerDiscovery, ContainerLifecycle

logger = get_logger(__name__)


def network_address(ctid: int, ip_suffix: Optional[int], network_prefix: str) -> str:
    """net0 ip= value: explicit suffix, else the CTID when it is a usable host octet, else dhcp."""
    if ip_suffix is None and 2 <= ctid <= 254:
        ip_suffix = ctid
    if ip_suffix is None:
        return "dhcp"
    return f"{network_prefix}.{ip_suffix}/24"


def write_credentials(path: Path, platform: Platform, ctid: int, hostname: str,
                      details: Dict[str, str]) -> None:
    """Write the operator credentials file, readable by root only."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        f"{platform.display_name} station credentials",
        f"Container: {ctid} ({hostname})",
        "",
    ]
    lines.extend(f"{key}: {value}" for key, value in details.items())

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, 'w') as f:
        f.write("\n".join(lines) + "\n")
    # O_CREAT mode is ignored for an existing file
    os.chmod(path, 0o600)


class RadioDeployer:
    """Deploys a radio station into a new LXC container."""

    def __init__(self, config: Optional[InfraStackConfig] = None,
                 inventory: Optional[InventoryStore] = None, mock: bool = False):
        self.config = config or get_config()
        self.inventory = inventory or InventoryStore.from_config(self.config)
        self.mock = mock
        self.state = StateStore(self.config.state_file)
        self.zfs = ZFSManager(mock=mock)
        self.lifecycle = ContainerLifecycle(mock=mock)
        self.discovery = ContainerDiscovery(mock=mock)
        self.post_install = PostInstallManager(mock=mock)

    def validate(self, platform_type: str, ctid, name: str,
                 quota: Optional[str] = None, ip_suffix: Optional[int] = None) -> Platform:
        """Check every input before anything is created.

        Raises:
            ValidationError: On unknown platform, bad or taken CTID, bad name
        """
        platform = get_platform(platform_type, mock=self.mock)
        if platform is None:
            raise ValidationError(
                f"Unknown platform: {platform_type}. Valid options: {', '.join(platform_names())}"
            )

        ctid = validate_ctid(ctid, existing=self.inventory.ctids())
        if self.discovery.container_exists(ctid):
            raise ValidationError(f"Container {ctid} already exists on this host")

        validate_station_name(name)
        validate_quota(quota)
        validate_ip_suffix(ip_suffix)
        return platform

    def deploy(self, platform_type: str, ctid, name: str,
               cores: Optional[int] = None, memory: Optional[int] = None,
               quota: Optional[str] = None, ip_suffix: Optional[int] = None,
               description: str = "") -> Optional[StationRecord]:
        """Deploy a station.

        Returns:
            The inventory record, or None if a step failed

        Raises:
            ValidationError: If inputs are invalid (nothing has been created)
        """
        platform = self.validate(platform_type, ctid, name, quota, ip_suffix)
        ctid = int(ctid)
        quota = validate_quota(quota) or platform.quota
        hostname = platform.hostname(name)
        dataset = default_dataset_path(platform.name, name, self.config.media_root)

        logger.info(f"Deploying {platform.display_name} station '{name}' as container {ctid}")
        self.state.begin(ctid, "deploy")
        self.state.mark_step(ctid, "validated")

        # ZFS dataset
        if not self.zfs.create_dataset(dataset, platform.zfs_properties(quota)):
            return self._fail(ctid, "dataset_created", f"could not create dataset {dataset}")
        self.state.mark_step(ctid, "dataset_created")

        # Container
        address = network_address(ctid, ip_suffix, self.config.network_prefix)
        spec = {
            'vmid': ctid,
            'hostname': hostname,
            'template': self.config.template,
            'storage': self.config.rootfs_storage,
            'resources': {
                'cores': cores or platform.cores,
                'memory': memory or platform.memory,
                'swap': platform.swap,
                'disk': platform.disk,
            },
            'network': {
                'bridge': self.config.bridge,
                'ip': address,
                'gateway': self.config.gateway,
            },
            'nameserver': self.config.nameserver,
            'description': description or f"{platform.display_name} radio station: {name}",
        }
        if self.lifecycle.create_container(spec) is None:
            return self._fail(ctid, "container_created", "pct create failed")
        self.state.mark_step(ctid, "container_created")

        host_path = self.zfs.get_mountpoint(dataset)
        if not self.lifecycle.add_mount(ctid, host_path, platform.mount_path):
            return self._fail(ctid, "dataset_mounted", f"could not mount {host_path}")
        self.state.mark_step(ctid, "dataset_mounted")

        if not self.lifecycle.start_container(ctid):
            return self._fail(ctid, "container_started", "pct start failed")
        self.post_install.wait_for_container_boot(ctid)
        self.state.mark_step(ctid, "container_started")

        ip = self._resolve_ip(ctid, address)

        # Platform
        if not self.post_install.install_docker(ctid):
            return self._fail(ctid, "platform_installed", "Docker installation failed")
        details = platform.install(ctid, name, ip)
        if details is None:
            return self._fail(ctid, "platform_installed", f"{platform.display_name} installation failed")
        self.state.mark_step(ctid, "platform_installed")

        credentials_file = platform.credentials_file(self.config.credentials_dir, ctid)
        try:
            write_credentials(credentials_file, platform, ctid, hostname, details)
        except OSError as e:
            return self._fail(ctid, "credentials_written", f"cannot write {credentials_file}: {e}")
        logger.info(f"Credentials saved to {credentials_file}")
        self.state.mark_step(ctid, "credentials_written")

        # Inventory
        record = StationRecord(
            ctid=ctid,
            platform_type=platform.name,
            hostname=hostname,
            ip=ip,
            description=description,
            status="deployed",
            dataset_path=dataset,
        )
        try:
            self.inventory.append(record)
        except (InventoryError, LockError) as e:
            return self._fail(ctid, "inventory_recorded", str(e))
        self.state.mark_step(ctid, "inventory_recorded")

        self.state.finish(ctid)
        logger.info(f"✓ {platform.display_name} station '{name}' deployed in container {ctid}")
        return record

    def _resolve_ip(self, ctid: int, address: str) -> str:
        if address != "dhcp":
            return address.split('/')[0]
        return self.discovery.get_container_ip(ctid) or "dhcp"

    def _fail(self, ctid: int, step: str, reason: str) -> None:
        logger.error(f"✗ Deploy of container {ctid} failed at step '{step}': {reason}")
        completed = self.state.completed_steps(ctid)
        if completed:
            logger.error(f"Completed steps (not rolled back): {', '.join(completed)}")
        self.state.mark_failed(ctid, step, reason)
        return None
