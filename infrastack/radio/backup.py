"""Station backups: vzdump images, platform exports and dataset snapshots."""
from typing import Dict, List, Optional

from infrastack.core.config import InfraStackConfig, get_config
from infrastack.core.inventory import InventoryStore
from infrastack.core.logger import get_logger
from infrastack.core.snapshot_manager import SnapshotManager
from infrastack.core.validator import BACKUP_TYPES, validate_choice
from infrastack.core.zfs_manager import ZFSManager
from infrastack.radio.bulk import BulkResult
from infrastack.radio.platforms import get_platform
from infrastack.services.proxmox.backup import BackupStorage
from infrastack.services.proxmox.containers import ContainerDiscovery

logger = get_logger(__name__)


class BackupManager:
    """Backs up stations by type.

    Types:
        container: vzdump of the whole container
        application: the platform's own export, run inside the container
        full: vzdump, then a ZFS snapshot of the station's media dataset
    """

    def __init__(self, config: Optional[InfraStackConfig] = None,
                 inventory: Optional[InventoryStore] = None, mock: bool = False):
        self.config = config or get_config()
        self.inventory = inventory or InventoryStore.from_config(self.config)
        self.mock = mock
        self.storage = BackupStorage(
            self.config.backup_storage,
            mode=self.config.backup_mode,
            compress=self.config.backup_compress,
            mock=mock,
        )
        self.snapshots = SnapshotManager(mock=mock)
        self.zfs = ZFSManager(mock=mock)
        self.discovery = ContainerDiscovery(mock=mock)

    def backup(self, ctid: int, backup_type: str = "container") -> bool:
        """Back up one container.

        Raises:
            ValidationError: If backup_type is unknown
        """
        backup_type = validate_choice(backup_type, BACKUP_TYPES, "backup type")

        if not self.discovery.container_exists(ctid):
            logger.error(f"Container {ctid} does not exist")
            return False

        record = self.inventory.find(ctid)
        hostname = record.hostname if record else "unknown"
        logger.info(f"Starting {backup_type} backup of container {ctid} ({hostname})")

        if backup_type == "container":
            return self.backup_container(ctid)
        if backup_type == "application":
            return self.backup_application(ctid)
        return self.backup_full(ctid)

    def backup_container(self, ctid: int) -> bool:
        if not self.storage.vzdump(ctid):
            logger.error(f"✗ Vzdump backup of container {ctid} failed")
            return False
        logger.info(f"✓ Container {ctid} backed up to {self.storage.storage}")
        return True

    def backup_application(self, ctid: int) -> bool:
        """Platform-level export; unknown platforms are skipped with a warning."""
        record = self.inventory.find(ctid)
        if record is None:
            logger.warning(f"Platform of container {ctid} unknown, skipping application backup")
            return True

        platform = get_platform(record.platform_type, mock=self.mock)
        if platform is None:
            logger.warning(f"No application backup available for platform: {record.platform_type}")
            return True

        return platform.backup_application(ctid)

    def backup_full(self, ctid: int) -> bool:
        if not self.backup_container(ctid):
            return False

        record = self.inventory.find(ctid)
        if record is None:
            logger.warning(f"Container {ctid} not in inventory, skipping dataset snapshot")
            return True

        dataset = record.resolve_dataset_path(self.config.media_root)
        if not self.mock and not self.zfs.dataset_exists(dataset):
            logger.warning(f"Dataset not found: {dataset}")
            return True

        snapshot = self.snapshots.create_snapshot(dataset)
        if snapshot is None:
            logger.error(f"✗ Failed to snapshot {dataset}")
            return False

        logger.info(f"✓ ZFS snapshot created: {snapshot}")
        return True

    def backup_all(self, backup_type: str = "container") -> BulkResult:
        """Back up every inventoried station; failures do not stop the run."""
        backup_type = validate_choice(backup_type, BACKUP_TYPES, "backup type")
        result = BulkResult()

        records = self.inventory.list()
        if not records:
            logger.info("No containers found in inventory")
            return result

        logger.info(f"Starting {backup_type} backup of all radio containers ({len(records)} total)")
        for record in records:
            ok = self.backup(record.ctid, backup_type)
            if ok:
                logger.info(f"✓ Backed up {record.hostname}")
            else:
                logger.error(f"✗ Failed to back up {record.hostname}")
            result.record(record.ctid, ok)

        return result

    def list_backups(self, ctid: Optional[int] = None) -> List[Dict[str, str]]:
        backups = self.storage.list_backups(ctid)
        if not backups:
            if ctid is not None:
                logger.warning(f"No backups found for container {ctid}")
            else:
                logger.warning("No backups found")
        return backups
