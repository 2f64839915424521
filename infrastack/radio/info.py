"""Station details and fleet summary."""
from typing import Dict, Optional

from infrastack.core.config import InfraStackConfig, get_config
from infrastack.core.inventory import InventoryStore
from infrastack.core.zfs_manager import ZFSManager
from infrastack.radio.platforms import get_platform, platform_names
from infrastack.services.proxmox.containers import ContainerDiscovery
from infrastack.services.proxmox.containers.discovery import STATUS_RUNNING


class StationInfo:
    def __init__(self, config: Optional[InfraStackConfig] = None,
                 inventory: Optional[InventoryStore] = None, mock: bool = False):
        self.config = config or get_config()
        self.inventory = inventory or InventoryStore.from_config(self.config)
        self.mock = mock
        self.zfs = ZFSManager(mock=mock)
        self.discovery = ContainerDiscovery(mock=mock)

    def station(self, ctid: int) -> Optional[Dict]:
        """Inventory record, dataset usage and credentials location for ctid.

        Returns:
            None if ctid is not in the inventory
        """
        record = self.inventory.find(ctid)
        if record is None:
            return None

        dataset = record.resolve_dataset_path(self.config.media_root)
        platform = get_platform(record.platform_type)
        credentials = (
            platform.credentials_file(self.config.credentials_dir, ctid) if platform else None
        )

        return {
            'record': record,
            'dataset': dataset,
            'usage': self.zfs.get_usage(dataset) if dataset else None,
            'live_status': self.discovery.get_container_status(ctid),
            'credentials_file': credentials,
            'credentials_present': bool(credentials and credentials.exists()),
        }

    def summary(self) -> Dict:
        """Station counts: total, per platform and currently running."""
        records = self.inventory.list()

        per_platform = {name: 0 for name in platform_names()}
        for record in records:
            key = record.platform_type.lower()
            per_platform[key] = per_platform.get(key, 0) + 1

        running = sum(
            1 for record in records
            if self.discovery.get_container_status(record.ctid) == STATUS_RUNNING
        )

        return {
            'total': len(records),
            'per_platform': per_platform,
            'running': running,
            'inventory_file': str(self.inventory.inventory_file),
        }
