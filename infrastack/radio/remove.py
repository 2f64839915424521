"""Station removal.

Order matters: the container is destroyed first, the inventory row goes only
after that succeeded, and the media dataset is destroyed last, only when
asked for and separately confirmed.
"""
from typing import Callable, Dict, Optional

from infrastack.core.config import InfraStackConfig, get_config
from infrastack.core.inventory import InventoryStore
from infrastack.core.logger import get_logger
from infrastack.core.state_store import StateStore
from infrastack.core.zfs_manager import ZFSManager
from infrastack.radio.bulk import BulkResult
from infrastack.services.proxmox.containers import ContainerLifecycle

logger = get_logger(__name__)

PURGE_CONFIRMATION = "DELETE"


class RemovalManager:
    """Destroys station containers and, on request, their media datasets."""

    def __init__(self, config: Optional[InfraStackConfig] = None,
                 inventory: Optional[InventoryStore] = None, mock: bool = False):
        self.config = config or get_config()
        self.inventory = inventory or InventoryStore.from_config(self.config)
        self.mock = mock
        self.state = StateStore(self.config.state_file)
        self.lifecycle = ContainerLifecycle(mock=mock)
        self.zfs = ZFSManager(mock=mock)

    def describe(self, ctid: int) -> Dict:
        """What a removal of ctid would touch."""
        record = self.inventory.find(ctid)
        return {
            'ctid': ctid,
            'record': record,
            'dataset': record.resolve_dataset_path(self.config.media_root) if record else None,
            'exists': self.lifecycle.container_exists(ctid),
        }

    def remove_station(self, ctid: int, remove_data: bool = False,
                       confirm_data: Optional[Callable[[str], bool]] = None) -> bool:
        """Remove an already-confirmed station.

        Args:
            ctid: Container ID
            remove_data: Also destroy the media dataset
            confirm_data: Asked before the dataset is destroyed; declining keeps it

        Returns:
            True if the container and inventory row are gone
        """
        target = self.describe(ctid)
        dataset = target['dataset']

        if target['record'] is None and not target['exists']:
            logger.error(f"Container {ctid} not found on host or in inventory")
            return False

        self.state.begin(ctid, "remove")
        self.state.mark_step(ctid, "confirmed")

        if target['exists']:
            logger.info(f"Removing container {ctid}...")
            if not self.lifecycle.destroy_container(ctid, purge=True):
                logger.error(f"✗ Failed to delete container {ctid}, inventory left unchanged")
                self.state.mark_failed(ctid, "container_destroyed", "pct destroy failed")
                return False
        else:
            logger.warning(f"Container {ctid} no longer exists, cleaning up inventory only")
        self.state.mark_step(ctid, "container_destroyed")

        if target['record'] is not None:
            self.inventory.remove(ctid)
        self.state.mark_step(ctid, "inventory_removed")

        if remove_data and dataset:
            self._remove_dataset(ctid, dataset, confirm_data)
        elif dataset:
            logger.info(f"Note: Dataset was NOT removed: {dataset}")
            logger.info(f"To remove it later: zfs destroy -r {dataset}")

        self.state.finish(ctid)
        logger.info(f"✓ Container {ctid} removed successfully")
        return True

    def _remove_dataset(self, ctid: int, dataset: str,
                        confirm_data: Optional[Callable[[str], bool]]) -> None:
        logger.warning("This will permanently delete all media and configuration data")
        if confirm_data is not None and not confirm_data(f"Delete dataset {dataset}?"):
            logger.info(f"Dataset preserved: {dataset}")
            return

        if self.zfs.destroy_dataset(dataset, recursive=True):
            logger.info(f"✓ Dataset deleted: {dataset}")
            self.state.mark_step(ctid, "dataset_destroyed")
        else:
            logger.error(f"✗ Failed to delete dataset {dataset} (may need manual cleanup)")

    def purge_all(self, confirmation: str) -> Optional[BulkResult]:
        """Destroy every inventoried container and empty the inventory.

        Datasets are never touched. Anything but the exact confirmation
        word cancels without side effects.

        Returns:
            Per-container result, or None if cancelled
        """
        if confirmation != PURGE_CONFIRMATION:
            logger.info("Purge cancelled")
            return None

        result = BulkResult()
        logger.info("Purging all containers...")
        for record in self.inventory.list():
            logger.info(f"Removing {record.hostname} (CTID: {record.ctid})...")
            ok = self.lifecycle.destroy_container(record.ctid, purge=True)
            if not ok:
                logger.error(f"✗ Failed to delete {record.ctid}")
            result.record(record.ctid, ok)

        self.inventory.reset()
        logger.info("Purge complete")
        return result
