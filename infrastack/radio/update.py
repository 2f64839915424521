"""Platform updates for running stations."""
from typing import List

from infrastack.core.inventory import InventoryStore
from infrastack.core.logger import get_logger
from infrastack.models import StationRecord
from infrastack.radio.bulk import BulkResult
from infrastack.radio.platforms import get_platform
from infrastack.services.proxmox.containers import ContainerDiscovery
from infrastack.services.proxmox.containers.discovery import STATUS_NOT_FOUND, STATUS_RUNNING

logger = get_logger(__name__)


class StationUpdater:
    """Runs each platform's own update procedure inside its container."""

    def __init__(self, inventory: InventoryStore, mock: bool = False):
        self.inventory = inventory
        self.mock = mock
        self.discovery = ContainerDiscovery(mock=mock)

    def update_station(self, ctid: int) -> bool:
        record = self.inventory.find(ctid)
        if record is None:
            logger.error(f"Container {ctid} not found in inventory")
            return False
        return self._update(record)

    def update_many(self, records: List[StationRecord]) -> BulkResult:
        """Update each station in turn; a failure does not stop the rest."""
        result = BulkResult()
        for record in records:
            result.record(record.ctid, self._update(record))
        return result

    def _update(self, record: StationRecord) -> bool:
        ctid = record.ctid
        status = self.discovery.get_container_status(ctid)
        if status == STATUS_NOT_FOUND:
            logger.error(f"Container {ctid} does not exist")
            return False
        if status != STATUS_RUNNING:
            logger.error(f"Container {ctid} is {status}, start it before updating")
            return False

        platform = get_platform(record.platform_type, mock=self.mock)
        if platform is None:
            logger.error(f"No update procedure for platform: {record.platform_type}")
            return False

        logger.info(f"Updating {platform.display_name} in container {ctid} ({record.hostname})")
        return platform.update(ctid)
