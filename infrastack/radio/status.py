"""Live status of inventoried stations.

The inventory's Status column is a label written at deploy time; the state
reported here always comes from Proxmox.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from infrastack.core.config import get_config
from infrastack.core.inventory import InventoryStore
from infrastack.core.state_store import StateStore
from infrastack.models import StationRecord
from infrastack.services.proxmox.containers import ContainerDiscovery


@dataclass
class StationStatus:
    record: StationRecord
    live_status: str


class StatusReporter:
    """Joins inventory rows with live container state."""

    def __init__(self, inventory: InventoryStore, mock: bool = False):
        self.inventory = inventory
        self.discovery = ContainerDiscovery(mock=mock)

    def collect(self, platform_type: Optional[str] = None) -> List[StationStatus]:
        """Status of every station (optionally one platform), inventory order."""
        records = (
            self.inventory.list_by_platform(platform_type)
            if platform_type else self.inventory.list()
        )
        return [
            StationStatus(record, self.discovery.get_container_status(record.ctid))
            for record in records
        ]

    def station_detail(self, ctid: int) -> Optional[Dict]:
        """Live config and status of one container plus its inventory row.

        Returns:
            Dict with 'container' (live details) and 'record' (may be None),
            or None if the container does not exist
        """
        container = self.discovery.get_container_info(ctid)
        if container is None:
            return None
        return {'container': container, 'record': self.inventory.find(ctid)}

    def unfinished_operations(self) -> List[Dict]:
        """Deploys and removals whose step journal was never closed, by CTID."""
        journal = StateStore(get_config().state_file)
        return [
            {
                'ctid': ctid,
                'operation': entry.get('operation', ''),
                'last_step': journal.last_step(ctid),
                'failed_step': entry.get('failed_step'),
                'reason': entry.get('failure_reason', ''),
            }
            for ctid, entry in sorted(journal.incomplete_operations().items())
        ]
