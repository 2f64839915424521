"""ZFS snapshot management for station backups."""
import subprocess
from datetime import datetime
from typing import Optional

from infrastack.core.logger import get_logger

logger = get_logger(__name__)

SNAPSHOT_TIME_FORMAT = '%Y%m%d-%H%M%S'


class SnapshotManager:
    """Create point-in-time snapshots of station datasets."""

    def __init__(self, mock: bool = False):
        self.mock = mock
        self.snapshot_prefix = "backup"

    def snapshot_name(self, when: Optional[datetime] = None) -> str:
        """backup-YYYYMMDD-HHMMSS; unique per second."""
        when = when or datetime.now()
        return f"{self.snapshot_prefix}-{when.strftime(SNAPSHOT_TIME_FORMAT)}"

    def create_snapshot(self, dataset: str, name: Optional[str] = None) -> Optional[str]:
        """Create a snapshot of dataset.

        Args:
            dataset: Dataset path (pool/dataset)
            name: Snapshot name without '@' (timestamped if None)

        Returns:
            Full snapshot name (dataset@name), or None on failure
        """
        snapshot_name = name or self.snapshot_name()
        full_snapshot = f"{dataset}@{snapshot_name}"

        if self.mock:
            logger.info(f"MOCK: Would create snapshot {full_snapshot}")
            return full_snapshot

        try:
            cmd = ["zfs", "snapshot", full_snapshot]
            subprocess.run(cmd, check=True, capture_output=True, text=True)
            logger.info(f"Created snapshot: {full_snapshot}")
            return full_snapshot
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to create snapshot {full_snapshot}: {e}")
            if e.stderr:
                logger.error(f"Error output: {e.stderr.strip()}")
            return None
