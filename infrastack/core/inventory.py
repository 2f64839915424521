"""Station inventory backed by a flat CSV file.

The inventory maps container IDs to the station deployed in them. Every CLI
invocation re-reads the file; there is no cache. Mutations are serialized
with an exclusive lock file and written atomically (temp file + rename).
"""
import csv
import os
from pathlib import Path
from typing import List, Optional

from infrastack.core.config import InfraStackConfig, get_config
from infrastack.core.lock import inventory_lock
from infrastack.core.logger import get_logger
from infrastack.models.station import INVENTORY_COLUMNS, StationRecord

logger = get_logger(__name__)


class InventoryError(Exception):
    """Raised when the inventory file cannot be read or written."""
    pass


class DuplicateStationError(InventoryError):
    """Raised when appending a CTID that is already recorded."""
    pass


class InventoryStore:
    """CTID -> station metadata, stored as CSV.

    Example:
        store = InventoryStore(Path("/var/lib/infrastack/inventory.csv"))
        store.initialize()
        store.append(StationRecord(340, "azuracast", "azuracast-main"))
        store.find(340)
    """

    def __init__(self, inventory_file: Path, lock_file: Optional[Path] = None,
                 lock_timeout: int = 0):
        self.inventory_file = Path(inventory_file)
        self.lock_file = Path(lock_file) if lock_file else self.inventory_file.with_suffix('.lock')
        self.lock_timeout = lock_timeout

    @classmethod
    def from_config(cls, config: Optional[InfraStackConfig] = None) -> "InventoryStore":
        config = config or get_config()
        return cls(config.inventory_file, config.lock_file, lock_timeout=config.lock_timeout)

    def initialize(self) -> None:
        """Create the inventory file with its header row if missing."""
        if self.inventory_file.exists():
            return

        try:
            self.inventory_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.inventory_file, 'x', newline='') as f:
                csv.writer(f, lineterminator='\n').writerow(INVENTORY_COLUMNS)
            logger.debug(f"Created inventory file: {self.inventory_file}")
        except FileExistsError:
            pass
        except OSError as e:
            raise InventoryError(f"Cannot create inventory {self.inventory_file}: {e}") from e

    # Reads

    def list(self) -> List[StationRecord]:
        """All station records in file order."""
        if not self.inventory_file.exists():
            logger.warning(f"No inventory file found at {self.inventory_file}")
            return []

        records = []
        try:
            with open(self.inventory_file, newline='') as f:
                for line_no, row in enumerate(csv.reader(f), start=1):
                    if not row or (line_no == 1 and row[0].strip().upper() == 'CTID'):
                        continue
                    try:
                        records.append(StationRecord.from_row(row))
                    except ValueError as e:
                        logger.warning(f"Skipping malformed inventory line {line_no}: {e}")
        except OSError as e:
            raise InventoryError(f"Cannot read inventory {self.inventory_file}: {e}") from e

        return records

    def find(self, ctid: int) -> Optional[StationRecord]:
        """First record for ctid, or None."""
        for record in self.list():
            if record.ctid == ctid:
                return record
        return None

    def list_by_platform(self, platform_type: str) -> List[StationRecord]:
        wanted = platform_type.lower()
        return [r for r in self.list() if r.platform_type.lower() == wanted]

    def count(self) -> int:
        return len(self.list())

    def count_by_platform(self, platform_type: str) -> int:
        return len(self.list_by_platform(platform_type))

    def ctids(self) -> List[int]:
        return [r.ctid for r in self.list()]

    # Mutations

    def append(self, record: StationRecord) -> None:
        """Add a station record.

        Raises:
            DuplicateStationError: If the CTID is already in the inventory
        """
        self.initialize()
        with inventory_lock(self.lock_file, timeout=self.lock_timeout):
            if self.find(record.ctid) is not None:
                raise DuplicateStationError(
                    f"Container {record.ctid} is already in the inventory"
                )
            try:
                with open(self.inventory_file, 'a', newline='') as f:
                    csv.writer(f, lineterminator='\n').writerow(record.to_row())
            except OSError as e:
                raise InventoryError(f"Cannot write inventory {self.inventory_file}: {e}") from e

        logger.info(f"Added container {record.ctid} ({record.hostname}) to inventory")

    def remove(self, ctid: int) -> bool:
        """Delete every row for ctid. Returns True if a row was removed.

        Works on raw CSV rows: rows for other CTIDs are written back
        unchanged and in order, even ones too malformed to parse.
        """
        if not self.inventory_file.exists():
            logger.warning(f"No inventory file found at {self.inventory_file}")
            return False

        target = str(ctid)
        with inventory_lock(self.lock_file, timeout=self.lock_timeout):
            rows = self._read_rows()
            kept = [row for row in rows if not row or row[0].strip() != target]
            if len(kept) == len(rows):
                logger.warning(f"Container {ctid} not found in inventory")
                return False
            self._write_rows(kept)

        logger.info(f"Removed container {ctid} from inventory")
        return True

    def reset(self) -> None:
        """Truncate the inventory to just its header row."""
        with inventory_lock(self.lock_file, timeout=self.lock_timeout):
            self._write_rows([INVENTORY_COLUMNS])
        logger.info("Inventory reset")

    def _read_rows(self) -> List[List[str]]:
        try:
            with open(self.inventory_file, newline='') as f:
                return list(csv.reader(f))
        except OSError as e:
            raise InventoryError(f"Cannot read inventory {self.inventory_file}: {e}") from e

    def _write_rows(self, rows: List[List[str]]) -> None:
        self.inventory_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.inventory_file.with_suffix('.tmp')
        try:
            with open(temp_file, 'w', newline='') as f:
                csv.writer(f, lineterminator='\n').writerows(rows)
            os.replace(temp_file, self.inventory_file)
        except OSError as e:
            raise InventoryError(f"Cannot write inventory {self.inventory_file}: {e}") from e
