"""Radio station inventory models."""
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

DEFAULT_MEDIA_ROOT = "hdd-pool/container-data"

# Column order of the inventory CSV. The first seven columns are the
# historical format; Dataset was appended so old files still parse.
INVENTORY_COLUMNS = [
    "CTID", "Type", "Hostname", "IP", "Description", "Created", "Status", "Dataset",
]
LEGACY_COLUMN_COUNT = 7


def build_hostname(platform_type: str, station_name: str) -> str:
    """Hostname convention: <platform>-<station>."""
    return f"{platform_type}-{station_name}"


def default_dataset_path(platform_type: str, station_name: str,
                         media_root: str = DEFAULT_MEDIA_ROOT) -> str:
    """Media dataset convention: <media_root>/<platform>-media/<station>."""
    return f"{media_root}/{platform_type}-media/{station_name}"


@dataclass
class StationRecord:
    """One row of the station inventory."""
    ctid: int
    platform_type: str
    hostname: str
    ip: str = "unknown"
    description: str = ""
    created: str = field(default_factory=lambda: date.today().isoformat())
    status: str = "deployed"
    dataset_path: Optional[str] = None

    @property
    def station_name(self) -> str:
        """Hostname with the platform prefix stripped."""
        prefix = f"{self.platform_type}-"
        if self.hostname.startswith(prefix):
            return self.hostname[len(prefix):]
        return self.hostname

    def resolve_dataset_path(self, media_root: str = DEFAULT_MEDIA_ROOT) -> Optional[str]:
        """Stored dataset path, or the derived one for legacy rows."""
        if self.dataset_path:
            return self.dataset_path
        if not self.platform_type or not self.hostname:
            return None
        return default_dataset_path(self.platform_type, self.station_name, media_root)

    def to_row(self) -> List[str]:
        return [
            str(self.ctid),
            self.platform_type,
            self.hostname,
            self.ip,
            self.description,
            self.created,
            self.status,
            self.dataset_path or "",
        ]

    @classmethod
    def from_row(cls, row: List[str]) -> "StationRecord":
        """Build a record from a CSV row.

        Raises:
            ValueError: If the row has too few columns or a non-numeric CTID
        """
        if len(row) < LEGACY_COLUMN_COUNT:
            raise ValueError(f"expected at least {LEGACY_COLUMN_COUNT} columns, got {len(row)}")

        dataset = row[7].strip() if len(row) > 7 else ""
        return cls(
            ctid=int(row[0].strip()),
            platform_type=row[1].strip(),
            hostname=row[2].strip(),
            ip=row[3].strip(),
            description=row[4],
            created=row[5].strip(),
            status=row[6].strip(),
            dataset_path=dataset or None,
        )
