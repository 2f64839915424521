"""Data models for InfraStack."""
from infrastack.models.station import (
    INVENTORY_COLUMNS,
    StationRecord,
    build_hostname,
    default_dataset_path,
)

__all__ = [
    'INVENTORY_COLUMNS',
    'StationRecord',
    'build_hostname',
    'default_dataset_path',
]
