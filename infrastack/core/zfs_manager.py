"""ZFS dataset management."""
import subprocess
from typing import Dict, Optional

from infrastack.core.logger import get_logger

logger = get_logger(__name__)


class ZFSManager:
    """Manages ZFS datasets and properties."""

    def __init__(self, mock: bool = False):
        self.mock = mock
        self._mock_datasets = set()

    def create_dataset(self, name: str, properties: Dict[str, str]) -> bool:
        """Create a ZFS dataset with specified properties.

        If the dataset already exists, syncs properties instead of failing.
        This makes the operation idempotent.

        Args:
            name: Full dataset name (e.g., 'hdd-pool/container-data/azuracast-media/main')
            properties: Dict of ZFS properties to set

        Returns:
            True if dataset created or properties synced successfully
        """
        if self.dataset_exists(name):
            logger.info(f"Dataset {name} already exists, syncing properties...")
            return self.sync_properties(name, properties)

        if self.mock:
            logger.info(f"MOCK: Would create dataset {name} with properties {properties}")
            self._mock_datasets.add(name)
            return True

        # -p creates missing parents (<platform>-media)
        cmd = ["zfs", "create", "-p"]
        for key, value in properties.items():
            cmd.extend(["-o", f"{key}={value}"])
        cmd.append(name)

        try:
            logger.info(f"Creating dataset: {name}")
            subprocess.run(cmd, check=True, capture_output=True, text=True)
            return True
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to create dataset {name}: {e}")
            if e.stderr:
                logger.error(f"Error output: {e.stderr.strip()}")
            return False

    def set_property(self, dataset: str, key: str, value: str) -> bool:
        """Set a property on an existing dataset."""
        if self.mock:
            logger.info(f"MOCK: Would set {dataset} property {key}={value}")
            return True

        try:
            cmd = ["zfs", "set", f"{key}={value}", dataset]
            subprocess.run(cmd, check=True, capture_output=True, text=True)
            logger.info(f"Set {dataset} property {key}={value}")
            return True
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to set property: {e}")
            return False

    def get_properties(self, dataset: str, names: str = "all") -> Dict[str, str]:
        """Get properties for a dataset (comma-separated names or 'all')."""
        if self.mock:
            return {'used': '1.2G', 'available': '498G', 'mountpoint': f'/{dataset}'}

        try:
            cmd = ["zfs", "get", "-H", "-o", "property,value", names, dataset]
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError:
            return {}

        properties = {}
        for line in result.stdout.strip().split('\n'):
            parts = line.split('\t')
            if len(parts) >= 2:
                properties[parts[0]] = parts[1]
        return properties

    def get_mountpoint(self, dataset: str) -> str:
        """Host path where the dataset is mounted."""
        mountpoint = self.get_properties(dataset, "mountpoint").get("mountpoint")
        if not mountpoint or mountpoint in ("-", "none", "legacy"):
            return f"/{dataset}"
        return mountpoint

    def dataset_exists(self, dataset: str) -> bool:
        """Check if a dataset exists.

        Args:
            dataset: Full dataset name

        Returns:
            True if dataset exists, False otherwise
        """
        if self.mock:
            return dataset in self._mock_datasets

        try:
            cmd = ["zfs", "list", "-H", "-o", "name", dataset]
            subprocess.run(cmd, check=True, capture_output=True, text=True)
            return True
        except subprocess.CalledProcessError:
            return False

    def sync_properties(self, dataset: str, desired_properties: Dict[str, str]) -> bool:
        """Update only the properties whose current value differs."""
        if self.mock:
            logger.info(f"MOCK: Would sync properties for {dataset}")
            return True

        current_properties = self.get_properties(dataset)
        success = True

        for key, desired_value in desired_properties.items():
            current_value = current_properties.get(key)
            if current_value == desired_value:
                logger.debug(f"Property {key} already set to {desired_value}")
                continue

            logger.info(f"Property mismatch for {dataset}: {key} is '{current_value}', want '{desired_value}'")
            if not self.set_property(dataset, key, desired_value):
                success = False

        return success

    def destroy_dataset(self, dataset: str, recursive: bool = True) -> bool:
        """Destroy a dataset (and its snapshots when recursive)."""
        if self.mock:
            logger.info(f"MOCK: Would destroy dataset {dataset}")
            self._mock_datasets.discard(dataset)
            return True

        cmd = ["zfs", "destroy"]
        if recursive:
            cmd.append("-r")
        cmd.append(dataset)

        try:
            logger.info(f"Destroying dataset: {dataset}")
            subprocess.run(cmd, check=True, capture_output=True, text=True)
            return True
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to destroy dataset {dataset}: {e}")
            if e.stderr:
                logger.error(f"Error output: {e.stderr.strip()}")
            return False

    def get_usage(self, dataset: str) -> Optional[Dict[str, str]]:
        """Return used/available/quota for a dataset, or None if missing."""
        if not self.mock and not self.dataset_exists(dataset):
            return None
        props = self.get_properties(dataset, "used,available,quota")
        return {key: props.get(key, "-") for key in ("used", "available", "quota")}
