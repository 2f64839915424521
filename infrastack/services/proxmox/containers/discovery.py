"""Container discovery and information retrieval."""
import subprocess
from typing import Dict, List, Optional

from infrastack.core.logger import get_logger

logger = get_logger(__name__)

STATUS_RUNNING = 'running'
STATUS_STOPPED = 'stopped'
STATUS_NOT_FOUND = 'not-found'
STATUS_UNKNOWN = 'unknown'

MOCK_CONTAINERS = [
    {'vmid': 340, 'name': 'azuracast-main-station', 'status': STATUS_RUNNING},
    {'vmid': 350, 'name': 'libretime-station1', 'status': STATUS_STOPPED},
]


class ContainerDiscovery:
    """Discovers and retrieves information about Proxmox LXC containers."""

    def __init__(self, mock: bool = False):
        self.mock = mock

    def list_containers(self) -> List[Dict]:
        """List all LXC containers.

        Returns:
            List of container dicts with vmid, name, status
        """
        if self.mock:
            logger.debug("MOCK: Would list containers")
            return [dict(c) for c in MOCK_CONTAINERS]

        containers = []
        try:
            result = subprocess.run(
                ["pct", "list"],
                capture_output=True,
                text=True,
                check=True
            )

            # Columns: VMID Status [Lock] Name
            for line in result.stdout.strip().split('\n')[1:]:
                parts = line.split()
                if len(parts) >= 3 and parts[0].isdigit():
                    containers.append({
                        'vmid': int(parts[0]),
                        'status': parts[1],
                        'name': parts[-1]
                    })

        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            logger.error(f"Failed to list containers: {e}")

        return containers

    def container_ids(self) -> List[int]:
        return [c['vmid'] for c in self.list_containers()]

    def container_exists(self, vmid: int) -> bool:
        """Check if a container exists.

        Args:
            vmid: Container ID

        Returns:
            True if container exists
        """
        if self.mock:
            return any(c['vmid'] == vmid for c in MOCK_CONTAINERS)

        try:
            cmd = ["pct", "status", str(vmid)]
            subprocess.run(cmd, check=True, capture_output=True, text=True)
            return True
        except (subprocess.CalledProcessError, FileNotFoundError):
            return False

    def get_container_status(self, vmid: int) -> str:
        """Live status: running, stopped, not-found or unknown.

        Never raises; a CTID missing from Proxmox reports not-found.
        """
        if self.mock:
            container = next((c for c in MOCK_CONTAINERS if c['vmid'] == vmid), None)
            return container['status'] if container else STATUS_NOT_FOUND

        try:
            result = subprocess.run(
                ["pct", "status", str(vmid)],
                capture_output=True,
                text=True,
                check=True
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or '').lower()
            if 'does not exist' in stderr or 'no such' in stderr:
                return STATUS_NOT_FOUND
            logger.debug(f"pct status {vmid} failed: {stderr.strip()}")
            return STATUS_UNKNOWN
        except FileNotFoundError:
            return STATUS_UNKNOWN

        # Output: "status: running"
        _, _, value = result.stdout.strip().partition(':')
        value = value.strip()
        if value in (STATUS_RUNNING, STATUS_STOPPED):
            return value
        return value or STATUS_UNKNOWN

    def get_container_config(self, vmid: int) -> Dict[str, str]:
        """Get raw configuration for a specific container via pct config.

        Args:
            vmid: Container ID

        Returns:
            Dict of config key/value pairs (empty if unavailable)
        """
        if self.mock:
            container = next((c for c in MOCK_CONTAINERS if c['vmid'] == vmid), None)
            if not container:
                return {}
            return {
                'hostname': container['name'],
                'cores': '4',
                'memory': '8192',
                'rootfs': f'data:subvol-{vmid}-disk-0,size=32G',
                'mp0': '/hdd-pool/container-data,mp=/var/azuracast/stations',
            }

        try:
            result = subprocess.run(
                ["pct", "config", str(vmid)],
                capture_output=True,
                text=True,
                check=True
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            logger.warning(f"Failed to read config for container {vmid}: {e}")
            return {}

        config = {}
        for line in result.stdout.splitlines():
            line = line.strip()
            if line and not line.startswith('#') and ':' in line:
                key, value = line.split(':', 1)
                config[key.strip()] = value.strip()
        return config

    def get_container_ip(self, vmid: int) -> Optional[str]:
        """First IPv4 address reported inside a running container."""
        if self.mock:
            return f"192.168.2.{vmid % 250 + 2}"

        try:
            result = subprocess.run(
                ["pct", "exec", str(vmid), "--", "hostname", "-I"],
                capture_output=True,
                text=True,
                check=True
            )
        except (subprocess.CalledProcessError, FileNotFoundError):
            return None

        for address in result.stdout.split():
            if '.' in address:
                return address
        return None

    def get_container_info(self, vmid: int) -> Optional[Dict]:
        """Get live details about a container.

        Returns:
            Dict with vmid, hostname, status, cores, memory, rootfs, ip,
            or None if the container does not exist
        """
        status = self.get_container_status(vmid)
        if status == STATUS_NOT_FOUND:
            return None

        config = self.get_container_config(vmid)
        ip = self.get_container_ip(vmid) if status == STATUS_RUNNING else None

        return {
            'vmid': vmid,
            'hostname': config.get('hostname', 'N/A'),
            'status': status,
            'cores': config.get('cores', 'N/A'),
            'memory': config.get('memory', 'N/A'),
            'rootfs': config.get('rootfs', ''),
            'mounts': {k: v for k, v in config.items() if k.startswith('mp')},
            'ip': ip or 'N/A',
        }
