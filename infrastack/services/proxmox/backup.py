"""Container image backups through vzdump and pvesm."""
import subprocess
from typing import Dict, List, Optional

from infrastack.core.logger import get_logger

logger = get_logger(__name__)


class BackupStorage:
    """Runs vzdump into a Proxmox storage and lists what it holds."""

    def __init__(self, storage: str, mode: str = 'snapshot', compress: str = 'zstd',
                 mock: bool = False):
        self.storage = storage
        self.mode = mode
        self.compress = compress
        self.mock = mock

    def vzdump(self, vmid: int) -> bool:
        """Back up a container's filesystem image.

        Failures are reported, not retried.
        """
        cmd = [
            'vzdump', str(vmid),
            '--storage', self.storage,
            '--mode', self.mode,
            '--compress', self.compress,
        ]

        if self.mock:
            logger.info(f"MOCK: Would run {' '.join(cmd)}")
            return True

        try:
            logger.info(f"Running vzdump for container {vmid} to {self.storage}")
            subprocess.run(cmd, capture_output=True, text=True, check=True)
            return True
        except subprocess.CalledProcessError as e:
            logger.error(f"Vzdump backup of {vmid} failed: {e}")
            if e.stderr:
                logger.error(f"Error output: {e.stderr.strip()}")
            return False
        except FileNotFoundError:
            logger.error("vzdump not found, is this a Proxmox host?")
            return False

    @staticmethod
    def backup_pattern(vmid: Optional[int] = None) -> str:
        """Volume name fragment identifying a container's backups."""
        return f"vzdump-lxc-{vmid}-" if vmid is not None else "vzdump-lxc-"

    def list_backups(self, vmid: Optional[int] = None) -> List[Dict[str, str]]:
        """Backups in the storage, optionally only those of vmid.

        Returns:
            List of dicts with volid, format, size
        """
        pattern = self.backup_pattern(vmid)

        if self.mock:
            sample_id = vmid if vmid is not None else 340
            volid = f"{self.storage}:backup/vzdump-lxc-{sample_id}-2025_01_09-12_00_00.tar.zst"
            return [{'volid': volid, 'format': 'tar.zst', 'size': '2147483648'}]

        try:
            result = subprocess.run(
                ['pvesm', 'list', self.storage],
                capture_output=True,
                text=True,
                check=True
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            logger.error(f"Failed to list storage {self.storage}: {e}")
            return []

        backups = []
        # Columns: Volid Format Type Size [VMID]
        for line in result.stdout.splitlines()[1:]:
            if pattern not in line:
                continue
            parts = line.split()
            backups.append({
                'volid': parts[0],
                'format': parts[1] if len(parts) > 1 else '',
                'size': parts[3] if len(parts) > 3 else '',
            })

        return backups
