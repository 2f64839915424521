"""Container lifecycle management (create, mount, start, stop, destroy)."""
import shlex
import subprocess
from typing import Dict, List, Optional

from infrastack.core.logger import get_logger
from .discovery import ContainerDiscovery

logger = get_logger(__name__)


class ContainerLifecycle:
    """Manages LXC container lifecycle operations."""

    def __init__(self, mock: bool = False):
        self.mock = mock
        self.discovery = ContainerDiscovery(mock=mock)

    def create_container(self, spec: Dict) -> Optional[int]:
        """Create a new LXC container.

        Args:
            spec: Container definition dict with:
                - vmid: Container ID (required)
                - hostname: Container hostname
                - template: Template volume (e.g., 'local:vztmpl/debian-13-standard_13.1-2_amd64.tar.zst')
                - storage: Storage for rootfs (e.g., 'data')
                - resources: cores, memory, swap, disk (GB)
                - network: bridge, ip ('dhcp' or CIDR), gateway
                - nameserver, description (optional)

        Returns:
            Container VMID if successful, None if failed
        """
        vmid = spec.get('vmid')
        template = spec.get('template')
        if not vmid or not template:
            logger.error("Container spec requires vmid and template")
            return None

        hostname = spec.get('hostname', f'ct{vmid}')

        resources = spec.get('resources', {})
        memory = resources.get('memory', 2048)
        cores = resources.get('cores', 2)
        swap = resources.get('swap', memory // 2)
        # Proxmox expects rootfs size as a number of GB without suffix
        disk = str(resources.get('disk', 16)).rstrip('GgMmKkTt')

        network = spec.get('network', {})
        bridge = network.get('bridge', 'vmbr0')
        ip = network.get('ip', 'dhcp')
        gateway = network.get('gateway')

        net_config = f'name=eth0,bridge={bridge},ip={ip}'
        if ip != 'dhcp' and gateway:
            net_config += f',gw={gateway}'

        cmd = [
            'pct', 'create', str(vmid), template,
            '--hostname', hostname,
            '--cores', str(cores),
            '--memory', str(memory),
            '--swap', str(swap),
            '--rootfs', f"{spec.get('storage', 'local-lvm')}:{disk}",
            '--unprivileged', '1',
            '--features', spec.get('features', 'nesting=1,keyctl=1'),
            '--net0', net_config,
            '--ostype', 'debian',
            '--onboot', '1',
            '--start', '0',
        ]

        if spec.get('nameserver'):
            cmd.extend(['--nameserver', spec['nameserver']])

        if spec.get('description'):
            cmd.extend(['--description', spec['description']])

        if self.mock:
            logger.info(f"MOCK: Would create container {vmid} ({hostname})")
            logger.debug(f"MOCK: {shlex.join(cmd)}")
            return vmid

        try:
            logger.info(f"Creating container {vmid} ({hostname})")
            logger.debug(f"Command: {shlex.join(cmd)}")
            subprocess.run(cmd, capture_output=True, text=True, check=True)
            logger.info(f"✓ Container {vmid} ({hostname}) created successfully")
            return vmid

        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to create container {vmid}: {e}")
            if e.stderr:
                logger.error(f"Error output: {e.stderr.strip()}")
            return None

    def add_mount(self, vmid: int, host_path: str, container_path: str,
                  mount_point: int = 0) -> bool:
        """Bind-mount a host path into the container (pct set --mpN)."""
        mp_value = f"{host_path},mp={container_path}"

        if self.mock:
            logger.info(f"MOCK: Would set mp{mount_point} on {vmid}: {mp_value}")
            return True

        try:
            logger.info(f"Mounting {host_path} at {container_path} in container {vmid}")
            subprocess.run(
                ['pct', 'set', str(vmid), f'--mp{mount_point}', mp_value],
                capture_output=True,
                text=True,
                check=True
            )
            return True
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to add mount to container {vmid}: {e}")
            if e.stderr:
                logger.error(f"Error output: {e.stderr.strip()}")
            return False

    def start_container(self, vmid: int) -> bool:
        """Start a container.

        Returns:
            True if started (or already running)
        """
        if self.mock:
            logger.info(f"MOCK: Would start container {vmid}")
            return True

        try:
            logger.info(f"Starting container {vmid}")
            subprocess.run(
                ['pct', 'start', str(vmid)],
                capture_output=True,
                text=True,
                check=True
            )
            logger.info(f"✓ Container {vmid} started")
            return True

        except subprocess.CalledProcessError as e:
            if e.stderr and 'already running' in e.stderr.lower():
                logger.info(f"Container {vmid} already running")
                return True
            logger.error(f"Failed to start container {vmid}: {e}")
            return False

    def stop_container(self, vmid: int) -> bool:
        """Stop a container.

        Returns:
            True if stopped successfully
        """
        if self.mock:
            logger.info(f"MOCK: Would stop container {vmid}")
            return True

        try:
            logger.info(f"Stopping container {vmid}")
            subprocess.run(
                ['pct', 'stop', str(vmid)],
                capture_output=True,
                text=True,
                check=True
            )
            logger.info(f"✓ Container {vmid} stopped")
            return True

        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to stop container {vmid}: {e}")
            return False

    def destroy_container(self, vmid: int, purge: bool = True) -> bool:
        """Stop (if running) and destroy a container.

        Args:
            vmid: Container ID
            purge: Also remove the container from backup jobs, HA and ACLs

        Returns:
            True if the container no longer exists
        """
        if self.mock:
            logger.info(f"MOCK: Would destroy container {vmid}")
            return True

        if self.discovery.get_container_status(vmid) == 'running':
            if not self.stop_container(vmid):
                return False

        cmd = ['pct', 'destroy', str(vmid)]
        if purge:
            cmd.append('--purge')

        try:
            logger.info(f"Destroying container {vmid}")
            subprocess.run(cmd, capture_output=True, text=True, check=True)
            logger.info(f"✓ Container {vmid} destroyed")
            return True
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to destroy container {vmid}: {e}")
            if e.stderr:
                logger.error(f"Error output: {e.stderr.strip()}")
            return False

    def exec_container_command(self, vmid: int, command: List[str]) -> int:
        """Run a command inside the container with output passed through.

        Blocks until the command exits (or is interrupted, for follow modes).

        Returns:
            The command's exit code
        """
        if not command:
            logger.error("No command provided for pct exec")
            return 1

        base_cmd: List[str] = ['pct', 'exec', str(vmid), '--']
        base_cmd.extend(command)

        command_str = shlex.join(base_cmd)

        if self.mock:
            logger.info(f"MOCK: Would execute: {command_str}")
            return 0

        logger.debug(f"Executing in container {vmid}: {command_str}")
        try:
            result = subprocess.run(base_cmd, check=False)
        except KeyboardInterrupt:
            logger.info("Interrupted")
            return 130
        if result.returncode != 0:
            logger.warning(f"Command exited with code {result.returncode}")
        return result.returncode

    def container_exists(self, vmid: int) -> bool:
        """Check if a container exists (delegates to discovery)."""
        return self.discovery.container_exists(vmid)
