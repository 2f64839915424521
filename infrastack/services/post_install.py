"""Post-installation automation for LXC containers.

Runs shell scripts inside containers via `pct exec`: boot wait, Docker
installation and platform installers.
"""
import subprocess
import time

from infrastack.core.config import get_config
from infrastack.core.logger import get_logger

logger = get_logger(__name__)

DOCKER_INSTALL_SCRIPT = """
export DEBIAN_FRONTEND=noninteractive
apt-get update -qq
apt-get install -y -qq ca-certificates curl gnupg lsb-release
install -m 0755 -d /etc/apt/keyrings
curl -fsSL https://download.docker.com/linux/debian/gpg -o /etc/apt/keyrings/docker.asc
chmod a+r /etc/apt/keyrings/docker.asc

echo "deb [arch=$(dpkg --print-architecture) signed-by=/etc/apt/keyrings/docker.asc] https://download.docker.com/linux/debian $(. /etc/os-release && echo $VERSION_CODENAME) stable" > /etc/apt/sources.list.d/docker.list

apt-get update -qq
apt-get install -y -qq docker-ce docker-ce-cli containerd.io docker-buildx-plugin docker-compose-plugin
systemctl enable docker
systemctl start docker
"""


class PostInstallManager:
    """Manages post-installation tasks in LXC containers."""

    def __init__(self, mock: bool = False):
        self.mock = mock

    def install_docker(self, vmid: int) -> bool:
        """Install Docker and the Compose plugin in container.

        Uses official Docker installation method.

        Returns:
            True if installation successful
        """
        if self.mock:
            logger.info(f"MOCK: Would install Docker in container {vmid}")
            return True

        logger.info(f"Installing Docker in container {vmid}...")

        if self._check_command_exists(vmid, 'docker'):
            logger.info(f"Docker already installed in container {vmid}")
            return True

        success = self._exec_in_container(vmid, DOCKER_INSTALL_SCRIPT)

        if success:
            logger.info(f"✓ Docker installed in container {vmid}")
        else:
            logger.error(f"✗ Docker installation failed in container {vmid}")

        return success

    def run_custom_command(self, vmid: int, command: str) -> bool:
        """Run shell command(s) inside container.

        Args:
            vmid: Container ID
            command: Shell command or multiline script

        Returns:
            True if command completed successfully
        """
        if self.mock:
            logger.info(f"MOCK: Would run command in container {vmid}")
            logger.debug(f"Command: {command[:100]}...")
            return True

        logger.debug(f"Command: {command}")
        return self._exec_in_container(vmid, command)

    def _exec_in_container(self, vmid: int, command: str) -> bool:
        """Execute command inside container via pct exec.

        No timeout: installers and image pulls can legitimately take long.
        """
        try:
            result = subprocess.run(
                ['pct', 'exec', str(vmid), '--', 'bash', '-c', command],
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            logger.error("pct not found, is this a Proxmox host?")
            return False

        if result.returncode == 0:
            logger.debug(f"Command output: {result.stdout}")
            return True

        logger.error(f"Command failed with exit code {result.returncode}")
        if result.stderr:
            logger.error(f"stderr: {result.stderr.strip()}")
        return False

    def _check_command_exists(self, vmid: int, command: str) -> bool:
        """Check if a command exists in container."""
        config = get_config()
        check_script = f"command -v {command} >/dev/null 2>&1"

        try:
            result = subprocess.run(
                ['pct', 'exec', str(vmid), '--', 'bash', '-c', check_script],
                capture_output=True,
                timeout=config.command_check_timeout
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False

    def wait_for_container_boot(self, vmid: int, timeout: int = None) -> bool:
        """Wait for systemd inside the container to reach running/degraded.

        Returns:
            True if container is ready; False after timeout (callers continue)
        """
        if self.mock:
            return True

        config = get_config()
        actual_timeout = timeout if timeout is not None else config.container_boot_timeout

        logger.info(f"Waiting for container {vmid} to be ready...")

        waited = 0
        while waited < actual_timeout:
            try:
                result = subprocess.run(
                    ['pct', 'exec', str(vmid), '--', 'systemctl', 'is-system-running'],
                    capture_output=True,
                    text=True,
                    timeout=config.command_check_timeout
                )
                if result.stdout.strip() in ('running', 'degraded'):
                    logger.debug(f"Container {vmid} ready after {waited}s")
                    return True
            except subprocess.TimeoutExpired:
                pass

            time.sleep(2)
            waited += 2

        logger.warning(f"Container {vmid} may not be fully ready after {actual_timeout}s, continuing")
        return False
