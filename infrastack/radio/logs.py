"""Log viewing for station containers and the platforms running in them."""
from typing import List, Optional

from infrastack.core.inventory import InventoryStore
from infrastack.core.logger import get_logger
from infrastack.core.validator import LOG_TYPES, ValidationError, validate_choice
from infrastack.radio.platforms import get_platform
from infrastack.services.proxmox.containers import ContainerLifecycle

logger = get_logger(__name__)


def journal_command(lines: int = 50, follow: bool = False,
                    unit: Optional[str] = None) -> List[str]:
    """journalctl invocation for the container's system log."""
    cmd = ['journalctl', '-n', str(lines), '--no-pager']
    if follow:
        cmd.append('-f')
    if unit:
        cmd.extend(['-u', unit])
    return cmd


class LogViewer:
    """Streams logs out of a container with pct exec.

    Output goes straight to the terminal; follow mode blocks until the user
    interrupts it.
    """

    def __init__(self, inventory: InventoryStore, mock: bool = False):
        self.inventory = inventory
        self.mock = mock
        self.lifecycle = ContainerLifecycle(mock=mock)

    def show(self, ctid: int, log_type: str = "application", lines: int = 50,
             follow: bool = False, service: Optional[str] = None) -> int:
        """Show logs and return the exit code.

        A service name takes precedence over the log type.

        Raises:
            ValidationError: On unknown log type, or following 'both'
        """
        log_type = validate_choice(log_type, LOG_TYPES, "log type")
        if follow and log_type == "both" and not service:
            raise ValidationError("Cannot follow container and application logs at once")

        if not self.lifecycle.container_exists(ctid):
            logger.error(f"Container {ctid} does not exist")
            return 1

        if service:
            return self.show_service(ctid, service, lines, follow)

        if follow:
            logger.info(f"Following logs for container {ctid} (press Ctrl+C to stop)...")

        if log_type == "container":
            return self.show_container(ctid, lines, follow)
        if log_type == "application":
            return self.show_application(ctid, lines, follow)

        container_rc = self.show_container(ctid, lines)
        application_rc = self.show_application(ctid, lines)
        return container_rc or application_rc

    def show_container(self, ctid: int, lines: int = 50, follow: bool = False) -> int:
        logger.info(f"Container logs for {ctid} (last {lines} lines):")
        rc = self.lifecycle.exec_container_command(ctid, journal_command(lines, follow))
        if rc != 0 and not follow:
            logger.warning("Unable to retrieve container logs")
        return rc

    def show_application(self, ctid: int, lines: int = 50, follow: bool = False) -> int:
        record = self.inventory.find(ctid)
        if record is None:
            logger.error("Platform type unknown, cannot show application logs")
            return 1

        platform = get_platform(record.platform_type, mock=self.mock)
        if platform is None:
            logger.warning(f"No log viewer available for platform: {record.platform_type}")
            return 0

        logger.info(f"{platform.display_name} application logs:")
        return self.lifecycle.exec_container_command(ctid, platform.log_command(lines, follow))

    def show_service(self, ctid: int, service: str, lines: int = 50,
                     follow: bool = False) -> int:
        """Compose service logs for known platforms, systemd unit logs otherwise."""
        logger.info(f"Logs for service '{service}' in container {ctid}:")
        record = self.inventory.find(ctid)
        platform = get_platform(record.platform_type, mock=self.mock) if record else None

        if platform is not None:
            command = platform.log_command(lines, follow, service=service)
        else:
            command = journal_command(lines, follow, unit=service)
        return self.lifecycle.exec_container_command(ctid, command)
