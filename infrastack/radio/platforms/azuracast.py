"""AzuraCast: all-in-one web radio suite managed through its docker.sh helper."""
from typing import Dict, List, Optional

from .base import Platform

INSTALL_DIR = "/var/azuracast"
DOCKER_SH_URL = "https://raw.githubusercontent.com/AzuraCast/AzuraCast/main/docker.sh"

INSTALL_SCRIPT = f"""
set -e
mkdir -p {INSTALL_DIR}
cd {INSTALL_DIR}
curl -fsSL {DOCKER_SH_URL} > docker.sh
chmod a+x docker.sh
yes 'Y' | ./docker.sh install
"""

UPDATE_SCRIPT = f"""
set -e
cd {INSTALL_DIR}
./docker.sh update-self
./docker.sh update --yes
"""

BACKUP_SCRIPT = f"""
set -e
cd {INSTALL_DIR}
./docker.sh backup
"""


class AzuraCastPlatform(Platform):
    name = "azuracast"
    display_name = "AzuraCast"

    cores = 6
    memory = 12288
    swap = 4096
    disk = 50
    quota = "500G"

    mount_path = f"{INSTALL_DIR}/stations"

    def install(self, ctid: int, station_name: str, ip: str) -> Optional[Dict[str, str]]:
        if not self._run(ctid, INSTALL_SCRIPT, "Installing AzuraCast"):
            return None

        # AzuraCast creates the admin account in its first-run web wizard
        return {
            "Web interface": f"http://{ip}",
            "Administrator": "Create on first visit to the web interface",
            "Install directory": INSTALL_DIR,
            "Station media": self.mount_path,
        }

    def update(self, ctid: int) -> bool:
        return self._run(ctid, UPDATE_SCRIPT, "Updating AzuraCast")

    def backup_application(self, ctid: int) -> bool:
        return self._run(ctid, BACKUP_SCRIPT, "Running AzuraCast backup")

    def log_command(self, lines: int = 50, follow: bool = False,
                    service: Optional[str] = None) -> List[str]:
        args = f"logs --tail={lines}"
        if follow:
            args += " -f"
        if service:
            args += f" {service}"
        return ["bash", "-c", f"cd {INSTALL_DIR} && docker compose {args}"]
