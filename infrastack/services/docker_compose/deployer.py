"""
Docker Compose Deployment - Deploy compose stacks to LXC containers.

Handles the last step of a station deploy:
1. Container exists ✓
2. Media dataset mounted ✓
3. Docker installed ✓
4. NOW: Write docker-compose.yml + .env → start the platform services
"""
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from infrastack.core.logger import get_logger

logger = get_logger(__name__)


class ComposeDeployer:
    """
    Deploys Docker Compose configurations to LXC containers.

    Example workflow:
        deployer = ComposeDeployer(container_id=350, compose_dir="/opt/libretime")
        deployer.deploy_compose(compose_content, env_vars)
        deployer.start_services()
    """

    def __init__(self, container_id: int, compose_dir: str = "/opt/infrastack/compose",
                 project_name: str = "app", mock: bool = False):
        """
        Initialize deployer for a specific container.

        Args:
            container_id: Proxmox container VMID
            compose_dir: Directory inside the container holding the stack
            project_name: Docker Compose project name
            mock: If True, don't execute actual commands
        """
        self.container_id = container_id
        self.project_name = project_name
        self.mock = mock

        self.compose_dir = Path(compose_dir)
        self.compose_file = self.compose_dir / "docker-compose.yml"
        self.env_file = self.compose_dir / ".env"

    def deploy_compose(
        self,
        compose_content: Dict[str, Any],
        env_vars: Optional[Dict[str, str]] = None,
        extra_files: Optional[Dict[str, str]] = None,
    ) -> bool:
        """
        Write docker-compose.yml (and .env / extra files) into the container.

        Args:
            compose_content: Parsed compose dictionary
            env_vars: Environment variables for .env file
            extra_files: File name (relative to compose_dir) -> content

        Returns:
            True if deployment successful
        """
        if self.mock:
            logger.info(f"MOCK: Would deploy compose to {self.compose_dir} in container {self.container_id}")
            return True

        try:
            self._exec_in_container(f"mkdir -p {self.compose_dir}")

            compose_yaml = yaml.dump(
                compose_content,
                default_flow_style=False,
                sort_keys=False
            )
            self._write_file_to_container(self.compose_file, compose_yaml)

            if env_vars:
                env_content = "\n".join(
                    f"{key}={value}" for key, value in env_vars.items()
                ) + "\n"
                self._write_file_to_container(self.env_file, env_content)
                self._exec_in_container(f"chmod 600 {self.env_file}")

            for name, content in (extra_files or {}).items():
                self._write_file_to_container(self.compose_dir / name, content)

            logger.info(f"✓ Deployed compose to container {self.container_id}")
            return True

        except RuntimeError as e:
            logger.error(f"✗ Failed to deploy compose to container {self.container_id}: {e}")
            return False

    def start_services(self) -> bool:
        """Pull images and start services (docker compose up -d)."""
        return self._compose_steps(
            ["pull", "up -d"],
            action="Starting services",
        )

    def update_services(self) -> bool:
        """Pull newer images and recreate changed services."""
        return self._compose_steps(
            ["pull", "up -d --remove-orphans"],
            action="Updating services",
        )

    def compose_command(self, args: str) -> str:
        """Shell command running `docker compose <args>` for this stack."""
        return f"cd {self.compose_dir} && docker compose -p {self.project_name} {args}"

    def _compose_steps(self, steps: List[str], action: str) -> bool:
        if self.mock:
            logger.info(f"MOCK: {action} in container {self.container_id}")
            return True

        logger.info(f"{action} in container {self.container_id}...")
        try:
            for step in steps:
                self._exec_in_container(self.compose_command(step))
        except RuntimeError as e:
            logger.error(f"✗ {action} failed in container {self.container_id}: {e}")
            return False

        logger.info(f"✓ {action} done in container {self.container_id}")
        return True

    def _exec_in_container(self, command: str) -> None:
        """
        Execute command inside Proxmox container.

        Raises:
            RuntimeError: If the command exits non-zero
        """
        pct_cmd = ['pct', 'exec', str(self.container_id), '--', 'bash', '-c', command]

        try:
            subprocess.run(pct_cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise RuntimeError(
                f"Command failed in container {self.container_id}: {e} {(e.stderr or '').strip()}"
            )

    def _write_file_to_container(self, container_path: Path, content: str) -> None:
        """
        Write file content to container via temporary file + pct push.
        """
        with tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.tmp') as f:
            f.write(content)
            temp_path = f.name

        try:
            subprocess.run(
                ['pct', 'push', str(self.container_id), temp_path, str(container_path)],
                capture_output=True,
                text=True,
                check=True
            )
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"pct push to {container_path} failed: {e}")
        finally:
            Path(temp_path).unlink(missing_ok=True)
