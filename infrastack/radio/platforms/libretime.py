"""LibreTime: broadcast automation, deployed as a Docker Compose stack.

The stack lives in /opt/libretime inside the container: docker-compose.yml,
a .env with generated passwords and LibreTime's own config.yml.
"""
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional

import yaml

from infrastack.core.logger import get_logger
from infrastack.services.docker_compose import ComposeDeployer
from .base import Platform

logger = get_logger(__name__)

COMPOSE_DIR = "/opt/libretime"
PROJECT_NAME = "libretime"
STORAGE_PATH = "/srv/libretime"

LIBRETIME_VERSION = "4.2.0"
IMAGE_REGISTRY = "ghcr.io/libretime"

WEB_PORT = 8080
STREAM_PORT = 8000

MIGRATE_ARGS = "run --rm api libretime-api migrate"


def _libretime_service(component: str, **extra: Any) -> Dict[str, Any]:
    service = {
        "image": f"{IMAGE_REGISTRY}/libretime-{component}:${{LIBRETIME_VERSION}}",
        "restart": "unless-stopped",
        "volumes": [
            "./config.yml:/etc/libretime/config.yml:ro",
            f"{STORAGE_PATH}:{STORAGE_PATH}",
        ],
    }
    service.update(extra)
    return service


def _healthy(*services: str) -> Dict[str, Dict[str, str]]:
    """Long-form depends_on: wait for each service's healthcheck."""
    return {name: {"condition": "service_healthy"} for name in services}


def build_compose() -> Dict[str, Any]:
    """docker-compose.yml content for a LibreTime station."""
    return {
        "services": {
            "postgres": {
                "image": "postgres:15",
                "restart": "unless-stopped",
                "environment": {
                    "POSTGRES_USER": "${POSTGRES_USER}",
                    "POSTGRES_PASSWORD": "${POSTGRES_PASSWORD}",
                },
                "volumes": ["postgres_data:/var/lib/postgresql/data"],
                "healthcheck": {
                    "test": "pg_isready -U libretime",
                    "interval": "10s",
                    "retries": 5,
                },
            },
            "rabbitmq": {
                "image": "rabbitmq:3.13-alpine",
                "restart": "unless-stopped",
                "environment": {
                    "RABBITMQ_DEFAULT_VHOST": "${RABBITMQ_DEFAULT_VHOST}",
                    "RABBITMQ_DEFAULT_USER": "${RABBITMQ_DEFAULT_USER}",
                    "RABBITMQ_DEFAULT_PASS": "${RABBITMQ_DEFAULT_PASS}",
                },
                "healthcheck": {
                    "test": "rabbitmq-diagnostics -q ping",
                    "interval": "10s",
                    "retries": 5,
                },
            },
            "playout": _libretime_service(
                "playout",
                depends_on=["rabbitmq"],
                environment={"LIBRETIME_GENERAL_PUBLIC_URL": "http://nginx:8080"},
            ),
            "liquidsoap": _libretime_service(
                "playout",
                command="/usr/local/bin/libretime-liquidsoap",
                ports=["8001:8001", "8002:8002"],
                depends_on=["rabbitmq"],
                environment={"LIBRETIME_GENERAL_PUBLIC_URL": "http://nginx:8080"},
            ),
            "analyzer": _libretime_service("analyzer", depends_on=["rabbitmq"]),
            "worker": _libretime_service("worker", depends_on=["rabbitmq"]),
            "api": _libretime_service("api", depends_on=_healthy("postgres", "rabbitmq")),
            "legacy": _libretime_service("legacy", depends_on=_healthy("postgres", "rabbitmq")),
            "nginx": {
                "image": f"{IMAGE_REGISTRY}/libretime-nginx:${{LIBRETIME_VERSION}}",
                "restart": "unless-stopped",
                "ports": [f"{WEB_PORT}:8080"],
                "depends_on": ["legacy", "api"],
                "volumes": [f"{STORAGE_PATH}:{STORAGE_PATH}:ro"],
                "environment": {"NGINX_PORT": "8080"},
            },
            "icecast": {
                "image": f"{IMAGE_REGISTRY}/icecast:2.4.4",
                "restart": "unless-stopped",
                "ports": [f"{STREAM_PORT}:8000"],
                "environment": {
                    "ICECAST_SOURCE_PASSWORD": "${ICECAST_SOURCE_PASSWORD}",
                    "ICECAST_ADMIN_PASSWORD": "${ICECAST_ADMIN_PASSWORD}",
                    "ICECAST_RELAY_PASSWORD": "${ICECAST_RELAY_PASSWORD}",
                },
            },
        },
        "volumes": {"postgres_data": {}},
    }


def build_config(ip: str, env: Dict[str, str]) -> Dict[str, Any]:
    """LibreTime config.yml, wired to the compose service names."""
    public_url = f"http://{ip}:{WEB_PORT}"
    return {
        "general": {
            "public_url": public_url,
            "api_key": env["LIBRETIME_API_KEY"],
            "secret_key": env["LIBRETIME_SECRET_KEY"],
        },
        "storage": {"path": STORAGE_PATH},
        "database": {
            "host": "postgres",
            "port": 5432,
            "name": "libretime",
            "user": env["POSTGRES_USER"],
            "password": env["POSTGRES_PASSWORD"],
        },
        "rabbitmq": {
            "host": "rabbitmq",
            "port": 5672,
            "vhost": env["RABBITMQ_DEFAULT_VHOST"],
            "user": env["RABBITMQ_DEFAULT_USER"],
            "password": env["RABBITMQ_DEFAULT_PASS"],
        },
        "playout": {"liquidsoap_host": "liquidsoap"},
        "liquidsoap": {"server_listen_address": "0.0.0.0"},
        "stream": {
            "outputs": {
                "icecast": [{
                    "enabled": True,
                    "host": "icecast",
                    "port": 8000,
                    "mount": "main",
                    "source_password": env["ICECAST_SOURCE_PASSWORD"],
                    "admin_password": env["ICECAST_ADMIN_PASSWORD"],
                    "public_url": f"http://{ip}:{STREAM_PORT}/main",
                    "audio": {"format": "mp3", "bitrate": 256},
                }],
            },
        },
    }


def generate_env() -> Dict[str, str]:
    """.env values; every password is freshly generated."""
    return {
        "LIBRETIME_VERSION": LIBRETIME_VERSION,
        "LIBRETIME_API_KEY": secrets.token_hex(16),
        "LIBRETIME_SECRET_KEY": secrets.token_hex(32),
        "POSTGRES_USER": "libretime",
        "POSTGRES_PASSWORD": secrets.token_urlsafe(18),
        "RABBITMQ_DEFAULT_VHOST": "/libretime",
        "RABBITMQ_DEFAULT_USER": "libretime",
        "RABBITMQ_DEFAULT_PASS": secrets.token_urlsafe(18),
        "ICECAST_SOURCE_PASSWORD": secrets.token_urlsafe(12),
        "ICECAST_ADMIN_PASSWORD": secrets.token_urlsafe(12),
        "ICECAST_RELAY_PASSWORD": secrets.token_urlsafe(12),
    }


class LibreTimePlatform(Platform):
    name = "libretime"
    display_name = "LibreTime"

    cores = 4
    memory = 8192
    swap = 2048
    disk = 32
    quota = "300G"

    mount_path = STORAGE_PATH

    def compose(self, ctid: int) -> ComposeDeployer:
        return ComposeDeployer(
            container_id=ctid,
            compose_dir=COMPOSE_DIR,
            project_name=PROJECT_NAME,
            mock=self.mock,
        )

    def install(self, ctid: int, station_name: str, ip: str) -> Optional[Dict[str, str]]:
        logger.info(f"Installing LibreTime {LIBRETIME_VERSION} in container {ctid}...")
        public_url = f"http://{ip}:{WEB_PORT}"
        env = generate_env()
        config_yaml = yaml.dump(build_config(ip, env), default_flow_style=False, sort_keys=False)

        deployer = self.compose(ctid)
        if not deployer.deploy_compose(build_compose(), env, extra_files={"config.yml": config_yaml}):
            return None

        # Schema must exist before the web services come up
        if not self._run(ctid, deployer.compose_command(MIGRATE_ARGS), "Running LibreTime migrations"):
            return None

        if not deployer.start_services():
            return None

        return {
            "Web interface": public_url,
            "Default login": "admin / admin (change immediately)",
            "Stream URL": f"http://{ip}:{STREAM_PORT}/main",
            "Icecast source password": env["ICECAST_SOURCE_PASSWORD"],
            "Icecast admin password": env["ICECAST_ADMIN_PASSWORD"],
            "PostgreSQL password": env["POSTGRES_PASSWORD"],
            "RabbitMQ password": env["RABBITMQ_DEFAULT_PASS"],
            "Compose directory": COMPOSE_DIR,
        }

    def update(self, ctid: int) -> bool:
        deployer = self.compose(ctid)
        if not deployer.update_services():
            return False
        return self._run(ctid, deployer.compose_command(MIGRATE_ARGS), "Running LibreTime migrations")

    def backup_application(self, ctid: int) -> bool:
        """pg_dump of the LibreTime database into /opt/libretime/backups."""
        deployer = self.compose(ctid)
        dump_file = f"backups/libretime-{datetime.now().strftime('%Y%m%d-%H%M%S')}.sql.gz"
        script = (
            f"set -o pipefail; mkdir -p {COMPOSE_DIR}/backups && "
            + deployer.compose_command("exec -T postgres pg_dump -U libretime libretime")
            + f" | gzip > {dump_file}"
        )
        return self._run(ctid, script, "Dumping LibreTime database")

    def log_command(self, lines: int = 50, follow: bool = False,
                    service: Optional[str] = None) -> List[str]:
        args = f"logs --tail={lines}"
        if follow:
            args += " -f"
        if service:
            args += f" {service}"
        return ["bash", "-c", f"cd {COMPOSE_DIR} && docker compose -p {PROJECT_NAME} {args}"]
