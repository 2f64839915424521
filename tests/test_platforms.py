"""Tests for the radio platform registry and platform commands."""
from pathlib import Path

import pytest
import yaml

from infrastack.radio.platforms import (
    PLATFORMS,
    AzuraCastPlatform,
    LibreTimePlatform,
    Platform,
    get_platform,
    platform_names,
    register_platform,
)
from infrastack.radio.platforms.libretime import build_compose, build_config, generate_env


class TestRegistry:
    def test_known_platforms(self):
        assert platform_names()[:2] == ["azuracast", "libretime"]
        assert isinstance(get_platform("AzuraCast"), AzuraCastPlatform)
        assert isinstance(get_platform("libretime"), LibreTimePlatform)

    def test_unknown_platform(self):
        assert get_platform("icecast") is None
        assert get_platform(None) is None

    def test_register_platform(self, monkeypatch):
        monkeypatch.setattr("infrastack.radio.platforms.PLATFORMS", dict(PLATFORMS))

        class IcecastPlatform(Platform):
            name = "icecast"

            def install(self, ctid, station_name, ip):
                return {}

            def update(self, ctid):
                return True

            def backup_application(self, ctid):
                return True

            def log_command(self, lines=50, follow=False, service=None):
                return ["journalctl", "-u", "icecast2"]

        register_platform(IcecastPlatform)

        assert isinstance(get_platform("icecast"), IcecastPlatform)

    def test_incomplete_platform_rejected(self, monkeypatch):
        monkeypatch.setattr("infrastack.radio.platforms.PLATFORMS", dict(PLATFORMS))

        class HalfPlatform(Platform):
            name = "half"

            def install(self, ctid, station_name, ip):
                return {}

        with pytest.raises(TypeError, match="backup_application, log_command, update"):
            register_platform(HalfPlatform)
        with pytest.raises(TypeError):
            HalfPlatform()
        assert get_platform("half") is None


class TestDefaults:
    def test_zfs_properties(self):
        props = AzuraCastPlatform().zfs_properties()

        assert props == {"compression": "lz4", "recordsize": "1M", "atime": "off", "quota": "500G"}
        assert LibreTimePlatform().zfs_properties("200G")["quota"] == "200G"

    def test_hostname_and_credentials_path(self):
        platform = LibreTimePlatform()

        assert platform.hostname("station1") == "libretime-station1"
        assert platform.credentials_file("/root", 350) == Path("/root/libretime-credentials-ct350.txt")

    def test_resources(self):
        assert (AzuraCastPlatform.cores, AzuraCastPlatform.memory) == (6, 12288)
        assert (LibreTimePlatform.cores, LibreTimePlatform.memory) == (4, 8192)


class TestLogCommands:
    def test_azuracast_service_logs(self):
        cmd = AzuraCastPlatform().log_command(lines=100, service="web")

        assert cmd == ["bash", "-c", "cd /var/azuracast && docker compose logs --tail=100 web"]

    def test_libretime_follow(self):
        cmd = LibreTimePlatform().log_command(follow=True)

        assert cmd[-1] == "cd /opt/libretime && docker compose -p libretime logs --tail=50 -f"


class TestPlatformCommands:
    def test_azuracast_update_script(self, fake_run):
        assert AzuraCastPlatform().update(340) is True

        script = fake_run.commands('pct', 'exec', '340')[0][-1]
        assert "./docker.sh update-self" in script
        assert "./docker.sh update --yes" in script

    def test_azuracast_install_failure(self, fake_run):
        fake_run.on(['pct', 'exec'], returncode=1, stderr="curl: (6) Could not resolve host")

        assert AzuraCastPlatform().install(340, "main-station", "192.168.2.40") is None

    def test_libretime_backup_dumps_database(self, fake_run):
        assert LibreTimePlatform().backup_application(350) is True

        script = fake_run.calls[0][-1]
        assert "pg_dump -U libretime libretime" in script
        assert "| gzip > backups/libretime-" in script

    def test_libretime_install_mock_returns_credentials(self):
        details = LibreTimePlatform(mock=True).install(350, "station1", "192.168.2.50")

        assert details["Web interface"] == "http://192.168.2.50:8080"
        assert details["Stream URL"] == "http://192.168.2.50:8000/main"


class TestLibreTimeStack:
    def test_compose_services(self):
        compose = build_compose()

        assert {"postgres", "rabbitmq", "playout", "liquidsoap", "api", "legacy", "nginx", "icecast"} <= set(compose["services"])
        assert "/srv/libretime:/srv/libretime" in compose["services"]["api"]["volumes"]
        yaml.safe_load(yaml.dump(compose))

    @pytest.mark.parametrize("service", ["api", "legacy"])
    def test_database_services_wait_for_healthy_backends(self, service):
        compose = build_compose()

        assert compose["services"][service]["depends_on"] == {
            "postgres": {"condition": "service_healthy"},
            "rabbitmq": {"condition": "service_healthy"},
        }
        assert "healthcheck" in compose["services"]["postgres"]
        assert "healthcheck" in compose["services"]["rabbitmq"]

    def test_compose_yaml_has_no_aliases(self):
        assert "&id" not in yaml.dump(build_compose())

    def test_config_uses_generated_secrets(self):
        env = generate_env()

        config = build_config("192.168.2.50", env)

        assert config["database"]["password"] == env["POSTGRES_PASSWORD"]
        assert config["general"]["public_url"] == "http://192.168.2.50:8080"
        assert generate_env()["POSTGRES_PASSWORD"] != env["POSTGRES_PASSWORD"]

    @pytest.mark.parametrize("key", ["LIBRETIME_API_KEY", "ICECAST_SOURCE_PASSWORD", "RABBITMQ_DEFAULT_PASS"])
    def test_env_has_no_empty_secrets(self, key):
        assert generate_env()[key]
