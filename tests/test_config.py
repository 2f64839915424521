"""Tests for runtime configuration loading."""
from pathlib import Path

from infrastack.core.config import InfraStackConfig, get_config, reset_config


def test_defaults_without_file(infrastack_env, tmp_path):
    config = infrastack_env

    assert config.state_dir == str(tmp_path / "var" / "lib" / "infrastack")
    assert config.credentials_dir == str(tmp_path / "root")
    assert config.inventory_file == Path(config.state_dir) / "inventory.csv"
    assert config.backup_storage == "hdd-backups"
    assert config.network_prefix == "192.168.2"
    assert config.bridge == "vmbr1"


def test_yaml_then_env_layering(infrastack_env, tmp_path, monkeypatch):
    (tmp_path / "infrastack.yml").write_text(
        "backup_storage: nas-backups\n"
        "network_prefix: 10.0.5\n"
        "lock_timeout: '5'\n"
        "colour: blue\n"
    )
    monkeypatch.setenv("INFRASTACK_BACKUP_STORAGE", "pbs")
    reset_config()

    config = get_config()

    assert config.backup_storage == "pbs"
    assert config.network_prefix == "10.0.5"
    assert config.lock_timeout == 5
    assert not hasattr(config, "colour")


def test_state_dir_override(infrastack_env, tmp_path, monkeypatch):
    monkeypatch.setenv("INFRASTACK_STATE_DIR", str(tmp_path / "elsewhere"))

    config = InfraStackConfig.from_env()

    assert config.state_file == tmp_path / "elsewhere" / "state.json"


def test_invalid_yaml_falls_back(infrastack_env, tmp_path):
    config_file = tmp_path / "broken.yml"
    config_file.write_text("backup_storage: [unclosed\n")

    config = InfraStackConfig.from_env(str(config_file))

    assert config.backup_storage == "hdd-backups"


def test_get_config_is_cached(infrastack_env):
    assert get_config() is get_config()
