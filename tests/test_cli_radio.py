"""Tests for the radio CLI commands (mock mode)."""
import pytest
from typer.testing import CliRunner

from infrastack.cli import app
from infrastack.core.state_store import StateStore
from infrastack.core.zfs_manager import ZFSManager
from infrastack.services.proxmox.containers.lifecycle import ContainerLifecycle

runner = CliRunner()


@pytest.fixture
def mock_env(infrastack_env, monkeypatch, tmp_path):
    monkeypatch.setenv('INFRASTACK_MOCK', '1')
    return tmp_path


@pytest.fixture
def log_args(tmp_path):
    return ['--log-file', str(tmp_path / 'infrastack.log')]


def test_version():
    result = runner.invoke(app, ['version'])

    assert result.exit_code == 0
    assert "InfraStack v2.0.0" in result.stdout


class TestDeploy:
    def test_deploy_adds_station(self, mock_env, inventory, log_args):
        result = runner.invoke(
            app, ['radio', 'deploy', 'azuracast', '-i', '360', '-n', 'test-station'] + log_args
        )

        assert result.exit_code == 0, result.stdout
        assert "Deployed azuracast-test-station" in result.stdout
        record = inventory.find(360)
        assert record.hostname == "azuracast-test-station"
        assert record.dataset_path == "hdd-pool/container-data/azuracast-media/test-station"

    @pytest.mark.parametrize("args", [
        ['azuracast', '-i', '360', '-n', 'Bad_Name'],
        ['shoutcast', '-i', '360', '-n', 'station'],
        ['azuracast', '-i', 'abc', '-n', 'station'],
        ['azuracast', '-i', '²', '-n', 'station'],
        ['azuracast', '-i', '360'],
    ])
    def test_invalid_input_exits_1(self, mock_env, inventory, log_args, args):
        result = runner.invoke(app, ['radio', 'deploy'] + args + log_args)

        assert result.exit_code == 1
        assert inventory.count() == 0

    def test_duplicate_ctid(self, mock_env, populated_inventory, log_args):
        result = runner.invoke(app, ['radio', 'deploy', 'libretime', '-i', '340', '-n', 'other'] + log_args)

        assert result.exit_code == 1
        assert populated_inventory.count() == 2


class TestStatusAndInfo:
    def test_status_table(self, mock_env, populated_inventory):
        result = runner.invoke(app, ['radio', 'status'])

        assert result.exit_code == 0
        assert "azuracast-main-station" in result.stdout
        assert "libretime-station1" in result.stdout
        assert "Unfinished Operations" not in result.stdout

    def test_status_lists_unfinished_operations(self, mock_env, populated_inventory, infrastack_env):
        journal = StateStore(infrastack_env.state_file)
        journal.begin(360, "deploy")
        journal.mark_step(360, "validated")
        journal.mark_failed(360, "dataset_created", "zfs error")

        result = runner.invoke(app, ['radio', 'status'])

        assert result.exit_code == 0
        assert "Unfinished Operations" in result.stdout
        assert "360" in result.stdout
        assert "dataset_created" in result.stdout

    def test_status_missing_container(self, mock_env, populated_inventory):
        result = runner.invoke(app, ['radio', 'status', '-i', '999'])

        assert result.exit_code == 1

    def test_status_rejects_non_ascii_digits(self, mock_env, populated_inventory):
        result = runner.invoke(app, ['radio', 'status', '-i', '²'])

        assert result.exit_code == 1
        assert "must be a number" in result.stdout

    def test_info_summary(self, mock_env, populated_inventory):
        result = runner.invoke(app, ['radio', 'info', '-s'])

        assert result.exit_code == 0
        assert "2" in result.stdout

    def test_info_station(self, mock_env, populated_inventory):
        result = runner.invoke(app, ['radio', 'info', '-i', '340'])

        assert result.exit_code == 0
        assert "azuracast-main-station" in result.stdout

    def test_info_unknown_station(self, mock_env, populated_inventory):
        result = runner.invoke(app, ['radio', 'info', '-i', '999'])

        assert result.exit_code == 1


class TestRemove:
    def test_remove_station(self, mock_env, populated_inventory, log_args):
        result = runner.invoke(app, ['radio', 'remove', '-i', '340', '-y'] + log_args)

        assert result.exit_code == 0, result.stdout
        assert populated_inventory.ctids() == [350]

    @pytest.fixture
    def destroyed(self, monkeypatch):
        destroyed = []

        def fake_destroy(self, dataset, recursive=True):
            destroyed.append(dataset)
            return True

        monkeypatch.setattr(ZFSManager, 'destroy_dataset', fake_destroy)
        return destroyed

    def test_yes_still_asks_before_deleting_data(self, mock_env, populated_inventory, log_args, destroyed):
        result = runner.invoke(app, ['radio', 'remove', '-i', '340', '--data', '-y'] + log_args, input="n\n")

        assert result.exit_code == 0, result.stdout
        assert "Delete dataset" in result.stdout
        assert destroyed == []
        assert populated_inventory.ctids() == [350]

    def test_yes_data_skips_data_prompt(self, mock_env, populated_inventory, log_args, destroyed):
        result = runner.invoke(app, ['radio', 'remove', '-i', '340', '--data', '-y', '--yes-data'] + log_args)

        assert result.exit_code == 0, result.stdout
        assert "Delete dataset" not in result.stdout
        assert destroyed == ["hdd-pool/container-data/azuracast-media/main-station"]

    def test_purge_needs_exact_word(self, mock_env, populated_inventory, log_args):
        before = populated_inventory.inventory_file.read_text()

        result = runner.invoke(app, ['radio', 'remove', '--purge-all'] + log_args, input="nope\n")

        assert result.exit_code == 0
        assert "Purge cancelled" in result.stdout
        assert populated_inventory.inventory_file.read_text() == before

    def test_purge_all(self, mock_env, populated_inventory, log_args):
        result = runner.invoke(app, ['radio', 'remove', '--purge-all'] + log_args, input="DELETE\n")

        assert result.exit_code == 0
        assert populated_inventory.count() == 0


class TestBackupAndUpdate:
    def test_full_backup(self, mock_env, populated_inventory, log_args):
        result = runner.invoke(app, ['radio', 'backup', '-i', '340', '-t', 'full'] + log_args)

        assert result.exit_code == 0
        assert "Backup of container 340 completed" in result.stdout

    def test_bad_backup_type(self, mock_env, populated_inventory, log_args):
        result = runner.invoke(app, ['radio', 'backup', '-i', '340', '-t', 'weekly'] + log_args)

        assert result.exit_code == 1

    def test_list_backups(self, mock_env, populated_inventory, log_args):
        result = runner.invoke(app, ['radio', 'backup', '-l', '-i', '340'] + log_args)

        assert result.exit_code == 0
        assert "Backups in hdd-backups" in result.stdout

    def test_update_requires_target(self, mock_env, populated_inventory):
        result = runner.invoke(app, ['radio', 'update'])

        assert result.exit_code == 1

    def test_update_all_reports_stopped_station(self, mock_env, populated_inventory, log_args):
        # mock host: 350 is stopped
        result = runner.invoke(app, ['radio', 'update', '-a'] + log_args)

        assert result.exit_code == 1

    def test_update_one(self, mock_env, populated_inventory, log_args):
        result = runner.invoke(app, ['radio', 'update', '-i', '340'] + log_args)

        assert result.exit_code == 0


class TestLogs:
    @pytest.fixture
    def captured(self, monkeypatch):
        captured = []

        def fake_exec(self, vmid, command):
            captured.append((vmid, command))
            return 0

        monkeypatch.setattr(ContainerLifecycle, 'exec_container_command', fake_exec)
        return captured

    def test_service_logs(self, mock_env, populated_inventory, captured):
        result = runner.invoke(app, ['radio', 'logs', '-i', '340', '-s', 'web', '-n', '20'])

        assert result.exit_code == 0
        assert captured == [(340, ['bash', '-c', 'cd /var/azuracast && docker compose logs --tail=20 web'])]

    def test_cannot_follow_both(self, mock_env, populated_inventory, captured):
        result = runner.invoke(app, ['radio', 'logs', '-i', '340', '-f', '-t', 'both'])

        assert result.exit_code == 1
        assert captured == []
