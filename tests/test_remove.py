"""Tests for station removal and purge."""
import pytest

from infrastack.radio import RemovalManager

DATASET = "hdd-pool/container-data/azuracast-media/main-station"


@pytest.fixture
def running_host(fake_run):
    fake_run.on(['pct', 'status'], stdout="status: running\n")
    return fake_run


def _destructive(calls):
    return [c for c in calls if c[:2] in (['pct', 'stop'], ['pct', 'destroy'], ['zfs', 'destroy'])]


def test_remove_keeps_dataset_by_default(running_host, populated_inventory):
    assert RemovalManager(inventory=populated_inventory).remove_station(340) is True

    assert _destructive(running_host.calls) == [
        ['pct', 'stop', '340'],
        ['pct', 'destroy', '340', '--purge'],
    ]
    assert populated_inventory.find(340) is None
    assert populated_inventory.ctids() == [350]


def test_remove_with_data_destroys_dataset_last(running_host, populated_inventory):
    asked = []

    def confirm(message):
        asked.append(message)
        return True

    manager = RemovalManager(inventory=populated_inventory)
    assert manager.remove_station(340, remove_data=True, confirm_data=confirm) is True

    assert _destructive(running_host.calls) == [
        ['pct', 'stop', '340'],
        ['pct', 'destroy', '340', '--purge'],
        ['zfs', 'destroy', '-r', DATASET],
    ]
    assert asked == [f"Delete dataset {DATASET}?"]


def test_declined_data_confirmation_keeps_dataset(running_host, populated_inventory):
    manager = RemovalManager(inventory=populated_inventory)

    assert manager.remove_station(340, remove_data=True, confirm_data=lambda message: False) is True

    assert running_host.commands('zfs', 'destroy') == []
    assert populated_inventory.find(340) is None


def test_failed_destroy_leaves_inventory_and_data(running_host, populated_inventory):
    running_host.on(['pct', 'destroy'], returncode=1, stderr="CT is locked (backup)")

    manager = RemovalManager(inventory=populated_inventory)
    assert manager.remove_station(340, remove_data=True, confirm_data=lambda message: True) is False

    assert populated_inventory.find(340) is not None
    assert running_host.commands('zfs', 'destroy') == []
    assert manager.state.get(340)["failed_step"] == "container_destroyed"


def test_stale_row_removed_when_container_gone(fake_run, populated_inventory):
    fake_run.on(['pct', 'status'], returncode=2, stderr="does not exist")

    assert RemovalManager(inventory=populated_inventory).remove_station(340) is True

    assert fake_run.commands('pct', 'destroy') == []
    assert populated_inventory.find(340) is None


def test_unknown_ctid_fails(fake_run, populated_inventory):
    fake_run.on(['pct', 'status'], returncode=2, stderr="does not exist")

    assert RemovalManager(inventory=populated_inventory).remove_station(999) is False


class TestPurgeAll:
    @pytest.mark.parametrize("answer", ["", "delete", "y", "yes", "DELETE "])
    def test_anything_but_delete_cancels(self, fake_run, populated_inventory, answer):
        before = populated_inventory.inventory_file.read_text()

        assert RemovalManager(inventory=populated_inventory).purge_all(answer) is None

        assert fake_run.calls == []
        assert populated_inventory.inventory_file.read_text() == before

    def test_purge_destroys_containers_not_datasets(self, running_host, populated_inventory):
        running_host.on(['pct', 'destroy', '340'], returncode=1, stderr="CT is locked")

        result = RemovalManager(inventory=populated_inventory).purge_all("DELETE")

        assert result.failed == [340]
        assert result.succeeded == [350]
        assert len(running_host.commands('pct', 'destroy')) == 2
        assert running_host.commands('zfs', 'destroy') == []
        assert populated_inventory.list() == []
