"""Tests for station backups."""
import re

import pytest

from infrastack.core.validator import ValidationError
from infrastack.radio import BackupManager

SNAPSHOT = re.compile(r"^hdd-pool/container-data/azuracast-media/main-station@backup-\d{8}-\d{6}$")


@pytest.fixture
def running_host(fake_run):
    fake_run.on(['pct', 'status'], stdout="status: running\n")
    return fake_run


def test_full_backup_is_vzdump_plus_one_snapshot(running_host, populated_inventory):
    assert BackupManager(inventory=populated_inventory).backup(340, "full") is True

    vzdumps = running_host.commands('vzdump')
    assert vzdumps == [['vzdump', '340', '--storage', 'hdd-backups', '--mode', 'snapshot', '--compress', 'zstd']]

    snapshots = running_host.commands('zfs', 'snapshot')
    assert len(snapshots) == 1
    assert SNAPSHOT.match(snapshots[0][2])

    assert running_host.calls.index(vzdumps[0]) < running_host.calls.index(snapshots[0])


def test_full_backup_skips_snapshot_when_vzdump_fails(running_host, populated_inventory):
    running_host.on(['vzdump'], returncode=1, stderr="storage 'hdd-backups' does not exist")

    assert BackupManager(inventory=populated_inventory).backup(340, "full") is False
    assert running_host.commands('zfs', 'snapshot') == []


def test_full_backup_missing_dataset_warns(running_host, populated_inventory):
    running_host.on(['zfs', 'list'], returncode=1, stderr="dataset does not exist")

    assert BackupManager(inventory=populated_inventory).backup(340, "full") is True
    assert running_host.commands('zfs', 'snapshot') == []


def test_container_backup_needs_existing_container(fake_run, populated_inventory):
    fake_run.on(['pct', 'status'], returncode=2, stderr="does not exist")

    assert BackupManager(inventory=populated_inventory).backup(340) is False
    assert fake_run.commands('vzdump') == []


def test_application_backup_unknown_platform_is_noop(running_host, inventory):
    from infrastack.models import StationRecord
    inventory.append(StationRecord(360, "icecast", "icecast-relay"))

    assert BackupManager(inventory=inventory).backup(360, "application") is True
    assert running_host.commands('pct', 'exec') == []


def test_application_backup_runs_platform_export(running_host, populated_inventory):
    assert BackupManager(inventory=populated_inventory).backup(340, "application") is True

    script = running_host.commands('pct', 'exec', '340')[0][-1]
    assert "./docker.sh backup" in script


def test_unknown_type_rejected(fake_run, populated_inventory):
    with pytest.raises(ValidationError):
        BackupManager(inventory=populated_inventory).backup(340, "weekly")


def test_backup_all_continues_after_failure(running_host, populated_inventory):
    running_host.on(['vzdump', '340'], returncode=1, stderr="lock timeout")

    result = BackupManager(inventory=populated_inventory).backup_all("container")

    assert result.failed == [340]
    assert result.succeeded == [350]
    assert not result.ok


def test_list_backups_filters_by_ctid(fake_run, populated_inventory):
    fake_run.on(['pvesm', 'list'], stdout=(
        "Volid                                                     Format  Type   Size        VMID\n"
        "hdd-backups:backup/vzdump-lxc-340-2025_01_09-12_00_00.tar.zst tar.zst backup 2147483648 340\n"
        "hdd-backups:backup/vzdump-lxc-350-2025_01_09-13_00_00.tar.zst tar.zst backup 1073741824 350\n"
        "hdd-backups:backup/vzdump-qemu-3400-2025_01_09-14_00_00.vma.zst vma.zst backup 9 3400\n"
    ))

    manager = BackupManager(inventory=populated_inventory)

    assert [b['volid'] for b in manager.list_backups(340)] == [
        "hdd-backups:backup/vzdump-lxc-340-2025_01_09-12_00_00.tar.zst"
    ]
    assert len(manager.list_backups()) == 2
    assert manager.list_backups(999) == []
