"""Shared test fixtures for InfraStack tests."""
import subprocess

import pytest

from infrastack.core.config import get_config, reset_config
from infrastack.core.inventory import InventoryStore
from infrastack.models import StationRecord


class FakeRunner:
    """Stand-in for subprocess.run that records commands.

    Responses are matched by command prefix; the most recently registered
    matching prefix wins, anything unmatched succeeds with empty output.
    """

    def __init__(self):
        self.calls = []
        self.responses = []

    def on(self, prefix, returncode=0, stdout="", stderr=""):
        self.responses.append(([str(p) for p in prefix], returncode, stdout, stderr))

    def __call__(self, cmd, *args, check=False, **kwargs):
        cmd = [str(c) for c in cmd]
        self.calls.append(cmd)

        returncode, stdout, stderr = 0, "", ""
        for prefix, rc, out, err in reversed(self.responses):
            if cmd[:len(prefix)] == prefix:
                returncode, stdout, stderr = rc, out, err
                break

        if check and returncode != 0:
            raise subprocess.CalledProcessError(returncode, cmd, output=stdout, stderr=stderr)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    def commands(self, *prefix):
        prefix = [str(p) for p in prefix]
        return [c for c in self.calls if c[:len(prefix)] == prefix]


@pytest.fixture
def fake_run(monkeypatch):
    """Replace subprocess.run everywhere with a FakeRunner."""
    runner = FakeRunner()
    monkeypatch.setattr(subprocess, "run", runner)
    monkeypatch.setattr("time.sleep", lambda seconds: None)
    return runner


@pytest.fixture
def infrastack_env(tmp_path, monkeypatch):
    """Point configuration and state at a temporary root."""
    monkeypatch.setenv("INFRASTACK_ROOT", str(tmp_path))
    monkeypatch.setenv("INFRASTACK_CONFIG", str(tmp_path / "infrastack.yml"))
    for name in ("INFRASTACK_STATE_DIR", "INFRASTACK_MOCK", "INFRASTACK_STATELESS",
                 "INFRASTACK_BACKUP_STORAGE", "INFRASTACK_LOCK_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield get_config()
    reset_config()


@pytest.fixture
def inventory(infrastack_env):
    """Empty, initialized inventory under the temporary root."""
    store = InventoryStore.from_config(infrastack_env)
    store.initialize()
    return store


@pytest.fixture
def sample_records():
    return [
        StationRecord(
            ctid=340,
            platform_type="azuracast",
            hostname="azuracast-main-station",
            ip="192.168.2.40",
            description="Main station",
            created="2025-01-09",
            dataset_path="hdd-pool/container-data/azuracast-media/main-station",
        ),
        StationRecord(
            ctid=350,
            platform_type="libretime",
            hostname="libretime-station1",
            ip="192.168.2.50",
            description="Talk, music, news",
            created="2025-01-10",
            dataset_path="hdd-pool/container-data/libretime-media/station1",
        ),
    ]


@pytest.fixture
def populated_inventory(inventory, sample_records):
    for record in sample_records:
        inventory.append(record)
    return inventory
