"""Tests for the lifecycle step journal."""
import json

from infrastack.core.state_store import DEPLOY_STEPS, StateStore


def test_steps_persist_across_instances(tmp_path):
    state_file = tmp_path / "state.json"
    store = StateStore(state_file)
    store.begin(340, "deploy")
    store.mark_step(340, "validated")
    store.mark_step(340, "dataset_created")

    reloaded = StateStore(state_file)

    assert reloaded.completed_steps(340) == ["validated", "dataset_created"]
    assert reloaded.last_step(340) == "dataset_created"
    assert reloaded.get(340)["operation"] == "deploy"


def test_failure_is_recorded(tmp_path):
    store = StateStore(tmp_path / "state.json")
    store.begin(340, "deploy")
    store.mark_step(340, "validated")
    store.mark_failed(340, "dataset_created", "zfs create failed")

    data = json.loads((tmp_path / "state.json").read_text())
    entry = data["operations"]["340"]
    assert entry["failed_step"] == "dataset_created"
    assert entry["failure_reason"] == "zfs create failed"
    assert 340 in store.incomplete_operations()


def test_finish_clears_entry(tmp_path):
    store = StateStore(tmp_path / "state.json")
    store.begin(340, "remove")
    store.finish(340)

    assert store.get(340) is None
    assert StateStore(tmp_path / "state.json").incomplete_operations() == {}


def test_step_without_operation_ignored(tmp_path):
    store = StateStore(tmp_path / "state.json")
    store.mark_step(999, "validated")

    assert store.completed_steps(999) == []


def test_corrupt_file_starts_empty(tmp_path):
    state_file = tmp_path / "state.json"
    state_file.write_text("{not json")

    assert StateStore(state_file).incomplete_operations() == {}


def test_stateless_mode_skips_writes(tmp_path, monkeypatch):
    monkeypatch.setenv("INFRASTACK_STATELESS", "1")
    store = StateStore(tmp_path / "state.json")
    store.begin(340, "deploy")

    assert not (tmp_path / "state.json").exists()


def test_deploy_steps_order():
    assert DEPLOY_STEPS[0] == "validated"
    assert DEPLOY_STEPS[-1] == "inventory_recorded"
