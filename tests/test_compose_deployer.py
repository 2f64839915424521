"""Tests for compose stack deployment into containers."""
import yaml

from infrastack.services.docker_compose import ComposeDeployer


def test_deploy_writes_files_with_pct_push(fake_run, monkeypatch):
    pushed = {}
    real_runner = fake_run

    def capture(cmd, *args, **kwargs):
        if cmd[:2] == ['pct', 'push']:
            with open(cmd[3]) as f:
                pushed[cmd[4]] = f.read()
        return real_runner(cmd, *args, **kwargs)

    monkeypatch.setattr("subprocess.run", capture)

    deployer = ComposeDeployer(350, compose_dir="/opt/libretime", project_name="libretime")
    ok = deployer.deploy_compose(
        {"services": {"web": {"image": "nginx"}}},
        {"POSTGRES_PASSWORD": "secret"},
        extra_files={"config.yml": "general: {}\n"},
    )

    assert ok is True
    assert yaml.safe_load(pushed["/opt/libretime/docker-compose.yml"]) == {"services": {"web": {"image": "nginx"}}}
    assert pushed["/opt/libretime/.env"] == "POSTGRES_PASSWORD=secret\n"
    assert pushed["/opt/libretime/config.yml"] == "general: {}\n"
    assert ['pct', 'exec', '350', '--', 'bash', '-c', 'chmod 600 /opt/libretime/.env'] in fake_run.calls


def test_deploy_failure(fake_run):
    fake_run.on(['pct', 'push'], returncode=1, stderr="no such container")

    assert ComposeDeployer(350).deploy_compose({"services": {}}) is False


def test_start_runs_pull_then_up(fake_run):
    deployer = ComposeDeployer(350, compose_dir="/opt/libretime", project_name="libretime")

    assert deployer.start_services() is True

    scripts = [c[-1] for c in fake_run.calls]
    assert scripts == [
        "cd /opt/libretime && docker compose -p libretime pull",
        "cd /opt/libretime && docker compose -p libretime up -d",
    ]


def test_update_stops_at_first_failure(fake_run):
    fake_run.on(['pct', 'exec'], returncode=1, stderr="pull access denied")

    assert ComposeDeployer(350).update_services() is False
    assert len(fake_run.calls) == 1


def test_mock_mode_runs_nothing(fake_run):
    deployer = ComposeDeployer(350, mock=True)

    assert deployer.deploy_compose({"services": {}}) is True
    assert deployer.start_services() is True
    assert fake_run.calls == []
