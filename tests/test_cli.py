from __future__ import annotations

import pytest
from typer.testing import CliRunner

import ecpfleet.cli.commands.discover as discover_cmd
import ecpfleet.cli.commands.power as power_cmd
import ecpfleet.cli.commands.status as status_cmd
from ecpfleet.cli.app import app
from ecpfleet.core import EcpTransport
from ecpfleet.models import Device, ScheduleKind
from ecpfleet.storage import Database, JobStore, StateStore


def _invoke(*args: str):
    return CliRunner().invoke(app, list(args), env={"COLUMNS": "200"})


@pytest.fixture
def fake_transport(fake, monkeypatch):
    def _build(_settings):
        return EcpTransport(transport=fake.mock)

    monkeypatch.setattr(power_cmd, "build_transport", _build)
    monkeypatch.setattr(status_cmd, "build_transport", _build)
    monkeypatch.setattr(discover_cmd, "build_transport", _build)
    return fake


@pytest.fixture
def two_devices(data_dir):
    db = Database(data_dir)
    db.add_device("10.0.0.5", "Lobby")
    db.add_device("10.0.0.6", "Bar")
    return db


def test_version():
    result = _invoke("--version")
    assert result.exit_code == 0
    assert "ecpfleet version" in result.stdout


def test_missing_config_from_env_exits(tmp_path, monkeypatch):
    monkeypatch.setenv("ECPFLEET_CONFIG", str(tmp_path / "missing.toml"))
    result = _invoke("devices", "list")
    assert result.exit_code == 1


def test_init_creates_config_and_data(tmp_path, monkeypatch):
    config_path = tmp_path / "cfg" / "config.toml"
    monkeypatch.setenv("ECPFLEET_CONFIG", str(config_path))

    result = _invoke("init", "--data-dir", str(tmp_path / "data"))

    assert result.exit_code == 0
    assert config_path.exists()
    assert (tmp_path / "data" / "devices.toml").exists()


def test_config_show(data_dir):
    result = _invoke("config", "show")
    assert result.exit_code == 0
    assert "[transport]" in result.stdout
    assert "port = 8060" in result.stdout


def test_devices_add_list_rename_remove(data_dir):
    assert _invoke("devices", "add", "10.0.0.5", "--name", "Lobby").exit_code == 0
    assert _invoke("devices", "add", "10.0.0.5").exit_code == 1

    result = _invoke("devices", "list")
    assert "10.0.0.5" in result.stdout
    assert "Lobby" in result.stdout

    assert _invoke("devices", "rename", "10.0.0.5", "Front Desk").exit_code == 0
    assert Database(data_dir).load_devices().devices[0].name == "Front Desk"

    assert _invoke("devices", "remove", "10.0.0.5").exit_code == 0
    assert _invoke("devices", "remove", "10.0.0.5").exit_code == 1
    assert "No devices registered." in _invoke("devices", "list").stdout


def test_power_without_devices(data_dir, fake_transport):
    result = _invoke("power", "on")
    assert result.exit_code == 0
    assert "No devices available" in result.stdout
    assert fake_transport.requests == []


def test_power_on_reports_partial_success(two_devices, fake_transport):
    fake_transport.power["10.0.0.5"] = "PowerOff"
    state = StateStore(two_devices.state_path)
    state.suppress("10.0.0.5")
    state.suppress("10.0.0.6")

    result = _invoke("power", "on")

    assert result.exit_code == 0
    assert "Power On → 1/2 succeeded" in result.stdout
    assert "10.0.0.6" in result.stdout
    assert state.suppressed() == {"10.0.0.6"}


def test_power_off_single_device_marks_suppressed(two_devices, fake_transport):
    fake_transport.power["10.0.0.6"] = "PowerOn"

    result = _invoke("power", "off", "--device", "10.0.0.6")

    assert result.exit_code == 0
    assert "Power Off → 1/1 succeeded" in result.stdout
    assert fake_transport.paths("10.0.0.5") == []
    assert "suppressed" in _invoke("devices", "list").stdout

    log = _invoke("log", "--lines", "1")
    assert "Dispatch: Power Off → 1/1 succeeded" in log.stdout


def test_launch_uses_selected_app(two_devices, fake_transport):
    fake_transport.power.update({"10.0.0.5": "PowerOn", "10.0.0.6": "PowerOn"})
    assert _invoke("apps", "select", "quickemenu").exit_code == 0

    result = _invoke("launch")

    assert result.exit_code == 0
    assert "Launch Quickemenu → 2/2 succeeded" in result.stdout
    assert fake_transport.paths("10.0.0.5") == ["launch/133480"]


def test_status_table(two_devices, fake_transport):
    fake_transport.power["10.0.0.5"] = "DisplayOff"

    result = _invoke("status")

    assert result.exit_code == 0
    assert "display off" in result.stdout
    assert "unreachable" in result.stdout


def test_discover_merges_into_registry(two_devices, fake_transport, monkeypatch):
    async def _fake_discover(_transport, _config, _timeout):
        return [
            Device(address="10.0.0.5", name="Roku Ultra"),
            Device(address="10.0.0.7", name="Kitchen"),
        ]

    monkeypatch.setattr(discover_cmd, "discover", _fake_discover)

    result = _invoke("discover", "--timeout", "0.5")

    assert result.exit_code == 0
    assert "Found 2 device(s)" in result.stdout
    assert "Added 1 new device(s)" in result.stdout
    registry = two_devices.load_devices()
    assert [(d.address, d.name) for d in registry.devices] == [
        ("10.0.0.5", "Lobby"),
        ("10.0.0.6", "Bar"),
        ("10.0.0.7", "Kitchen"),
    ]


def test_discover_no_save_leaves_registry(two_devices, fake_transport, monkeypatch):
    async def _fake_discover(_transport, _config, _timeout):
        return [Device(address="10.0.0.9", name="New")]

    monkeypatch.setattr(discover_cmd, "discover", _fake_discover)

    result = _invoke("discover", "--no-save", "--redact")

    assert result.exit_code == 0
    assert "x.x.x.9" in result.stdout
    assert two_devices.load_devices().find("10.0.0.9") is None


def test_relaunch_enable_and_disable(two_devices):
    result = _invoke("relaunch", "enable", "--interval", "60")
    assert result.exit_code == 0

    jobs = JobStore(two_devices.jobs_path)
    pending = jobs.pending()
    assert {job.address for job in pending} == {"10.0.0.5", "10.0.0.6"}
    assert all(job.interval_seconds == 60 for job in pending)
    state = StateStore(two_devices.state_path).load()
    assert state.relaunch_enabled is True
    assert state.interval_seconds == 60

    listed = _invoke("jobs")
    assert "relaunch_10.0.0.5" in listed.stdout

    assert _invoke("relaunch", "disable").exit_code == 0
    assert jobs.pending() == []
    assert StateStore(two_devices.state_path).load().relaunch_enabled is False


def test_relaunch_without_devices(data_dir):
    result = _invoke("relaunch", "enable")
    assert "No devices available" in result.stdout
    assert StateStore(Database(data_dir).state_path).load().relaunch_enabled is False


def test_schedule_enable_and_disable(two_devices):
    result = _invoke("schedule", "enable", "off", "22:30", "--device", "10.0.0.5")
    assert result.exit_code == 0

    (job,) = JobStore(two_devices.jobs_path).pending()
    assert job.kind is ScheduleKind.DAILY_OFF
    assert (job.hour, job.minute) == (22, 30)
    state = StateStore(two_devices.state_path).load()
    assert state.schedule_off_enabled is True
    assert state.off_time_label == "22:30"

    assert _invoke("schedule", "disable", "off").exit_code == 0
    assert JobStore(two_devices.jobs_path).pending() == []
    assert StateStore(two_devices.state_path).load().schedule_off_enabled is False


def test_schedule_rejects_bad_time(two_devices):
    result = _invoke("schedule", "enable", "on", "25:00")
    assert result.exit_code == 1
    assert JobStore(two_devices.jobs_path).pending() == []


def test_info(two_devices):
    result = _invoke("info")
    assert result.exit_code == 0
    assert "Devices: 2" in result.stdout
    assert "Selected device: 10.0.0.5" in result.stdout
