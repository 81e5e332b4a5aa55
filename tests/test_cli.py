from __future__ import annotations

import pytest
from conftest import FakeClient
from typer.testing import CliRunner

import rokuoff.cli.commands.devices as devices_cmd
import rokuoff.cli.commands.run as run_cmd
from rokuoff import __version__
from rokuoff.cli.app import app
from rokuoff.config import DatabaseConfig, Settings, get_settings, write_settings
from rokuoff.models import AppSettings
from rokuoff.storage import Database

runner = CliRunner()


@pytest.fixture
def data_db(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Database:
    data_dir = tmp_path / "data"
    config_path = tmp_path / "config.toml"
    write_settings(Settings(database=DatabaseConfig(path=str(data_dir))), config_path)
    monkeypatch.setenv("ROKUOFF_CONFIG", str(config_path))
    get_settings.cache_clear()
    return Database(data_dir)


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"rokuoff version {__version__}" in result.stdout


def test_init_creates_data_dir(data_db: Database):
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert data_db.devices_path.exists()


def test_add_and_list_devices(data_db: Database):
    result = runner.invoke(
        app, ["devices", "add", "192.168.1.50", "--name", "Den", "--no-validate"]
    )
    assert result.exit_code == 0
    assert "Added 'Den'" in result.stdout

    result = runner.invoke(app, ["devices", "list"])
    assert result.exit_code == 0
    assert "1 device(s)" in result.stdout
    assert [d.id for d in data_db.get_devices()] == ["manual-192-168-1-50"]


def test_add_duplicate_device_fails(data_db: Database):
    runner.invoke(app, ["devices", "add", "192.168.1.50", "--no-validate"])
    result = runner.invoke(app, ["devices", "add", "192.168.1.50", "--no-validate"])
    assert result.exit_code == 1
    assert len(data_db.get_devices()) == 1


def test_add_invalid_address_fails(data_db: Database):
    result = runner.invoke(app, ["devices", "add", "not valid", "--no-validate"])
    assert result.exit_code == 1
    assert data_db.get_devices() == []


def test_remove_unknown_device(data_db: Database):
    result = runner.invoke(app, ["devices", "remove", "nope"])
    assert result.exit_code == 1


def test_schedule_lifecycle(data_db: Database):
    runner.invoke(app, ["devices", "add", "10.0.0.9", "--name", "Den", "--no-validate"])

    result = runner.invoke(
        app, ["schedules", "add", "Den", "22:30", "--days", "weekdays"]
    )
    assert result.exit_code == 0
    schedule = data_db.get_schedules()[0]
    assert (schedule.time, schedule.days) == ("22:30", [1, 2, 3, 4, 5])

    result = runner.invoke(app, ["schedules", "disable", schedule.id[:8]])
    assert result.exit_code == 0
    assert data_db.get_schedules()[0].is_enabled is False

    result = runner.invoke(app, ["schedules", "edit", schedule.id, "--time", "23:00"])
    assert result.exit_code == 0
    assert data_db.get_schedules()[0].time == "23:00"

    result = runner.invoke(app, ["schedules", "list"])
    assert result.exit_code == 0
    assert "1 schedule(s)" in result.stdout

    result = runner.invoke(app, ["schedules", "remove", schedule.id])
    assert result.exit_code == 0
    assert data_db.get_schedules() == []


def test_schedule_rejects_bad_time(data_db: Database):
    runner.invoke(app, ["devices", "add", "10.0.0.9", "--no-validate"])
    result = runner.invoke(app, ["schedules", "add", "10.0.0.9", "25:00"])
    assert result.exit_code == 1
    assert data_db.get_schedules() == []


def test_schedules_due_preview(data_db: Database):
    runner.invoke(app, ["devices", "add", "10.0.0.9", "--no-validate"])
    runner.invoke(app, ["schedules", "add", "10.0.0.9", "07:15", "--days", "sat"])

    result = runner.invoke(app, ["schedules", "due", "--at", "07:15", "--day", "sat"])
    assert result.exit_code == 0
    assert "1 schedule(s) due" in result.stdout

    result = runner.invoke(app, ["schedules", "due", "--at", "07:15", "--day", "sun"])
    assert result.exit_code == 0
    assert "Nothing due" in result.stdout


def test_settings_set_and_show(data_db: Database):
    result = runner.invoke(
        app, ["settings", "set", "--no-scheduler", "--retention-days", "14"]
    )
    assert result.exit_code == 0
    settings = data_db.get_settings()
    assert settings.scheduler_enabled is False
    assert settings.discovery_enabled is True
    assert settings.log_retention_days == 14


def test_run_refuses_when_scheduler_disabled(data_db: Database):
    data_db.save_settings(AppSettings(scheduler_enabled=False))
    result = runner.invoke(app, ["run", "--once"])
    assert result.exit_code == 1
    assert "disabled" in result.stdout


def test_run_once(data_db: Database, monkeypatch: pytest.MonkeyPatch):
    fake = FakeClient()
    monkeypatch.setattr(run_cmd, "build_client", lambda settings: fake)

    result = runner.invoke(app, ["run", "--once"])

    assert result.exit_code == 0
    assert "Sent 0 command(s)" in result.stdout
    assert fake.sent == []


def test_discover_respects_settings(data_db: Database):
    data_db.save_settings(AppSettings(discovery_enabled=False))
    result = runner.invoke(app, ["devices", "discover"])
    assert result.exit_code == 1


def test_logs_list_and_clear(data_db: Database):
    data_db.add_log("error", "Failed to send power off command to Den", "Den")

    result = runner.invoke(app, ["logs", "list"])
    assert result.exit_code == 0
    assert "error" in result.stdout

    result = runner.invoke(app, ["logs", "clear", "--yes"])
    assert result.exit_code == 0
    assert data_db.get_logs() == []


def test_info(data_db: Database):
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "Devices: 0" in result.stdout


@pytest.mark.parametrize(
    "args",
    [
        ["devices", "list"],
        ["devices", "add", "10.0.0.9", "--no-validate"],
        ["devices", "remove", "x"],
        ["devices", "power-off", "x"],
        ["schedules", "add", "x", "20:00"],
        ["schedules", "list"],
        ["info"],
    ],
)
def test_corrupt_devices_file_exits_cleanly(data_db: Database, args):
    data_db.ensure_dirs()
    data_db.devices_path.write_text("{not json")

    result = runner.invoke(app, args)

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)


def test_power_off_all_devices(data_db: Database, monkeypatch: pytest.MonkeyPatch):
    fake = FakeClient()
    monkeypatch.setattr(devices_cmd, "build_client", lambda settings: fake)
    runner.invoke(app, ["devices", "add", "10.0.0.8", "--no-validate"])
    runner.invoke(app, ["devices", "add", "10.0.0.9", "--no-validate"])

    result = runner.invoke(app, ["devices", "power-off", "--all", "--yes"])

    assert result.exit_code == 0
    assert "Tested 2 device(s), 0 failed" in result.stdout
    assert fake.sent == ["10.0.0.8", "10.0.0.9"]
    assert data_db.get_logs()[-1].message == "Testing power off for 2 devices..."


def test_power_off_needs_device_or_all(data_db: Database):
    assert runner.invoke(app, ["devices", "power-off"]).exit_code == 1
    assert runner.invoke(app, ["devices", "power-off", "x", "--all"]).exit_code == 1


def test_settings_set_records_each_change(data_db: Database):
    runner.invoke(app, ["settings", "set", "--no-discovery", "--retention-days", "3"])

    messages = [entry.message for entry in reversed(data_db.get_logs())]
    assert messages == [
        "Settings updated: discovery_enabled = False",
        "Settings updated: log_retention_days = 3",
    ]


def test_clear_data(data_db: Database):
    runner.invoke(app, ["devices", "add", "10.0.0.9", "--no-validate"])
    runner.invoke(app, ["schedules", "add", "10.0.0.9", "22:00"])

    aborted = runner.invoke(app, ["settings", "clear-data"], input="n\n")
    assert aborted.exit_code == 1
    assert len(data_db.get_devices()) == 1

    result = runner.invoke(app, ["settings", "clear-data", "--yes"])
    assert result.exit_code == 0
    assert data_db.get_devices() == []
    assert data_db.get_schedules() == []
    assert data_db.get_logs() == []
