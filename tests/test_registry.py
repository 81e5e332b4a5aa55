from __future__ import annotations

from datetime import datetime, timezone

import pytest
from conftest import FakeClient

from rokuoff.core import (
    DuplicateAddressError,
    DuplicateIdError,
    InvalidAddressError,
    add_manual_device,
    find_device,
    merge_discovered,
    normalize_address,
    power_off_all,
    refresh_status,
    remove_device,
)
from rokuoff.models import CommandResult, Device, Schedule, ValidationOutcome
from rokuoff.storage import Database

SEEN = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("192.168.1.50", "192.168.1.50"),
        ("  10.0.0.7 ", "10.0.0.7"),
        ("[fe80::1]", "fe80::1"),
        ("Living-Room.local", "living-room.local"),
        ("roku.", "roku"),
    ],
)
def test_normalize_address_accepts(raw, expected):
    assert normalize_address(raw) == expected


@pytest.mark.parametrize(
    "raw", ["", "   ", "192.168.1.300", "1.2.3", "bad host", "-roku", "a..b"]
)
def test_normalize_address_rejects(raw):
    with pytest.raises(InvalidAddressError):
        normalize_address(raw)


def test_add_manual_device_validates_and_names(db: Database, fake_client: FakeClient):
    fake_client.outcome = ValidationOutcome(is_valid=True, suggested_name="Den TV")

    device = add_manual_device(db, fake_client, "192.168.1.50")

    assert device.name == "Den TV"
    assert device.is_manual is True
    assert device.is_online is True
    assert device.last_seen_at is not None
    assert db.get_devices() == [device]


def test_add_manual_device_keeps_given_name(db: Database, fake_client: FakeClient):
    fake_client.outcome = ValidationOutcome(is_valid=True, suggested_name="Den TV")
    device = add_manual_device(db, fake_client, "192.168.1.50", name="Basement")
    assert device.name == "Basement"


def test_add_manual_device_offline_when_unreachable(
    db: Database, fake_client: FakeClient
):
    device = add_manual_device(db, fake_client, "192.168.1.50")
    assert device.is_online is False
    assert device.name == "Device at 192.168.1.50"
    assert len(db.get_devices()) == 1


def test_duplicate_address_is_rejected_before_persistence(
    db: Database, fake_client: FakeClient
):
    add_manual_device(db, fake_client, "192.168.1.50", validate=False)
    before = db.devices_path.read_bytes()

    with pytest.raises(DuplicateAddressError):
        add_manual_device(db, fake_client, " 192.168.1.50 ", name="Other")

    assert db.devices_path.read_bytes() == before


def test_colliding_manual_id_is_rejected(db: Database, fake_client: FakeClient):
    first = add_manual_device(db, fake_client, "living-room.lan", validate=False)

    with pytest.raises(DuplicateIdError):
        add_manual_device(db, fake_client, "living.room-lan", validate=False)

    assert db.get_devices() == [first]
    assert remove_device(db, first.id) is True
    assert db.get_devices() == []


def test_invalid_address_is_rejected_before_persistence(
    db: Database, fake_client: FakeClient
):
    with pytest.raises(InvalidAddressError):
        add_manual_device(db, fake_client, "not an address")
    assert not db.devices_path.exists()


def test_merge_discovered_adds_new_and_refreshes_known(db: Database):
    db.save_devices(
        [Device(id="manual-192-168-1-50", name="Den", address="192.168.1.50")]
    )
    discovered = [
        Device(
            id="roku-x1",
            name="Den",
            address="192.168.1.50",
            is_online=True,
            last_seen_at=SEEN,
        ),
        Device(
            id="roku-x2",
            name="Kitchen",
            address="192.168.1.51",
            is_online=True,
            last_seen_at=SEEN,
        ),
    ]

    added = merge_discovered(db, discovered)

    assert [d.id for d in added] == ["roku-x2"]
    devices = {d.address: d for d in db.get_devices()}
    assert devices["192.168.1.50"].id == "manual-192-168-1-50"
    assert devices["192.168.1.50"].is_online is True
    assert devices["192.168.1.50"].last_seen_at == SEEN
    assert len(devices) == 2


def test_remove_device_keeps_schedules(db: Database):
    db.save_devices([Device(id="roku-1", name="Den", address="10.0.0.1")])
    db.save_schedules(
        [
            Schedule(
                id="s1",
                device_id="roku-1",
                device_name="Den",
                time="22:00",
                created_at=SEEN,
            )
        ]
    )

    assert remove_device(db, "roku-1") is True
    assert remove_device(db, "roku-1") is False
    assert db.get_devices() == []
    assert len(db.get_schedules()) == 1


def test_refresh_status_updates_liveness(db: Database, fake_client: FakeClient):
    db.save_devices(
        [
            Device(id="a", name="A", address="10.0.0.1"),
            Device(
                id="b", name="B", address="10.0.0.2", is_online=True, last_seen_at=SEEN
            ),
        ]
    )
    fake_client.online = {"10.0.0.1"}

    refreshed = {d.id: d for d in refresh_status(db, fake_client)}

    assert refreshed["a"].is_online is True
    assert refreshed["a"].last_seen_at is not None
    assert refreshed["b"].is_online is False
    assert refreshed["b"].last_seen_at == SEEN
    assert {d.id: d.is_online for d in db.get_devices()} == {"a": True, "b": False}


def test_find_device_by_id_address_or_name():
    devices = [
        Device(id="roku-1", name="Living Room", address="10.0.0.1"),
        Device(id="roku-2", name="Bedroom", address="10.0.0.2"),
    ]
    assert find_device(devices, "roku-2").name == "Bedroom"
    assert find_device(devices, "10.0.0.1").id == "roku-1"
    assert find_device(devices, "bedroom").id == "roku-2"
    assert find_device(devices, "garage") is None


def test_power_off_all_logs_each_device(db: Database, fake_client: FakeClient):
    db.save_devices(
        [
            Device(id="a", name="Den", address="10.0.0.1"),
            Device(id="b", name="Kitchen", address="10.0.0.2"),
        ]
    )
    fake_client.result = CommandResult(success=False, error="Timed out after 3.0s")

    results = power_off_all(db, fake_client)

    assert fake_client.sent == ["10.0.0.1", "10.0.0.2"]
    assert [device.id for device, _ in results] == ["a", "b"]
    messages = [entry.message for entry in reversed(db.get_logs())]
    assert messages == [
        "Testing power off for 2 devices...",
        "Test command for Den: Failed - Timed out after 3.0s",
        "Test command for Kitchen: Failed - Timed out after 3.0s",
    ]
    assert db.get_logs()[0].severity == "error"


def test_power_off_all_with_no_devices(db: Database, fake_client: FakeClient):
    assert power_off_all(db, fake_client) == []
    assert [entry.message for entry in db.get_logs()] == [
        "Testing power off for 0 devices..."
    ]
