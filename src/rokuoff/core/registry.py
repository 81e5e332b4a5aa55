from __future__ import annotations

import ipaddress
import logging
import re
from collections.abc import Iterable
from datetime import datetime

from rokuoff.core.client import DeviceClient
from rokuoff.models import CommandResult, Device
from rokuoff.storage import Database

logger = logging.getLogger(__name__)

_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


class RegistryError(ValueError):
    pass


class InvalidAddressError(RegistryError):
    pass


class DuplicateAddressError(RegistryError):
    pass


class DuplicateIdError(RegistryError):
    pass


def normalize_address(address: str) -> str:
    """Return a cleaned-up IP literal or hostname, or raise InvalidAddressError."""
    cleaned = address.strip()
    if not cleaned:
        raise InvalidAddressError("Address must not be empty")

    try:
        return str(ipaddress.ip_address(cleaned.strip("[]")))
    except ValueError:
        pass

    hostname = cleaned.rstrip(".")
    labels = hostname.split(".")
    if (
        len(hostname) > 253
        or all(label.isdigit() for label in labels)
        or not all(_HOSTNAME_LABEL.match(label) for label in labels)
    ):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return hostname.lower()


def _same_address(left: str, right: str) -> bool:
    return left.lower() == right.lower()


def find_device(devices: Iterable[Device], ref: str) -> Device | None:
    """Look a device up by id, then address, then name (case-insensitive)."""
    devices = list(devices)
    for device in devices:
        if device.id == ref:
            return device
    for device in devices:
        if _same_address(device.address, ref):
            return device
    for device in devices:
        if device.name.lower() == ref.lower():
            return device
    return None


def add_manual_device(
    store: Database,
    client: DeviceClient,
    address: str,
    name: str | None = None,
    validate: bool = True,
) -> Device:
    address = normalize_address(address)
    devices = store.get_devices()
    existing = next((d for d in devices if _same_address(d.address, address)), None)
    if existing is not None:
        raise DuplicateAddressError(
            f"A device with address {address} already exists ({existing.name})"
        )

    device = client.build_manual_device(address, name)
    taken = next((d for d in devices if d.id == device.id), None)
    if taken is not None:
        raise DuplicateIdError(
            f"Device id {device.id} is already used by {taken.name} ({taken.address})"
        )

    if validate:
        outcome = client.validate(address)
        if outcome.is_valid:
            updates: dict[str, object] = {
                "is_online": True,
                "last_seen_at": datetime.now().astimezone(),
            }
            if not name and outcome.suggested_name:
                updates["name"] = outcome.suggested_name
            device = device.model_copy(update=updates)
        else:
            logger.info("Device at %s did not answer; adding it offline", address)

    devices.append(device)
    store.save_devices(devices)
    return device


def merge_discovered(store: Database, discovered: Iterable[Device]) -> list[Device]:
    """Persist newly discovered devices and refresh the ones already known.

    Returns only the devices that were added.
    """
    devices = store.get_devices()
    added: list[Device] = []
    for found in discovered:
        matches = (
            i for i, d in enumerate(devices) if _same_address(d.address, found.address)
        )
        index = next(matches, None)
        if index is None:
            if any(d.id == found.id for d in devices):
                logger.debug("Skipping %s: id %s is taken", found.address, found.id)
                continue
            devices.append(found)
            added.append(found)
        else:
            devices[index] = devices[index].model_copy(
                update={"is_online": True, "last_seen_at": found.last_seen_at}
            )
    store.save_devices(devices)
    return added


def remove_device(store: Database, device_id: str) -> bool:
    """Remove a device. Schedules pointing at it are left in place."""
    devices = store.get_devices()
    remaining = [device for device in devices if device.id != device_id]
    if len(remaining) == len(devices):
        return False
    store.save_devices(remaining)
    return True


def refresh_status(store: Database, client: DeviceClient) -> list[Device]:
    devices = store.get_devices()
    refreshed: list[Device] = []
    for device in devices:
        online = client.probe(device.address)
        updates: dict[str, object] = {"is_online": online}
        if online:
            updates["last_seen_at"] = datetime.now().astimezone()
        refreshed.append(device.model_copy(update=updates))
    store.save_devices(refreshed)
    return refreshed


def power_off_all(
    store: Database, client: DeviceClient
) -> list[tuple[Device, CommandResult]]:
    """Send the power command to every registered device, one after another.

    Each outcome is written to the activity log.
    """
    devices = store.get_devices()
    store.add_log("info", f"Testing power off for {len(devices)} devices...")

    results: list[tuple[Device, CommandResult]] = []
    for device in devices:
        result = client.send_power_off(device.address)
        if result.success:
            store.add_log(
                "success", f"Test command for {device.name}: Success", device.name
            )
        else:
            store.add_log(
                "error",
                f"Test command for {device.name}: Failed - {result.error}",
                device.name,
            )
        results.append((device, result))
    return results
