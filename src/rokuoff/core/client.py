"""HTTP client for the Roku External Control Protocol.

Every call is bounded by its own timeout and reports failure as data, so a
device that has gone offline can never stall or crash the scheduler.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime

import requests

from rokuoff.config import DeviceConfig, DiscoveryConfig
from rokuoff.core import ssdp
from rokuoff.models import (
    CommandResult,
    Device,
    ValidationOutcome,
    default_device_name,
    manual_device_id,
)

logger = logging.getLogger(__name__)

DEVICE_INFO_PATH = "/query/device-info"
POWER_KEYPRESS_PATH = "/keypress/Power"

_FRIENDLY_NAME = re.compile(
    r"<friendly-device-name>(.*?)</friendly-device-name>", re.DOTALL
)


def extract_device_name(body: str) -> str | None:
    match = _FRIENDLY_NAME.search(body)
    if not match:
        return None
    name = html.unescape(match.group(1)).strip()
    return name or None


def _device_id_from_response(response: ssdp.SsdpResponse, address: str) -> str:
    serial = response.serial
    if serial:
        return f"roku-{serial.lower()}"
    return "roku-" + address.replace(".", "-").replace(":", "-")


class DeviceClient:
    def __init__(
        self,
        config: DeviceConfig | None = None,
        discovery: DiscoveryConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config or DeviceConfig()
        self._discovery = discovery or DiscoveryConfig()
        self._session = session or requests.Session()

    def _url(self, address: str, path: str) -> str:
        host = f"[{address}]" if ":" in address else address
        return f"http://{host}:{self._config.port}{path}"

    def probe(self, address: str) -> bool:
        """Return True if the device answers a status request in time."""
        try:
            response = self._session.get(
                self._url(address, DEVICE_INFO_PATH),
                timeout=self._config.probe_timeout,
            )
        except requests.RequestException as exc:
            logger.debug("Probe of %s failed: %s", address, exc)
            return False
        logger.debug("Probe of %s returned HTTP %d", address, response.status_code)
        return response.ok

    def send_power_off(self, address: str) -> CommandResult:
        timeout = self._config.command_timeout
        try:
            response = self._session.post(
                self._url(address, POWER_KEYPRESS_PATH), timeout=timeout
            )
        except requests.Timeout:
            return CommandResult(success=False, error=f"Timed out after {timeout}s")
        except requests.ConnectionError as exc:
            return CommandResult(success=False, error=f"Connection failed: {exc}")
        except (requests.exceptions.InvalidURL, requests.exceptions.URLRequired):
            return CommandResult(success=False, error=f"Invalid address {address!r}")
        except requests.RequestException as exc:
            return CommandResult(success=False, error=str(exc) or type(exc).__name__)

        if not response.ok:
            return CommandResult(
                success=False,
                error=(
                    f"Device responded with HTTP {response.status_code} "
                    f"{response.reason or ''}".rstrip()
                ),
            )
        return CommandResult(success=True)

    def validate(self, address: str) -> ValidationOutcome:
        """Check that ``address`` hosts an ECP device and suggest a name for it."""
        try:
            response = self._session.get(
                self._url(address, DEVICE_INFO_PATH),
                timeout=self._config.info_timeout,
            )
        except requests.RequestException as exc:
            logger.debug("Validation of %s failed: %s", address, exc)
            return ValidationOutcome(is_valid=False)

        if not response.ok:
            logger.debug(
                "Validation of %s returned HTTP %d", address, response.status_code
            )
            return ValidationOutcome(is_valid=False)

        name = extract_device_name(response.text) or default_device_name(address)
        return ValidationOutcome(is_valid=True, suggested_name=name)

    def discover(self) -> list[Device]:
        try:
            responses = ssdp.search(self._discovery.timeout, self._discovery.mx)
        except OSError as exc:
            logger.warning("SSDP discovery failed: %s", exc)
            return []

        devices: dict[str, Device] = {}
        for response in responses:
            address = response.address
            if not address or address in devices:
                continue
            outcome = self.validate(address)
            devices[address] = Device(
                id=_device_id_from_response(response, address),
                name=outcome.suggested_name or default_device_name(address),
                address=address,
                is_manual=False,
                is_online=True,
                last_seen_at=datetime.now().astimezone(),
            )

        found = sorted(devices.values(), key=lambda d: (d.name, d.address))
        logger.debug("Discovery complete: found %d devices", len(found))
        return found

    def build_manual_device(self, address: str, name: str | None = None) -> Device:
        return Device(
            id=manual_device_id(address),
            name=name or default_device_name(address),
            address=address,
            is_manual=True,
            is_online=False,
        )
