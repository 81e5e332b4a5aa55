from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import SimpleNamespace

import pytest

from rokuoff.config import get_settings
from rokuoff.models import CommandResult, Device, ValidationOutcome
from rokuoff.storage import Database


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ROKUOFF_CONFIG", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _isolate_package_logger():
    logger = logging.getLogger("rokuoff")
    handlers, level = list(logger.handlers), logger.level
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def db(tmp_path) -> Database:
    return Database(tmp_path / "data")


def make_response(status_code: int = 200, text: str = "", reason: str = "OK"):
    return SimpleNamespace(
        status_code=status_code,
        ok=200 <= status_code < 300,
        reason=reason,
        text=text,
    )


class FakeSession:
    """Stands in for requests.Session; replies with a response or raises."""

    def __init__(self, reply=None) -> None:
        self.reply = reply if reply is not None else make_response()
        self.calls: list[tuple[str, str, float]] = []

    def _handle(self, method: str, url: str, timeout: float):
        self.calls.append((method, url, timeout))
        if isinstance(self.reply, BaseException):
            raise self.reply
        return self.reply

    def get(self, url: str, timeout: float):
        return self._handle("GET", url, timeout)

    def post(self, url: str, timeout: float):
        return self._handle("POST", url, timeout)


@dataclass
class FakeClient:
    """DeviceClient double that records power-off calls."""

    result: CommandResult = field(default_factory=lambda: CommandResult(success=True))
    outcome: ValidationOutcome = field(
        default_factory=lambda: ValidationOutcome(is_valid=False)
    )
    online: set[str] = field(default_factory=set)
    sent: list[str] = field(default_factory=list)

    def send_power_off(self, address: str) -> CommandResult:
        self.sent.append(address)
        return self.result

    def validate(self, address: str) -> ValidationOutcome:
        return self.outcome

    def probe(self, address: str) -> bool:
        return address in self.online

    def build_manual_device(self, address: str, name: str | None = None) -> Device:
        return Device(
            id="manual-" + address.replace(".", "-"),
            name=name or f"Device at {address}",
            address=address,
            is_manual=True,
        )


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
