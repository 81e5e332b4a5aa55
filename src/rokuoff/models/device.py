from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Device(BaseModel):
    model_config = {"extra": "forbid"}

    id: str
    name: str
    address: str
    is_manual: bool = False
    is_online: bool = False
    last_seen_at: datetime | None = None


def manual_device_id(address: str) -> str:
    """Deterministic id for a device added by hand."""
    return "manual-" + address.lower().replace(".", "-").replace(":", "-")


def default_device_name(address: str) -> str:
    return f"Device at {address}"
