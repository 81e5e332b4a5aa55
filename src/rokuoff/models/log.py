from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

Severity = Literal["info", "success", "warning", "error"]


class LogEntry(BaseModel):
    """Activity log entry shown to the user."""

    model_config = {"extra": "forbid"}

    id: str
    timestamp: datetime
    severity: Severity
    message: str
    device_name: str | None = None
