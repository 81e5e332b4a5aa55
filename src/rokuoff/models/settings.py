from __future__ import annotations

from pydantic import BaseModel, Field


class AppSettings(BaseModel):
    """User-editable settings persisted alongside devices and schedules."""

    model_config = {"extra": "forbid"}

    discovery_enabled: bool = True
    scheduler_enabled: bool = True
    log_retention_days: int = Field(default=7, ge=1)
