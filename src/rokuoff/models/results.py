from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class ValidationOutcome:
    is_valid: bool
    suggested_name: str | None = None
