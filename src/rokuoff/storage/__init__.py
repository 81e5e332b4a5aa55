from __future__ import annotations

from .database import MAX_LOG_ENTRIES, Database

__all__ = ["MAX_LOG_ENTRIES", "Database"]
