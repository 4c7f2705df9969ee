"""Helpers shared by entity to_payload/from_payload methods."""

from datetime import datetime
from typing import Any, Optional


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def from_iso(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
