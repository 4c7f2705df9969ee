"""Doctor domain entity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..errors import InvalidFieldValueError
from ..value_objects import ObjectRef


@dataclass
class Doctor:
    """Doctor domain entity.

    Validation is kept light; the only hard invariant is a usable display name.
    """

    id: ObjectRef
    name: str
    specialization: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.name or len(self.name.strip()) < 2:
            raise InvalidFieldValueError("name", self.name)
        if len(self.name) > 120:
            raise InvalidFieldValueError("name", self.name[:80])

    def to_summary(self) -> Dict[str, Any]:
        """The shape the login and session endpoints return for linked doctors."""
        return {"id": self.id.value, "name": self.name, "specialization": self.specialization}

    def to_payload(self) -> Dict[str, Any]:
        return {
            "_id": self.id.value,
            "name": self.name,
            "specialization": self.specialization,
            "email": self.email,
            "phone": self.phone,
            "department": self.department,
        }
