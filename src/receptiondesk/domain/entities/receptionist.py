"""Receptionist domain entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..value_objects import ObjectRef


@dataclass
class Receptionist:
    """Front-desk account; ``linked_doctor_ids`` is the authorization scope of its sessions."""

    id: ObjectRef
    email: str
    name: str = ""
    phone: Optional[str] = None
    password_hash: str = ""
    linked_doctor_ids: List[ObjectRef] = field(default_factory=list)
    status: str = "active"
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_profile(self) -> Dict[str, Any]:
        return {
            "id": self.id.value,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "linkedDoctorIds": [ref.value for ref in self.linked_doctor_ids],
        }
