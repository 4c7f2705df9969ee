"""
Object reference value object.

Doctor, patient and appointment identifiers are 24 character hex object ids.
Historic documents hold them either as the native ObjectId type or as the
hex string; this value object is the single place where both are reconciled.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from bson import ObjectId

from ..errors import InvalidIdentifierError

HEX_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


@dataclass(frozen=True)
class ObjectRef:
    """Immutable, canonical (lower-case hex) object identifier."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not HEX_ID_PATTERN.match(self.value):
            raise InvalidIdentifierError("id", self.value)
        object.__setattr__(self, "value", self.value.lower())

    def __str__(self) -> str:
        return self.value

    @classmethod
    def is_valid(cls, raw: Any) -> bool:
        """Check whether raw is an ObjectId or a 24 character hex string."""
        if isinstance(raw, ObjectId):
            return True
        return isinstance(raw, str) and bool(HEX_ID_PATTERN.match(raw.strip()))

    @classmethod
    def parse(cls, raw: Any, field: str = "id") -> "ObjectRef":
        """Parse a client or stored identifier, raising InvalidIdentifierError when malformed."""
        if isinstance(raw, ObjectRef):
            return raw
        if isinstance(raw, ObjectId):
            return cls(str(raw))
        if not cls.is_valid(raw):
            raise InvalidIdentifierError(field, raw)
        return cls(raw.strip())

    @classmethod
    def parse_many(cls, raws: Iterable[Any], field: str = "id") -> List["ObjectRef"]:
        """Parse and de-duplicate a list of identifiers, keeping first-seen order."""
        refs: List[ObjectRef] = []
        for raw in raws:
            ref = cls.parse(raw, field)
            if ref not in refs:
                refs.append(ref)
        return refs

    @classmethod
    def generate(cls) -> "ObjectRef":
        return cls(str(ObjectId()))

    @property
    def object_id(self) -> ObjectId:
        """Binary form, the canonical write form."""
        return ObjectId(self.value)

    def forms(self) -> List[Any]:
        """Both stored representations of this identifier."""
        return [self.object_id, self.value]

    def matches(self, stored: Any) -> bool:
        """Compare against a stored value held in either representation."""
        if isinstance(stored, ObjectRef):
            return stored.value == self.value
        if isinstance(stored, ObjectId):
            return str(stored) == self.value
        if isinstance(stored, str):
            return stored.strip().lower() == self.value
        return False

    @staticmethod
    def filter(field: str, refs: Iterable["ObjectRef"]) -> Dict[str, Any]:
        """Query filter matching field against every representation of refs.

        Backward-compatibility shim for documents written before identifiers
        were normalized to ObjectId. Remove once
        scripts/migrate_identifier_forms.py --check reports zero legacy
        documents in every collection, at which point a plain
        {field: {"$in": [ref.object_id ...]}} is sufficient.
        """
        forms: List[Any] = []
        for ref in refs:
            forms.extend(ref.forms())
        return {field: {"$in": forms}}
