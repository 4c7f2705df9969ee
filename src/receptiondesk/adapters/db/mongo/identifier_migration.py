"""
Rewrite legacy hex-string identifiers as native ObjectIds.

New writes always store ObjectIds, but older documents may still hold the
string form. While any remain, reads match both forms (see
``ObjectRef.filter``); once ``count_string_forms`` reports zero for every
collection that read shim can be removed.

The same tooling merges duplicate queue entries left by the old
check-then-insert flow, which otherwise block the unique appointmentKey index.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from ....domain.value_objects import HEX_ID_PATTERN

logger = logging.getLogger(__name__)

# Identifier fields per collection; array fields are converted element-wise
IDENTIFIER_FIELDS: Dict[str, List[str]] = {
    "appointments": ["doctorId", "patientId"],
    "PaitentQueue": ["doctorId", "patientId"],
    "doctor_schedules": ["doctorId"],
    "cancelled_appointments": ["originalAppointmentId", "doctorId", "patientId"],
    "Notification": ["doctorId", "patientId"],
    "outbox_events": ["doctorId"],
    "receptionists": ["linked_doctor_ids"],
}

_HEX_REGEX = HEX_ID_PATTERN.pattern


def string_form_filter(field_name: str) -> Dict[str, Any]:
    """Documents whose field (or any element of it) is a convertible hex string."""
    return {field_name: {"$type": "string", "$regex": _HEX_REGEX}}


def to_object_id_form(value: Any) -> Any:
    if isinstance(value, list):
        return [to_object_id_form(item) for item in value]
    if isinstance(value, str) and HEX_ID_PATTERN.match(value):
        return ObjectId(value)
    return value


@dataclass
class FieldReport:
    collection: str
    field: str
    string_forms: int = 0
    converted: int = 0
    conflicts: List[Any] = field(default_factory=list)


@dataclass
class MigrationReport:
    fields: List[FieldReport] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return sum(item.string_forms - item.converted for item in self.fields)

    @property
    def converted(self) -> int:
        return sum(item.converted for item in self.fields)

    @property
    def conflicts(self) -> int:
        return sum(len(item.conflicts) for item in self.fields)

    def summary(self) -> Dict[str, Dict[str, int]]:
        out: Dict[str, Dict[str, int]] = {}
        for item in self.fields:
            out.setdefault(item.collection, {})[item.field] = item.string_forms - item.converted
        return out


def _selected(collections: Optional[Iterable[str]]) -> Dict[str, List[str]]:
    if not collections:
        return dict(IDENTIFIER_FIELDS)
    unknown = [name for name in collections if name not in IDENTIFIER_FIELDS]
    if unknown:
        raise ValueError(f"Unknown collection(s): {', '.join(unknown)}")
    return {name: IDENTIFIER_FIELDS[name] for name in collections}


async def count_string_forms(
    db: AsyncDatabase, collections: Optional[Iterable[str]] = None
) -> MigrationReport:
    report = MigrationReport()
    for collection, fields in _selected(collections).items():
        for field_name in fields:
            count = await db[collection].count_documents(string_form_filter(field_name))
            report.fields.append(FieldReport(collection, field_name, string_forms=count))
    return report


async def migrate_string_forms(
    db: AsyncDatabase, collections: Optional[Iterable[str]] = None
) -> MigrationReport:
    """Convert every string-form identifier; documents that would collide with a unique index are reported."""
    report = await count_string_forms(db, collections)
    for item in report.fields:
        if not item.string_forms:
            continue
        coll = db[item.collection]
        cursor = coll.find(string_form_filter(item.field), {item.field: 1})
        async for doc in cursor:
            original = doc.get(item.field)
            try:
                # Match on the value read so a concurrent rewrite is not clobbered
                result = await coll.update_one(
                    {"_id": doc["_id"], item.field: original},
                    {"$set": {item.field: to_object_id_form(original)}},
                )
            except DuplicateKeyError:
                logger.warning(
                    "%s %s: converting %s would duplicate an existing document; merge by hand",
                    item.collection,
                    doc["_id"],
                    item.field,
                )
                item.conflicts.append(doc["_id"])
                continue
            item.converted += result.modified_count
        logger.info(
            "%s.%s: converted %d of %d string-form documents",
            item.collection,
            item.field,
            item.converted,
            item.string_forms,
        )
    return report


QUEUE_COLLECTION = "PaitentQueue"

# Later stages win when duplicate queue entries are merged
_QUEUE_PROGRESS = {"waiting": 0, "cancelled": 1, "in-session": 2, "completed": 3}


@dataclass
class DuplicateGroup:
    appointment_key: str
    keep: Any
    remove: List[Any]


def _queue_rank(document: Dict[str, Any]) -> tuple:
    progress = _QUEUE_PROGRESS.get(str(document.get("queueStatus") or "").lower(), -1)
    updated_at = document.get("updatedAt") or document.get("createdAt")
    return (progress, updated_at is not None, updated_at or 0)


async def find_duplicate_queue_entries(db: AsyncDatabase) -> List[DuplicateGroup]:
    """Queue entries sharing an appointment key; these block the unique index on appointmentKey."""
    by_key: Dict[str, List[Dict[str, Any]]] = {}
    cursor = db[QUEUE_COLLECTION].find({}, {"appointmentKey": 1, "queueStatus": 1, "updatedAt": 1, "createdAt": 1})
    async for doc in cursor:
        key = doc.get("appointmentKey")
        if key:
            by_key.setdefault(str(key), []).append(doc)

    groups: List[DuplicateGroup] = []
    for key, documents in by_key.items():
        if len(documents) < 2:
            continue
        ranked = sorted(documents, key=_queue_rank, reverse=True)
        groups.append(
            DuplicateGroup(key, keep=ranked[0]["_id"], remove=[doc["_id"] for doc in ranked[1:]])
        )
    return groups


async def merge_duplicate_queue_entries(db: AsyncDatabase) -> List[DuplicateGroup]:
    """Keep the most advanced entry per appointment key and delete the rest."""
    groups = await find_duplicate_queue_entries(db)
    for group in groups:
        result = await db[QUEUE_COLLECTION].delete_many({"_id": {"$in": group.remove}})
        logger.info(
            "%s %s: kept %s, removed %d duplicate(s)",
            QUEUE_COLLECTION,
            group.appointment_key,
            group.keep,
            result.deleted_count,
        )
    return groups
