"""
Identifier migration tests against an in-memory collection double.
"""

import asyncio
import re
from collections import defaultdict
from datetime import datetime
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from receptiondesk.adapters.db.mongo.identifier_migration import (
    QUEUE_COLLECTION,
    count_string_forms,
    find_duplicate_queue_entries,
    merge_duplicate_queue_entries,
    migrate_string_forms,
    to_object_id_form,
)

HEX_A = "68c15cac7a7bea4f6c332685"
HEX_B = "68c195256b30441fa3cab701"


class MemoryCollection:
    """Supports the handful of operations the migration issues."""

    def __init__(self):
        self.documents = []
        self.conflicting_ids = set()

    @staticmethod
    def _matches(document, query):
        for field_name, condition in query.items():
            value = document.get(field_name)
            if isinstance(condition, dict) and "$regex" in condition:
                candidates = value if isinstance(value, list) else [value]
                if not any(isinstance(item, str) and re.search(condition["$regex"], item) for item in candidates):
                    return False
            elif value != condition:
                return False
        return True

    async def count_documents(self, query):
        return sum(1 for document in self.documents if self._matches(document, query))

    def find(self, query, projection=None):
        matched = [dict(document) for document in self.documents if self._matches(document, query)]

        async def cursor():
            for document in matched:
                yield document

        return cursor()

    async def update_one(self, query, update):
        for document in self.documents:
            if self._matches(document, query):
                if document["_id"] in self.conflicting_ids:
                    raise DuplicateKeyError("E11000 duplicate key error")
                document.update(update["$set"])
                return SimpleNamespace(modified_count=1)
        return SimpleNamespace(modified_count=0)

    async def delete_many(self, query):
        doomed = set(query["_id"]["$in"])
        before = len(self.documents)
        self.documents = [document for document in self.documents if document["_id"] not in doomed]
        return SimpleNamespace(deleted_count=before - len(self.documents))


class MemoryDatabase:
    def __init__(self):
        self.collections = defaultdict(MemoryCollection)

    def __getitem__(self, name):
        return self.collections[name]


@pytest.fixture
def db():
    database = MemoryDatabase()
    database["appointments"].documents = [
        {"_id": 1, "doctorId": HEX_A, "patientId": ObjectId(HEX_B)},
        {"_id": 2, "doctorId": ObjectId(HEX_A), "patientId": ObjectId(HEX_B)},
        {"_id": 3, "doctorId": HEX_B.upper(), "patientId": "walk-in"},
    ]
    database["receptionists"].documents = [
        {"_id": 10, "linked_doctor_ids": [HEX_A, ObjectId(HEX_B)]},
        {"_id": 11, "linked_doctor_ids": []},
    ]
    return database


def test_to_object_id_form():
    assert to_object_id_form(HEX_A) == ObjectId(HEX_A)
    assert to_object_id_form([HEX_A, "x"]) == [ObjectId(HEX_A), "x"]
    assert to_object_id_form("walk-in") == "walk-in"
    assert to_object_id_form(None) is None


def test_count_string_forms(db):
    report = asyncio.run(count_string_forms(db, ["appointments", "receptionists"]))

    assert report.summary() == {
        "appointments": {"doctorId": 2, "patientId": 0},
        "receptionists": {"linked_doctor_ids": 1},
    }
    assert report.remaining == 3


def test_migrate_converts_every_string_form(db):
    report = asyncio.run(migrate_string_forms(db, ["appointments", "receptionists"]))

    assert report.converted == 3
    assert report.remaining == 0
    appointments = db["appointments"].documents
    assert appointments[0]["doctorId"] == ObjectId(HEX_A)
    assert appointments[2]["doctorId"] == ObjectId(HEX_B)
    assert appointments[2]["patientId"] == "walk-in"
    assert db["receptionists"].documents[0]["linked_doctor_ids"] == [ObjectId(HEX_A), ObjectId(HEX_B)]

    again = asyncio.run(count_string_forms(db, ["appointments", "receptionists"]))
    assert again.remaining == 0


def test_migrate_reports_unique_index_conflicts(db):
    db["appointments"].conflicting_ids.add(1)

    report = asyncio.run(migrate_string_forms(db, ["appointments"]))

    assert report.conflicts == 1
    assert report.remaining == 1
    assert db["appointments"].documents[0]["doctorId"] == HEX_A


def test_unknown_collection_is_rejected(db):
    with pytest.raises(ValueError):
        asyncio.run(count_string_forms(db, ["patients"]))


@pytest.fixture
def queue_db():
    database = MemoryDatabase()
    database[QUEUE_COLLECTION].documents = [
        {"_id": 20, "appointmentKey": "k1", "queueStatus": "waiting", "updatedAt": datetime(2025, 3, 10, 9, 0)},
        {"_id": 21, "appointmentKey": "k1", "queueStatus": "in-session", "updatedAt": datetime(2025, 3, 10, 9, 5)},
        {"_id": 22, "appointmentKey": "k1", "queueStatus": "waiting", "updatedAt": datetime(2025, 3, 10, 9, 30)},
        {"_id": 23, "appointmentKey": "k2", "queueStatus": "waiting", "updatedAt": datetime(2025, 3, 10, 9, 0)},
        {"_id": 24, "appointmentKey": "k3", "queueStatus": "waiting", "updatedAt": datetime(2025, 3, 10, 9, 0)},
        {"_id": 25, "appointmentKey": "k3", "queueStatus": "waiting", "updatedAt": datetime(2025, 3, 10, 11, 0)},
    ]
    return database


def test_find_duplicate_queue_entries_keeps_most_advanced(queue_db):
    groups = {group.appointment_key: group for group in asyncio.run(find_duplicate_queue_entries(queue_db))}

    assert set(groups) == {"k1", "k3"}
    assert groups["k1"].keep == 21
    assert sorted(groups["k1"].remove) == [20, 22]
    # Same stage: the most recently updated wins
    assert groups["k3"].keep == 25
    assert len(queue_db[QUEUE_COLLECTION].documents) == 6


def test_merge_duplicate_queue_entries_leaves_one_per_key(queue_db):
    asyncio.run(merge_duplicate_queue_entries(queue_db))

    remaining = queue_db[QUEUE_COLLECTION].documents
    assert sorted(document["_id"] for document in remaining) == [21, 23, 25]
    assert asyncio.run(find_duplicate_queue_entries(queue_db)) == []
