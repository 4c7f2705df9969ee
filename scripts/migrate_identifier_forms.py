"""Convert legacy hex-string identifiers to ObjectIds across all collections.

Usage (from backend root, with venv active):

    python scripts/migrate_identifier_forms.py --check
    python scripts/migrate_identifier_forms.py
    python scripts/migrate_identifier_forms.py --collection appointments --collection PaitentQueue
    python scripts/migrate_identifier_forms.py --merge-queue-duplicates

``--check`` only reports and exits non-zero while string forms or duplicate
queue entries remain. When a check reports zero everywhere, the dual-form read
in ObjectRef.filter can be retired.

``--merge-queue-duplicates`` keeps the most advanced queue entry per
appointment key and deletes the others, so the unique appointmentKey index
can be built on the next start.
"""

import argparse
import asyncio
import sys
from typing import List

from receptiondesk.adapters.db.mongo.gateway import MongoGateway
from receptiondesk.adapters.db.mongo.identifier_migration import (
    DuplicateGroup,
    MigrationReport,
    count_string_forms,
    find_duplicate_queue_entries,
    merge_duplicate_queue_entries,
    migrate_string_forms,
)
from receptiondesk.core.config import get_settings
from receptiondesk.core.structured_logger import configure_logging


def print_report(report: MigrationReport, title: str) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)
    for item in report.fields:
        remaining = item.string_forms - item.converted
        line = f"  {item.collection}.{item.field}: {remaining} string-form remaining"
        if item.converted:
            line += f" ({item.converted} converted)"
        if item.conflicts:
            line += f" ({len(item.conflicts)} conflicts)"
        print(line)
    print("-" * 60)
    print(f"  Total remaining: {report.remaining}")


def print_duplicates(groups: List[DuplicateGroup], merged: bool) -> None:
    verb = "merged" if merged else "found"
    print(f"  Duplicate queue entries {verb}: {len(groups)} appointment key(s)")
    for group in groups:
        print(f"    {group.appointment_key}: keep {group.keep}, drop {len(group.remove)}")


async def main() -> int:
    """Main function."""
    parser = argparse.ArgumentParser(description="Convert string identifiers to ObjectIds")
    parser.add_argument(
        "--check", action="store_true", help="Report string-form counts without writing"
    )
    parser.add_argument(
        "--collection", action="append", help="Limit to a collection (repeatable)"
    )
    parser.add_argument(
        "--merge-queue-duplicates",
        action="store_true",
        help="Delete all but the most advanced queue entry per appointment key",
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.logging.level, settings.logging.format)
    gateway = MongoGateway(settings.database)
    await gateway.open()
    duplicates_left = 0
    try:
        async with gateway.operation("migrate_identifier_forms"):
            if args.check:
                report = await count_string_forms(gateway.database, args.collection)
                print_report(report, "Identifier form check")
                groups = await find_duplicate_queue_entries(gateway.database)
                print_duplicates(groups, merged=False)
                duplicates_left = len(groups)
            else:
                if args.merge_queue_duplicates:
                    print_duplicates(await merge_duplicate_queue_entries(gateway.database), merged=True)
                report = await migrate_string_forms(gateway.database, args.collection)
                print_report(report, "Identifier form migration")
    finally:
        await gateway.close()

    if report.remaining or duplicates_left:
        print("⚠️  String-form identifiers or duplicate queue entries remain; keep the dual-form read shim.")
        return 1
    print("✅ No string-form identifiers remain.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
