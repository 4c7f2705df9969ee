"""Read-time coercion of legacy field values into the canonical document types."""

import logging
from typing import Any, Optional

from bson import ObjectId

from receptiondesk.core.utils.datetime_utils import to_schedule_date
from receptiondesk.domain.value_objects import ObjectRef

logger = logging.getLogger(__name__)


def coerce_object_id(value: Any) -> Any:
    """Hex strings become ObjectId; anything else is left for the field type to reject."""
    if isinstance(value, str) and ObjectRef.is_valid(value):
        return ObjectId(value.strip())
    return value


def coerce_optional_object_id(value: Any) -> Optional[ObjectId]:
    """Like coerce_object_id, but unusable optional references are read as missing."""
    if value is None or value == "":
        return None
    if isinstance(value, ObjectId):
        return value
    if ObjectRef.is_valid(value):
        return ObjectId(value.strip())
    logger.warning("Ignoring malformed optional reference %r", value)
    return None


def coerce_schedule_date(value: Any) -> Any:
    """Older documents hold the appointment date as a datetime."""
    return to_schedule_date(value) or ""
