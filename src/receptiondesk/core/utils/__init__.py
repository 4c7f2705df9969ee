"""
Utility functions for the reception desk backend.
"""

from .crypto_utils import (
    hash_password,
    is_legacy_password,
    verify_password,
)
from .datetime_utils import (
    convert_to_24_hour,
    is_valid_date,
    parse_date_param,
    to_schedule_date,
    utcnow,
)

__all__ = [
    "convert_to_24_hour",
    "hash_password",
    "is_legacy_password",
    "is_valid_date",
    "parse_date_param",
    "to_schedule_date",
    "utcnow",
    "verify_password",
]
