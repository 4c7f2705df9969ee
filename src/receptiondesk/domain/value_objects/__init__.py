"""
Value objects package for domain layer.
"""

from .object_ref import HEX_ID_PATTERN, ObjectRef

__all__ = [
    "HEX_ID_PATTERN",
    "ObjectRef",
]
