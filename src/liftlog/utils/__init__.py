"""Utility helpers for liftlog."""

from .ids import new_device_id, new_id
from .timestamps import format_timestamp, parse_timestamp, utcnow

__all__ = [
    "format_timestamp",
    "new_device_id",
    "new_id",
    "parse_timestamp",
    "utcnow",
]
