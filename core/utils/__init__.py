"""
Core Utilities Package

This package contains utility functions and helpers used throughout the application.

Modules:
    - time: Timestamp parsing and normalization utilities
    - format: Number formatting for amounts and fiat values
"""

from core.utils.time import to_utc_datetime, parse_timestamp, current_utc_datetime
from core.utils.format import format_token, format_fiat, format_input_value

__all__ = [
    "to_utc_datetime",
    "parse_timestamp",
    "current_utc_datetime",
    "format_token",
    "format_fiat",
    "format_input_value",
]
