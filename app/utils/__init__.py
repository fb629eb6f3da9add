"""
Utilities Module
================

Helper functions and utility classes.
"""

from app.utils.helpers import ensure_aware, format_datetime, utc_now

__all__ = ["ensure_aware", "format_datetime", "utc_now"]
