"""Utility functions for blobdisk."""

from datetime import datetime, timezone
from typing import Optional


def humanize_size(size: Optional[float]) -> str:
    """Convert bytes to human-readable format."""
    if size is None:
        return "-"
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_timestamp(timestamp: Optional[int]) -> str:
    """
    Format an epoch timestamp for display (UTC).

    Examples:
        1633046400 -> "2021-10-01 00:00:00"
        None -> "-"
    """
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
