"""Byte size formatting helpers."""

import math
import re

from hashseries.models.media import UNKNOWN

_SIZE_LABEL_RE = re.compile(r"^(\d+\.?\d*)\s*(MB|GB|KB)$", re.IGNORECASE)


def bytes_to_human(num_bytes) -> str:
    """Format a byte count using binary (1024) steps up to GB.

    Returns ``"unknown"`` for anything that is not a number.
    """
    if isinstance(num_bytes, bool) or not isinstance(num_bytes, (int, float)):
        return UNKNOWN
    if math.isnan(num_bytes):
        return UNKNOWN
    if num_bytes < 1024:
        return f"{num_bytes} B"
    kb = num_bytes / 1024
    if kb < 1024:
        return f"{kb:.2f} KB"
    mb = kb / 1024
    if mb < 1024:
        return f"{mb:.2f} MB"
    gb = mb / 1024
    return f"{gb:.2f} GB"


def normalize_size_unit(label: str) -> str:
    """Promote ``KB``/``MB`` labels of 1000 or more to the next unit.

    Promotion is decimal (1000) even though ``bytes_to_human`` is binary,
    so "1000.50 MB" becomes "1.00 GB".
    """
    if label == UNKNOWN:
        return label

    match = _SIZE_LABEL_RE.match(label)
    if not match:
        return label

    value = float(match.group(1))
    unit = match.group(2).upper()

    if unit == "MB" and value >= 1000:
        return f"{value / 1000:.2f} GB"
    if unit == "KB" and value >= 1000:
        return f"{value / 1000:.2f} MB"
    return f"{value:.2f} {unit}"
