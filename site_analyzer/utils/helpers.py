"""General-purpose helper utilities for the website analyzer."""

import math
import re
from typing import Optional

_BYTE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]


def round_half_up(value: float, ndigits: int = 0) -> int | float:
    """Round a number with halves going up, the way report scores are computed.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``); report
    scores and averages always round halves towards positive infinity.

    Args:
        value: Number to round.
        ndigits: Decimal places to keep.

    Returns:
        An ``int`` when ``ndigits`` is 0, otherwise a ``float``.

    Examples:
        >>> round_half_up(62.5)
        63
        >>> round_half_up(4.25, 1)
        4.3
    """
    factor = 10 ** ndigits
    rounded = math.floor(value * factor + 0.5)
    if ndigits == 0:
        return int(rounded)
    return rounded / factor


def format_bytes(num_bytes: Optional[int | float], decimals: int = 2) -> str:
    """Format a byte count with a 1024-based unit suffix.

    Args:
        num_bytes: Size in bytes. ``None`` and 0 both render as ``0 Bytes``.
        decimals: Maximum decimal places; trailing zeros are dropped.

    Returns:
        Human readable size (e.g. 1536 -> '1.5 KB').

    Examples:
        >>> format_bytes(0)
        '0 Bytes'
        >>> format_bytes(1536)
        '1.5 KB'
        >>> format_bytes(1048576)
        '1 MB'
    """
    if not num_bytes:
        return "0 Bytes"
    decimals = max(decimals, 0)
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(_BYTE_UNITS) - 1:
        value /= 1024
        index += 1
    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {_BYTE_UNITS[index]}"


def format_duration_ms(value: Optional[float]) -> str:
    """Render a millisecond duration the way reports display it (``'123ms'``)."""
    if value is None:
        return "N/A"
    return f"{round_half_up(value)}ms"


def normalize_url(url: str) -> str:
    """Prefix a bare domain with ``https://`` and strip surrounding whitespace."""
    url = url.strip()
    if not re.match(r"^https?://", url, re.IGNORECASE):
        url = "https://" + url
    return url
