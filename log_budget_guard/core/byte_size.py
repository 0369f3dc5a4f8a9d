"""
Human-readable byte sizes.

Parses budget strings like "50G" and renders byte counts for reports.
Units are binary: 1K = 1024 bytes.
"""

import re
from typing import Union

BYTE = 1
KILOBYTE = 1024 * BYTE
MEGABYTE = 1024 * KILOBYTE
GIGABYTE = 1024 * MEGABYTE
TERABYTE = 1024 * GIGABYTE
PETABYTE = 1024 * TERABYTE
EXABYTE = 1024 * PETABYTE

# Largest unit first so formatting picks the biggest one that fits
_UNITS = (
    ("E", EXABYTE),
    ("P", PETABYTE),
    ("T", TERABYTE),
    ("G", GIGABYTE),
    ("M", MEGABYTE),
    ("K", KILOBYTE),
    ("B", BYTE),
)

_MULTIPLIERS = {
    "B": BYTE,
    "K": KILOBYTE, "KB": KILOBYTE, "KIB": KILOBYTE,
    "M": MEGABYTE, "MB": MEGABYTE, "MIB": MEGABYTE,
    "G": GIGABYTE, "GB": GIGABYTE, "GIB": GIGABYTE,
    "T": TERABYTE, "TB": TERABYTE, "TIB": TERABYTE,
    "P": PETABYTE, "PB": PETABYTE, "PIB": PETABYTE,
    "E": EXABYTE, "EB": EXABYTE, "EIB": EXABYTE,
}

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*([A-Z]+)$")


class ByteSizeError(ValueError):
    """Raised when a byte size string cannot be parsed."""


def parse_byte_size(value: Union[str, int]) -> int:
    """Convert a size such as "50G", "1.5TB" or "512MiB" to bytes.

    Integers are taken as a byte count. Strings must carry a unit suffix and
    describe a positive quantity.

    Args:
        value: Size string or integer byte count

    Returns:
        Number of bytes (fractional bytes are truncated)

    Raises:
        ByteSizeError: If the value is malformed, unit-less or not positive
    """
    if isinstance(value, bool):
        raise ByteSizeError(f"Invalid byte size: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ByteSizeError(f"Byte size cannot be negative: {value}")
        return value
    if not isinstance(value, str):
        raise ByteSizeError(f"Invalid byte size: {value!r}")

    match = _SIZE_PATTERN.match(value.strip().upper())
    if not match:
        raise ByteSizeError(
            f"Invalid byte size {value!r}: expected a positive number with a unit (B, K, M, G, T, P, E)"
        )

    number, unit = match.groups()
    if unit not in _MULTIPLIERS:
        raise ByteSizeError(f"Unknown byte size unit {unit!r} in {value!r}")

    quantity = float(number)
    if quantity <= 0:
        raise ByteSizeError(f"Byte size must be positive: {value!r}")

    return int(quantity * _MULTIPLIERS[unit])


def format_byte_size(num_bytes: int) -> str:
    """Render a byte count with the largest fitting unit, e.g. "16.7G"."""
    if num_bytes == 0:
        return "0B"

    for unit, size in _UNITS:
        if num_bytes >= size:
            text = f"{num_bytes / size:.1f}"
            if text.endswith(".0"):
                text = text[:-2]
            return text + unit

    raise ByteSizeError(f"Byte size cannot be negative: {num_bytes}")
