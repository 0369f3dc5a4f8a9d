"""
Monthly ingestion budget and proration.

Scales a fixed monthly byte cap down to the allowance for the days elapsed
so far in the current month.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Union

from .byte_size import parse_byte_size


class InvalidBudgetInput(ValueError):
    """Raised for a negative/non-integer cap or a malformed date."""


def _days_in_month(today: date) -> int:
    # Day before the first of next month is the last day of this one
    if today.month == 12:
        first_of_next = date(today.year + 1, 1, 1)
    else:
        first_of_next = date(today.year, today.month + 1, 1)
    return (first_of_next - timedelta(days=1)).day


def compute_ceiling(monthly_cap_bytes: int, today: date) -> int:
    """Compute the prorated ingestion ceiling for ``today``.

    The ceiling is ``floor(cap * current_day / days_in_month)``. On the first
    of the month some allowance already exists; on the last day the ceiling
    equals the full cap.

    Args:
        monthly_cap_bytes: Bytes allowed for the whole calendar month
        today: Date to prorate to (a datetime is accepted, only its date is used)

    Returns:
        Byte ceiling for the month so far, truncated to an integer

    Raises:
        InvalidBudgetInput: If the cap is negative or not an integer, or
            ``today`` is not a date
    """
    if isinstance(monthly_cap_bytes, bool) or not isinstance(monthly_cap_bytes, int):
        raise InvalidBudgetInput(f"monthly cap must be an integer byte count, got {monthly_cap_bytes!r}")
    if monthly_cap_bytes < 0:
        raise InvalidBudgetInput(f"monthly cap cannot be negative: {monthly_cap_bytes}")
    if not isinstance(today, date):
        raise InvalidBudgetInput(f"today must be a date, got {today!r}")

    current_day = today.day
    last_day = _days_in_month(today)

    # Integer floor keeps the result exact for caps beyond float precision
    return monthly_cap_bytes * current_day // last_day


@dataclass(frozen=True)
class MonthlyBudget:
    """Fixed number of bytes allowed per calendar month."""
    cap_bytes: int

    def __post_init__(self):
        """Validate the cap is a non-negative integer."""
        if isinstance(self.cap_bytes, bool) or not isinstance(self.cap_bytes, int):
            raise InvalidBudgetInput(f"cap_bytes must be an integer, got {self.cap_bytes!r}")
        if self.cap_bytes < 0:
            raise InvalidBudgetInput("cap_bytes cannot be negative")

    @classmethod
    def from_size(cls, size: Union[str, int]) -> "MonthlyBudget":
        """Build a budget from a size string such as "50G"."""
        return cls(cap_bytes=parse_byte_size(size))

    def ceiling_for(self, today: date) -> int:
        """Prorated ceiling for ``today``."""
        return compute_ceiling(self.cap_bytes, today)
