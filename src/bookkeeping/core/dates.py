#!/usr/bin/env python3
"""
Date Helpers and DateRange Primitive Type

Consistent ISO date handling for transactions, balance snapshots and report
periods. Bank data often carries timestamps ("2025-01-01T12:00:00Z"); only the
calendar date part is significant to the engine.
"""

from dataclasses import dataclass
from datetime import date, datetime


def parse_iso_date(value: "str | date | datetime") -> date:
    """
    Parse an ISO date or timestamp string into a date.

    Args:
        value: "YYYY-MM-DD", "YYYY-MM-DDTHH:MM:SS[...]", date or datetime

    Returns:
        Calendar date

    Raises:
        ValueError: If the string does not start with a valid ISO date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def to_iso_string(value: date) -> str:
    """Format as YYYY-MM-DD."""
    return value.isoformat()


@dataclass(frozen=True)
class DateRange:
    """Inclusive report period [start, end]."""

    start: date
    end: date

    @classmethod
    def from_strings(cls, start: str, end: str) -> "DateRange":
        """
        Parse from ISO date strings.

        Args:
            start: Start date (YYYY-MM-DD)
            end: End date (YYYY-MM-DD)

        Returns:
            DateRange object
        """
        return cls(start=parse_iso_date(start), end=parse_iso_date(end))

    @classmethod
    def for_year(cls, year: int) -> "DateRange":
        """Full calendar year range."""
        return cls(start=date(year, 1, 1), end=date(year, 12, 31))

    @property
    def start_year(self) -> int:
        return self.start.year

    @property
    def end_year(self) -> int:
        return self.end.year

    @property
    def spans_single_year(self) -> bool:
        return self.start.year == self.end.year

    def contains(self, value: date) -> bool:
        """Check if a date falls within the range (inclusive)."""
        return self.start <= value <= self.end

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
