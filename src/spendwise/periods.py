"""Reporting periods used to filter transactions before aggregation."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta


class Period(ABC):
    """A span of time a transaction either falls in or does not."""

    @abstractmethod
    def contains(self, day: date) -> bool:
        """Return True if the date falls within this period."""


@dataclass(frozen=True)
class MonthPeriod(Period):
    """A calendar month, matched on month and year equality."""

    year: int
    month: int

    def contains(self, day: date) -> bool:
        return day.month == self.month and day.year == self.year

    def previous(self) -> "MonthPeriod":
        if self.month == 1:
            return MonthPeriod(self.year - 1, 12)
        return MonthPeriod(self.year, self.month - 1)


@dataclass(frozen=True)
class DateRange(Period):
    """Dates from start (inclusive) to end (exclusive)."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end


def this_month(today: date | None = None) -> MonthPeriod:
    today = today or date.today()
    return MonthPeriod(today.year, today.month)


def last_month(today: date | None = None) -> MonthPeriod:
    return this_month(today).previous()


def last_three_months(today: date | None = None) -> DateRange:
    """From the first day of the month two months back up to and including today."""
    today = today or date.today()
    start = this_month(today).previous().previous()
    return DateRange(date(start.year, start.month, 1), today + timedelta(days=1))


PERIOD_NAMES = ("this-month", "last-month", "last-3-months", "all")


def parse_period(name: str, today: date | None = None) -> Period | None:
    """
    Turn a period name into a Period.

    Args:
        name: One of PERIOD_NAMES
        today: Reference date (defaults to today)

    Returns:
        Period, or None for "all"

    Raises:
        ValueError: If the name is not recognised
    """
    if name == "this-month":
        return this_month(today)
    if name == "last-month":
        return last_month(today)
    if name == "last-3-months":
        return last_three_months(today)
    if name == "all":
        return None
    raise ValueError(f"Unknown period {name!r}, expected one of {', '.join(PERIOD_NAMES)}")
