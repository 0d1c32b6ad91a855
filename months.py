"""
Calendar month helpers.

Every month-scoped query and computation takes an explicit YearMonth.
The month interval is half-open: [start, next_start).
"""
from __future__ import annotations

import calendar
import re
from datetime import date
from typing import NamedTuple, Optional

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


class YearMonth(NamedTuple):
    year: int
    month: int

    @classmethod
    def parse(cls, value: str) -> "YearMonth":
        """Parse a ``YYYY-MM`` string."""
        match = _MONTH_RE.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month '{value}', month must be 01-12")
        if year < 1 or (year, month) >= (9999, 12):
            raise ValueError(f"Invalid month '{value}', year out of range")
        return cls(year, month)

    @classmethod
    def from_date(cls, d: date) -> "YearMonth":
        return cls(d.year, d.month)

    @classmethod
    def current(cls, today: Optional[date] = None) -> "YearMonth":
        return cls.from_date(today or date.today())

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def next_start(self) -> date:
        return self.shift(1).start

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    def contains(self, d: date) -> bool:
        return self.start <= d < self.next_start

    def shift(self, months: int) -> "YearMonth":
        index = self.year * 12 + (self.month - 1) + months
        return YearMonth(index // 12, index % 12 + 1)

    def previous(self) -> "YearMonth":
        return self.shift(-1)

    def next(self) -> "YearMonth":
        return self.shift(1)

    def months_since(self, d: date) -> int:
        """Whole calendar months from the month of ``d`` to this month."""
        return (self.year - d.year) * 12 + (self.month - d.month)

    def day(self, day_of_month: int) -> Optional[date]:
        """Date for ``day_of_month`` in this month, or None if the month is too short."""
        if 1 <= day_of_month <= self.days_in_month:
            return date(self.year, self.month, day_of_month)
        return None

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
