"""Billing period arithmetic."""

import calendar
from datetime import date
from typing import NamedTuple

from institute_billing.models.invoice import ADMISSION_MONTH


class BillingPeriod(NamedTuple):
    """Calendar month a monthly invoice covers."""

    month: int
    year: int

    @classmethod
    def from_date(cls, value: date) -> "BillingPeriod":
        return cls(value.month, value.year)

    @classmethod
    def current(cls, today: date | None = None) -> "BillingPeriod":
        return cls.from_date(today or date.today())

    @property
    def is_admission(self) -> bool:
        return self.month == ADMISSION_MONTH

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def shift(self, months: int) -> "BillingPeriod":
        """Period `months` later (negative for earlier)."""
        index = self.year * 12 + (self.month - 1) + months
        return BillingPeriod(index % 12 + 1, index // 12)

    def next(self) -> "BillingPeriod":
        return self.shift(1)

    def due_date(self, day: int) -> date:
        """Due date on `day` of the period month, clamped to the month length."""
        last_day = calendar.monthrange(self.year, self.month)[1]
        return date(self.year, self.month, min(day, last_day))

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}"
