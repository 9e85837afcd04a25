"""Billing period arithmetic tests."""

from datetime import date

from institute_billing.services.period import BillingPeriod


class TestBillingPeriod:
    def test_next_rolls_over_year(self):
        assert BillingPeriod(12, 2024).next() == BillingPeriod(1, 2025)

    def test_shift_forward_and_back(self):
        assert BillingPeriod(1, 2025).shift(6) == BillingPeriod(7, 2025)
        assert BillingPeriod(1, 2025).shift(-1) == BillingPeriod(12, 2024)
        assert BillingPeriod(3, 2025).shift(24) == BillingPeriod(3, 2027)

    def test_from_date(self):
        assert BillingPeriod.from_date(date(2025, 3, 15)) == BillingPeriod(3, 2025)
        assert BillingPeriod.current(date(2025, 11, 30)) == BillingPeriod(11, 2025)

    def test_due_date_clamped_to_month_length(self):
        assert BillingPeriod(3, 2025).due_date(10) == date(2025, 3, 10)
        assert BillingPeriod(2, 2025).due_date(31) == date(2025, 2, 28)
        assert BillingPeriod(2, 2024).due_date(31) == date(2024, 2, 29)

    def test_admission_period(self):
        assert BillingPeriod(0, 2025).is_admission
        assert not BillingPeriod(1, 2025).is_admission

    def test_str(self):
        assert str(BillingPeriod(3, 2025)) == "2025-03"
