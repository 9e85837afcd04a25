"""CLI argument handling tests."""

import pytest

from institute_billing import cli
from institute_billing.services.period import BillingPeriod


class TestParsePeriod:
    def test_default_is_current_month(self):
        assert cli.parse_period([]) is None

    def test_month_and_year(self):
        assert cli.parse_period(["3", "2025"]) == BillingPeriod(3, 2025)

    @pytest.mark.parametrize("args", [["3"], ["13", "2025"], ["march", "2025"]])
    def test_invalid(self, args):
        with pytest.raises(SystemExit):
            cli.parse_period(args)


class TestMain:
    def test_unknown_command(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["institute-billing", "frobnicate"])
        with pytest.raises(SystemExit):
            cli.main()

    def test_sync_student_requires_valid_id(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["institute-billing", "sync-student", "not-a-uuid"])
        with pytest.raises(SystemExit):
            cli.main()
