"""Tests for LeaveBalanceEvaluator."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from labor_compliance_engine.core.forms import LeaveFormData
from labor_compliance_engine.core.leave_evaluator import LeaveBalanceEvaluator, resolve_leave_category
from labor_compliance_engine.errors import CollaboratorError
from tests.conftest import make_balance

AS_OF = date(2026, 3, 10)


def _form(leave_type: str, days: float) -> LeaveFormData:
    return LeaveFormData(leave_type=leave_type, days=days)


class TestResolveLeaveCategory:
    """Tests for bilingual leave category resolution."""

    @pytest.mark.parametrize(
        ("leave_type", "expected"),
        [
            ("Annual Leave", "annual"),
            ("特休假", "annual"),
            ("SICK", "sick"),
            ("病假", "sick"),
            ("personal leave", "personal"),
            ("事假", "personal"),
            ("Family Care Leave", "family_care"),
            ("家庭照顧假", "family_care"),
            ("marriage", "marriage"),
            ("婚假", "marriage"),
            ("maternity", "maternity"),
            ("產假", "maternity"),
            ("paternity leave", "paternity"),
            ("陪產假", "paternity"),
            ("bereavement", "bereavement"),
            ("喪假", "bereavement"),
            ("sabbatical", "unknown"),
            ("", "unknown"),
        ],
    )
    def test_resolution(self, leave_type: str, expected: str) -> None:
        """Free-text leave types map to balance categories by keyword."""
        assert resolve_leave_category(leave_type) == expected


class TestLeaveBalanceEvaluator:
    """Tests for leave balance, certificate, and protection findings."""

    @pytest.mark.asyncio()
    async def test_insufficient_balance_blocks(self, mock_balance_reader: AsyncMock) -> None:
        """total=7, used=5, requested=3 leaves 2 available and blocks with exact evidence."""
        mock_balance_reader.get_balance.return_value = make_balance(
            totals={"annual": 7},
            used={"annual": 5},
        )
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("annual", 3), "user_123", "org_456", as_of=AS_OF)

        assert len(output.items) == 1
        item = output.items[0]
        assert item.check_type == "leave_balance"
        assert item.status == "blocked"
        assert item.rule_reference == "LSA Art. 38 / Leave Balance"
        assert item.details == {"requested": 3, "available": 2, "total": 7, "used": 5}
        assert "Requested: 3 days, Available: 2 days (5/7 used)" in item.message
        assert item.message_localized.startswith("特休餘額不足")

    @pytest.mark.asyncio()
    async def test_sufficient_balance_passes(self, mock_balance_reader: AsyncMock) -> None:
        """A request within the available balance passes."""
        mock_balance_reader.get_balance.return_value = make_balance(totals={"annual": 10}, used={"annual": 2})
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("特休", 8), "user_123", "org_456", as_of=AS_OF)

        assert [item.status for item in output.items] == ["pass"]
        assert output.items[0].details == {"requested": 8, "available": 8, "total": 10, "used": 2}
        assert output.evaluations[0].evaluated is True

    @pytest.mark.asyncio()
    async def test_balance_queried_for_evaluation_year(self, mock_balance_reader: AsyncMock) -> None:
        """The balance year is the calendar year of the evaluation date."""
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        await evaluator.evaluate(_form("annual", 1), "user_123", "org_456", as_of=date(2027, 1, 2))

        mock_balance_reader.get_balance.assert_awaited_once_with("user_123", "org_456", 2027)

    @pytest.mark.asyncio()
    async def test_unset_total_uses_statutory_default(self, mock_balance_reader: AsyncMock) -> None:
        """A missing sick total falls back to the 30-day default."""
        mock_balance_reader.get_balance.return_value = make_balance(totals={"sick": None}, used={"sick": 1})
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("sick", 2), "user_123", "org_456", as_of=AS_OF)

        assert output.items[0].details["total"] == 30
        assert output.items[0].details["available"] == 29

    @pytest.mark.asyncio()
    async def test_sick_leave_over_three_days_requires_certificate(self, mock_balance_reader: AsyncMock) -> None:
        """Sick leave of 4 days adds a certificate warning after the balance item."""
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("sick", 4), "user_123", "org_456", as_of=AS_OF)

        assert [item.check_type for item in output.items] == ["leave_balance", "sick_leave_certificate"]
        certificate = output.items[1]
        assert certificate.status == "warning"
        assert certificate.rule_reference == "Labor Leave Rules Art. 4"
        assert certificate.details == {"days_requested": 4, "certificate_required": True}

    @pytest.mark.asyncio()
    async def test_sick_leave_of_three_days_needs_no_certificate(self, mock_balance_reader: AsyncMock) -> None:
        """Exactly 3 sick days does not trigger the certificate warning."""
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("病假", 3), "user_123", "org_456", as_of=AS_OF)

        assert [item.check_type for item in output.items] == ["leave_balance"]

    @pytest.mark.parametrize("leave_type", ["family care", "婚假", "bereavement leave"])
    @pytest.mark.asyncio()
    async def test_protected_types_add_attendance_bonus_item(
        self,
        mock_balance_reader: AsyncMock,
        leave_type: str,
    ) -> None:
        """Protected leave types add an informational pass item."""
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form(leave_type, 1), "user_123", "org_456", as_of=AS_OF)

        protection = output.items[-1]
        assert protection.check_type == "attendance_bonus_protection"
        assert protection.status == "pass"
        assert protection.details["protected"] is True

    @pytest.mark.asyncio()
    async def test_family_care_includes_hour_sub_balance(self, mock_balance_reader: AsyncMock) -> None:
        """Family-care balance evidence carries the hour sub-balance."""
        mock_balance_reader.get_balance.return_value = make_balance(
            family_care_hours_total=56,
            family_care_hours_used=8,
        )
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("家庭照顧假", 1), "user_123", "org_456", as_of=AS_OF)

        assert output.items[0].details["hours_total"] == 56
        assert output.items[0].details["hours_used"] == 8

    @pytest.mark.asyncio()
    async def test_unknown_category_checked_against_zero_entitlement(self, mock_balance_reader: AsyncMock) -> None:
        """An unrecognized leave type has nothing available and blocks."""
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("sabbatical", 1), "user_123", "org_456", as_of=AS_OF)

        assert output.items[0].status == "blocked"
        assert output.items[0].details["available"] == 0

    @pytest.mark.asyncio()
    async def test_missing_balance_record_contributes_nothing(self, mock_balance_reader: AsyncMock) -> None:
        """No balance record yields no items and a not-evaluated category."""
        mock_balance_reader.get_balance.return_value = None
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("sick", 10), "user_123", "org_456", as_of=AS_OF)

        assert output.items == ()
        assert output.evaluations[0].evaluated is False
        assert output.evaluations[0].degraded is False
        assert output.evaluations[0].reason == "no_balance_record"

    @pytest.mark.asyncio()
    async def test_lookup_failure_degrades(self, mock_balance_reader: AsyncMock) -> None:
        """A failed balance lookup is reported as degraded, not raised."""
        mock_balance_reader.get_balance.side_effect = CollaboratorError("leave_balances", "connection reset")
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("annual", 1), "user_123", "org_456", as_of=AS_OF)

        assert output.items == ()
        assert output.evaluations[0].degraded is True
        assert output.evaluations[0].reason == "balance_lookup_failed"

    @pytest.mark.asyncio()
    async def test_overdrawn_balance_is_reported_not_corrected(self, mock_balance_reader: AsyncMock) -> None:
        """used > total yields a negative available figure in the evidence."""
        mock_balance_reader.get_balance.return_value = make_balance(totals={"personal": 14}, used={"personal": 15})
        evaluator = LeaveBalanceEvaluator(mock_balance_reader)

        output = await evaluator.evaluate(_form("personal", 0.5), "user_123", "org_456", as_of=AS_OF)

        assert output.items[0].status == "blocked"
        assert output.items[0].details["available"] == -1
