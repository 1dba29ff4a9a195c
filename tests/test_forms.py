"""Tests for typed form parsing at the service boundary."""

from datetime import date

import pytest

from labor_compliance_engine.core.forms import (
    BusinessTripFormData,
    LeaveFormData,
    OvertimeFormData,
    format_quantity,
    parse_form_data,
    parse_number,
)
from labor_compliance_engine.errors import ValidationError


class TestParseNumber:
    """Tests for lenient day/hour parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3, 3.0),
            (2.5, 2.5),
            ("4", 4.0),
            ("4.01", 4.01),
            (" 3 days", 3.0),
            ("abc", 0.0),
            ("", 0.0),
            (None, 0.0),
            (True, 0.0),
            (float("nan"), 0.0),
            ("inf", 0.0),
            ({"days": 3}, 0.0),
        ],
    )
    def test_parse_number(self, value: object, expected: float) -> None:
        """Non-numeric input becomes 0 and never raises."""
        assert parse_number(value) == expected


class TestParseFormData:
    """Tests for parse_form_data()."""

    def test_leave_form(self) -> None:
        """Leave form data parses into LeaveFormData with float days."""
        form = parse_form_data(
            "leave",
            {"leave_type": "特休", "days": "3", "start_date": "2026-03-16", "end_date": "2026-03-18"},
        )
        assert isinstance(form, LeaveFormData)
        assert form.days == 3.0
        assert form.start_date == date(2026, 3, 16)

    def test_leave_non_numeric_days_defaults_to_zero(self) -> None:
        """Non-numeric days parse as 0 rather than failing."""
        form = parse_form_data("leave", {"leave_type": "sick", "days": "a few"})
        assert isinstance(form, LeaveFormData)
        assert form.days == 0.0

    def test_overtime_form(self) -> None:
        """Overtime form data parses into OvertimeFormData."""
        form = parse_form_data("overtime", {"date": "2026-03-10", "hours": 2, "start_time": "18:00"})
        assert isinstance(form, OvertimeFormData)
        assert form.date == date(2026, 3, 10)
        assert form.hours == 2.0

    def test_overtime_blank_date_is_none(self) -> None:
        """An empty date string is treated as missing."""
        form = parse_form_data("overtime", {"date": "", "hours": 1})
        assert isinstance(form, OvertimeFormData)
        assert form.date is None

    @pytest.mark.parametrize("value", ["2026-03-12T18:00:00", "2026-03-12T18:00:00+08:00", "2026-03-12 18:00"])
    def test_overtime_datetime_is_truncated_to_date(self, value: str) -> None:
        """A datetime-shaped value is evaluated for its calendar date."""
        form = parse_form_data("overtime", {"date": value, "hours": 2})

        assert form.date == date(2026, 3, 12)

    def test_overtime_malformed_date_is_client_error(self) -> None:
        """A malformed date raises ValidationError naming the field."""
        with pytest.raises(ValidationError) as exc_info:
            parse_form_data("overtime", {"date": "10/03/2026", "hours": 1})
        assert exc_info.value.field == "form_data.date"

    def test_business_trip_form_keeps_extra_fields(self) -> None:
        """Unknown keys are preserved on the typed model."""
        form = parse_form_data("business_trip", {"destination": "Tainan", "budget": 12000})
        assert isinstance(form, BusinessTripFormData)
        assert form.model_extra == {"budget": 12000}

    def test_form_type_in_payload_is_ignored(self) -> None:
        """A conflicting form_type inside form_data does not override the request's form type."""
        form = parse_form_data("leave", {"form_type": "overtime", "leave_type": "annual", "days": 1})
        assert isinstance(form, LeaveFormData)

    def test_unknown_form_type(self) -> None:
        """Unsupported form types are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            parse_form_data("expense", {})
        assert exc_info.value.field == "form_type"


def test_format_quantity() -> None:
    """Whole numbers render without a decimal point."""
    assert format_quantity(3.0) == "3"
    assert format_quantity(2.5) == "2.5"
