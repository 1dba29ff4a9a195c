"""Typed form data for each workflow form type.

Submissions arrive with an untyped `form_data` map. parse_form_data() turns
it into exactly one of LeaveFormData, OvertimeFormData, or
BusinessTripFormData, once, at the service boundary. Evaluators only ever see
the typed models.

Numeric fields (days, hours) are lenient: a leading number is taken from
strings like "3 days", anything else becomes 0. Dates are strict: a malformed
date is a client error.
"""

import datetime
import math
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from labor_compliance_engine.errors import ValidationError

FormType = Literal["leave", "overtime", "business_trip"]

FORM_TYPES: tuple[str, ...] = ("leave", "overtime", "business_trip")

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)")


def parse_number(value: Any) -> float:
    """Parse a day/hour count, defaulting to 0 for anything non-numeric.

    Never raises.

    Args:
        value: Raw form value (number, numeric string, None, ...).

    Returns:
        The parsed finite float, or 0.0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value)) if value is not None else None
        if match is None:
            return 0.0
        number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


class _FormData(BaseModel):
    # Unknown keys are kept so the AI step sees the whole submission
    model_config = ConfigDict(extra="allow", frozen=True)


class LeaveFormData(_FormData):
    """Leave request form."""

    form_type: Literal["leave"] = "leave"
    leave_type: str = ""
    days: float = 0.0
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    reason: str | None = None

    @field_validator("days", mode="before")
    @classmethod
    def _lenient_days(cls, value: Any) -> float:
        return parse_number(value)

    @field_validator("leave_type", mode="before")
    @classmethod
    def _leave_type_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class OvertimeFormData(_FormData):
    """Overtime request form."""

    form_type: Literal["overtime"] = "overtime"
    date: datetime.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    hours: float = 0.0
    reason: str | None = None

    @field_validator("hours", mode="before")
    @classmethod
    def _lenient_hours(cls, value: Any) -> float:
        return parse_number(value)

    @field_validator("date", mode="before")
    @classmethod
    def _date_part(cls, value: Any) -> Any:
        if value == "":
            return None
        # "2026-03-12T18:00:00" and "2026-03-12 18:00" keep only the date
        if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
            return value[:10]
        return value


class BusinessTripFormData(_FormData):
    """Business trip request form. Rule checks treat it as within normal parameters."""

    form_type: Literal["business_trip"] = "business_trip"
    destination: str | None = None
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    purpose: str | None = None


FormData = LeaveFormData | OvertimeFormData | BusinessTripFormData

_FORM_MODELS: dict[str, type[_FormData]] = {
    "leave": LeaveFormData,
    "overtime": OvertimeFormData,
    "business_trip": BusinessTripFormData,
}


def parse_form_data(form_type: str, form_data: dict[str, Any]) -> FormData:
    """Validate raw form data into the typed model for its form type.

    Args:
        form_type: leave | overtime | business_trip.
        form_data: Raw form payload.

    Returns:
        The typed form model.

    Raises:
        ValidationError: If the form type is unknown or a field is malformed.
    """
    model = _FORM_MODELS.get(form_type)
    if model is None:
        raise ValidationError(
            f"Unsupported form_type '{form_type}'. Expected one of: {', '.join(FORM_TYPES)}",
            field="form_type",
        )
    payload = {key: value for key, value in form_data.items() if key != "form_type"}
    try:
        return model.model_validate({**payload, "form_type": form_type})  # type: ignore[return-value]
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid form_data for {form_type}: {location}: {first.get('msg', 'invalid value')}",
            field=f"form_data.{location}" if location else "form_data",
        ) from exc


def format_quantity(value: float) -> str:
    """Format a day/hour count for messages: 3.0 -> "3", 2.5 -> "2.5"."""
    return f"{value:g}"
