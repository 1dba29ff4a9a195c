"""Overtime limit evaluator.

Emits up to three items per overtime request:
- daily_overtime_limit  — blocked above 4 hours (8 regular + 4 overtime = 12h ceiling)
- monthly_overtime_cap  — projected month total against 46h (standard) / 54h (extended)
- holiday_overtime      — warning when the date is a national holiday

The monthly total is recomputed from the ledger on every request; there is no
running counter. A failed ledger or holiday lookup omits only that item.
"""

import calendar
from datetime import date

from labor_compliance_engine.core.forms import OvertimeFormData, format_quantity
from labor_compliance_engine.core.interfaces import IOvertimeLedgerReader
from labor_compliance_engine.core.knowledge import KnowledgeStoreAccessor
from labor_compliance_engine.core.results import (
    STATUS_BLOCKED,
    STATUS_PASS,
    STATUS_WARNING,
    CategoryEvaluation,
    ComplianceCheckItem,
    EvaluatorOutput,
)
from labor_compliance_engine.errors import CollaboratorError
from labor_compliance_engine.observability import get_logger

logger = get_logger(__name__)

MAX_DAILY_OVERTIME_HOURS = 4.0
MAX_DAILY_TOTAL_HOURS = 12.0
MONTHLY_LIMIT_STANDARD = 46.0
MONTHLY_LIMIT_EXTENDED = 54.0
HOLIDAY_PAY_RATE = 2.0


def month_bounds(day: date) -> tuple[date, date]:
    """Return the first and last day of the calendar month containing `day`."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


class OvertimeLimitEvaluator:
    """Evaluates overtime requests against daily, monthly, and holiday rules.

    Args:
        ledger_reader: Reader implementing IOvertimeLedgerReader.
        knowledge: Knowledge store accessor used for the holiday calendar.
    """

    def __init__(
        self,
        ledger_reader: IOvertimeLedgerReader,
        knowledge: KnowledgeStoreAccessor,
    ) -> None:
        self._ledger_reader = ledger_reader
        self._knowledge = knowledge

    async def evaluate(
        self,
        form: OvertimeFormData,
        user_id: str,
        organization_id: str,
    ) -> EvaluatorOutput:
        """Evaluate one overtime request.

        Args:
            form: Parsed overtime form.
            user_id: Requesting user.
            organization_id: The user's organization.

        Returns:
            Items in daily, monthly, holiday order plus one evaluation per category.
        """
        items: list[ComplianceCheckItem] = [self._daily_limit(form.hours)]
        evaluations: list[CategoryEvaluation] = [CategoryEvaluation.ran("daily_overtime_limit")]

        if form.date is None:
            evaluations.append(CategoryEvaluation.not_applicable("monthly_overtime_cap", "no_date"))
            evaluations.append(CategoryEvaluation.not_applicable("holiday_overtime", "no_date"))
            return EvaluatorOutput(items=tuple(items), evaluations=tuple(evaluations))

        monthly_item, monthly_evaluation = await self._monthly_cap(
            form.date, form.hours, user_id, organization_id
        )
        if monthly_item is not None:
            items.append(monthly_item)
        evaluations.append(monthly_evaluation)

        holiday_item, holiday_evaluation = await self._holiday(form.date)
        if holiday_item is not None:
            items.append(holiday_item)
        evaluations.append(holiday_evaluation)

        return EvaluatorOutput(items=tuple(items), evaluations=tuple(evaluations))

    def _daily_limit(self, hours: float) -> ComplianceCheckItem:
        if hours > MAX_DAILY_OVERTIME_HOURS:
            return ComplianceCheckItem(
                check_type="daily_overtime_limit",
                status=STATUS_BLOCKED,
                rule_reference="LSA Art. 32 - Daily Overtime Limit",
                message=(
                    f"Overtime exceeds 4-hour daily limit. Requested: {format_quantity(hours)} hours. "
                    "Total work day would exceed the 12-hour maximum."
                ),
                message_localized=(
                    f"加班時數超過每日上限4小時。申請 {format_quantity(hours)} 小時，"
                    "工作日總時數將超過12小時上限。"
                ),
                details={
                    "requested_hours": hours,
                    "max_daily_overtime": MAX_DAILY_OVERTIME_HOURS,
                    "max_daily_total": MAX_DAILY_TOTAL_HOURS,
                },
            )
        return ComplianceCheckItem(
            check_type="daily_overtime_limit",
            status=STATUS_PASS,
            rule_reference="LSA Art. 32",
            message=f"Daily overtime within limit ({format_quantity(hours)}/4 hours).",
            message_localized=f"每日加班時數符合規定（{format_quantity(hours)}/4 小時）。",
            details={
                "requested_hours": hours,
                "max_daily_overtime": MAX_DAILY_OVERTIME_HOURS,
                "max_daily_total": MAX_DAILY_TOTAL_HOURS,
            },
        )

    async def _monthly_cap(
        self,
        overtime_date: date,
        hours: float,
        user_id: str,
        organization_id: str,
    ) -> tuple[ComplianceCheckItem | None, CategoryEvaluation]:
        period_start, period_end = month_bounds(overtime_date)
        try:
            existing = await self._ledger_reader.sum_overtime_hours(
                user_id, organization_id, period_start, period_end
            )
        except CollaboratorError as exc:
            logger.warning(
                "Overtime ledger query failed, skipping monthly cap check",
                user_id=user_id,
                organization_id=organization_id,
                period_start=period_start.isoformat(),
                error=exc.message,
            )
            return None, CategoryEvaluation.failed("monthly_overtime_cap", "ledger_query_failed")

        projected = existing + hours
        details = {
            "existing_hours": existing,
            "requested": hours,
            "projected": projected,
            "limit_standard": MONTHLY_LIMIT_STANDARD,
            "limit_extended": MONTHLY_LIMIT_EXTENDED,
        }

        if projected > MONTHLY_LIMIT_STANDARD:
            status = STATUS_BLOCKED if projected > MONTHLY_LIMIT_EXTENDED else STATUS_WARNING
            item = ComplianceCheckItem(
                check_type="monthly_overtime_cap",
                status=status,
                rule_reference="LSA Art. 32 - Monthly Overtime Cap",
                message=(
                    f"Monthly overtime will reach {format_quantity(projected)} hours "
                    f"(existing: {format_quantity(existing)}h + new: {format_quantity(hours)}h). "
                    "Standard limit: 46h/month. Extended limit (with consent): 54h/month."
                ),
                message_localized=(
                    f"本月加班將達 {format_quantity(projected)} 小時"
                    f"（已有 {format_quantity(existing)}h + 新增 {format_quantity(hours)}h）。"
                    "標準上限：46小時/月。經同意延長上限：54小時/月。"
                ),
                details=details,
            )
        else:
            item = ComplianceCheckItem(
                check_type="monthly_overtime_cap",
                status=STATUS_PASS,
                rule_reference="LSA Art. 32",
                message=f"Monthly overtime within limit. Projected: {format_quantity(projected)}/46 hours.",
                message_localized=f"本月加班時數符合規定。預計：{format_quantity(projected)}/46 小時。",
                details=details,
            )
        return item, CategoryEvaluation.ran("monthly_overtime_cap")

    async def _holiday(self, overtime_date: date) -> tuple[ComplianceCheckItem | None, CategoryEvaluation]:
        try:
            holidays = await self._knowledge.holiday_dates(overtime_date.year)
        except CollaboratorError as exc:
            logger.warning(
                "Holiday calendar lookup failed, skipping holiday check",
                date=overtime_date.isoformat(),
                error=exc.message,
            )
            return None, CategoryEvaluation.failed("holiday_overtime", "holiday_lookup_failed")

        if holidays is None:
            return None, CategoryEvaluation.not_applicable("holiday_overtime", "no_holiday_calendar")

        if overtime_date not in holidays:
            return None, CategoryEvaluation.ran("holiday_overtime")

        iso_date = overtime_date.isoformat()
        item = ComplianceCheckItem(
            check_type="holiday_overtime",
            status=STATUS_WARNING,
            rule_reference="LSA Art. 39 - Holiday Overtime",
            message=(
                f"{iso_date} is a national holiday. Overtime requires employee consent "
                "and must be paid at double rate (200%)."
            ),
            message_localized=f"{iso_date} 為國定假日。加班需經勞工同意，且須加倍發給工資（200%）。",
            details={"date": iso_date, "is_holiday": True, "required_rate": HOLIDAY_PAY_RATE},
        )
        return item, CategoryEvaluation.ran("holiday_overtime")
