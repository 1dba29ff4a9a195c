"""Leave balance evaluator.

Checks a leave request against the user's remaining entitlement for the
requested category and emits:
- leave_balance                — blocked when requested > available, else pass
- sick_leave_certificate       — warning for sick leave over 3 days
- attendance_bonus_protection  — informational pass for protected leave types

The evaluator never mutates a balance. Two concurrent requests can both pass
against the same balance; the approval step that decrements balances owns
that race.
"""

from datetime import date

from labor_compliance_engine.core.forms import LeaveFormData, format_quantity
from labor_compliance_engine.core.interfaces import ILeaveBalanceReader
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

# First match wins, so paternity (陪產) precedes maternity (產假)
_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("annual", ("特休", "annual")),
    ("sick", ("病假", "sick")),
    ("personal", ("事假", "personal")),
    ("family_care", ("家庭", "family")),
    ("marriage", ("婚假", "marriage")),
    ("paternity", ("陪產", "paternity")),
    ("maternity", ("產假", "maternity")),
    ("bereavement", ("喪假", "bereavement")),
)

_CATEGORY_NAMES_ZH: dict[str, str] = {
    "annual": "特休",
    "sick": "病假",
    "personal": "事假",
    "family_care": "家庭照顧假",
    "marriage": "婚假",
    "maternity": "產假",
    "paternity": "陪產假",
    "bereavement": "喪假",
}

# Full attendance bonus may not be deducted for these
PROTECTED_CATEGORIES: frozenset[str] = frozenset({"family_care", "marriage", "bereavement"})

UNKNOWN_CATEGORY = "unknown"

SICK_LEAVE_CERTIFICATE_THRESHOLD_DAYS = 3.0


def resolve_leave_category(leave_type: str) -> str:
    """Map free-text leave type to a balance category.

    Matching is case-insensitive substring matching against bilingual keywords.

    Args:
        leave_type: Leave type as entered, e.g. "Annual Leave" or "特休假".

    Returns:
        The category name, or "unknown" when nothing matches.
    """
    key = leave_type.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in key for keyword in keywords):
            return category
    return UNKNOWN_CATEGORY


class LeaveBalanceEvaluator:
    """Evaluates leave requests against leave balances.

    Args:
        balance_reader: Reader implementing ILeaveBalanceReader.
    """

    def __init__(self, balance_reader: ILeaveBalanceReader) -> None:
        self._balance_reader = balance_reader

    async def evaluate(
        self,
        form: LeaveFormData,
        user_id: str,
        organization_id: str,
        as_of: date,
    ) -> EvaluatorOutput:
        """Evaluate one leave request.

        The balance year is the calendar year of `as_of`. When no balance
        record exists the evaluator contributes no items and reports the
        leave_balance category as not evaluated; when the lookup fails it is
        reported as degraded.

        Args:
            form: Parsed leave form.
            user_id: Requesting user.
            organization_id: The user's organization.
            as_of: Evaluation date.

        Returns:
            Items and the leave_balance category evaluation.
        """
        try:
            balance = await self._balance_reader.get_balance(user_id, organization_id, as_of.year)
        except CollaboratorError as exc:
            logger.warning(
                "Leave balance lookup failed, skipping balance checks",
                user_id=user_id,
                organization_id=organization_id,
                year=as_of.year,
                error=exc.message,
            )
            return EvaluatorOutput(
                evaluations=(CategoryEvaluation.failed("leave_balance", "balance_lookup_failed"),),
            )

        if balance is None:
            logger.info(
                "No leave balance record, balance checks not evaluated",
                user_id=user_id,
                organization_id=organization_id,
                year=as_of.year,
            )
            return EvaluatorOutput(
                evaluations=(CategoryEvaluation.not_applicable("leave_balance", "no_balance_record"),),
            )

        category = resolve_leave_category(form.leave_type)
        entitlement = balance.entitlement(category)
        requested = form.days
        available = entitlement.available
        total = entitlement.total
        used = entitlement.used

        items: list[ComplianceCheckItem] = []
        details: dict[str, object] = {
            "requested": requested,
            "available": available,
            "total": total,
            "used": used,
        }
        if category == "family_care":
            details["hours_total"] = balance.family_care_hours_total
            details["hours_used"] = balance.family_care_hours_used

        if requested > available:
            name_zh = _CATEGORY_NAMES_ZH.get(category, form.leave_type)
            items.append(
                ComplianceCheckItem(
                    check_type="leave_balance",
                    status=STATUS_BLOCKED,
                    rule_reference="LSA Art. 38 / Leave Balance",
                    message=(
                        f"Insufficient {category} leave balance. "
                        f"Requested: {format_quantity(requested)} days, "
                        f"Available: {format_quantity(available)} days "
                        f"({format_quantity(used)}/{format_quantity(total)} used)."
                    ),
                    message_localized=(
                        f"{name_zh}餘額不足。申請 {format_quantity(requested)} 天，"
                        f"剩餘 {format_quantity(available)} 天"
                        f"（已使用 {format_quantity(used)}/{format_quantity(total)}）。"
                    ),
                    details=details,
                )
            )
        else:
            items.append(
                ComplianceCheckItem(
                    check_type="leave_balance",
                    status=STATUS_PASS,
                    rule_reference="Leave Balance Check",
                    message=(
                        f"Leave balance sufficient. Requesting {format_quantity(requested)} "
                        f"of {format_quantity(available)} available days."
                    ),
                    message_localized=(
                        f"假期餘額充足。申請 {format_quantity(requested)} 天，"
                        f"剩餘 {format_quantity(available)} 天。"
                    ),
                    details=details,
                )
            )

        if category == "sick" and requested > SICK_LEAVE_CERTIFICATE_THRESHOLD_DAYS:
            items.append(
                ComplianceCheckItem(
                    check_type="sick_leave_certificate",
                    status=STATUS_WARNING,
                    rule_reference="Labor Leave Rules Art. 4",
                    message="Sick leave exceeding 3 consecutive days requires a medical certificate.",
                    message_localized="連續請病假超過3天須檢附醫師證明。",
                    details={"days_requested": requested, "certificate_required": True},
                )
            )

        if category in PROTECTED_CATEGORIES:
            label = form.leave_type or category
            items.append(
                ComplianceCheckItem(
                    check_type="attendance_bonus_protection",
                    status=STATUS_PASS,
                    rule_reference="MOL 2025 Amendment - Full Attendance Bonus",
                    message=(
                        f"{label} is protected: Full Attendance Bonus cannot be deducted "
                        "for this leave type."
                    ),
                    message_localized=f"{label}受保護：此假別不得扣發全勤獎金。",
                    details={"protected": True, "leave_type": category},
                )
            )

        logger.debug(
            "Leave request evaluated",
            user_id=user_id,
            category=category,
            requested=requested,
            available=available,
            item_count=len(items),
        )
        return EvaluatorOutput(
            items=tuple(items),
            evaluations=(CategoryEvaluation.ran("leave_balance"),),
        )
