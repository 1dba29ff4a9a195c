"""Read-only snapshots of collaborator data consumed by the evaluators.

Repositories convert ORM rows into these frozen models so that evaluators and
tests never depend on a live session or lazy-loaded attributes.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Leave categories with a balance in LeaveBalanceRecord
LEAVE_CATEGORIES: tuple[str, ...] = (
    "annual",
    "sick",
    "personal",
    "family_care",
    "marriage",
    "maternity",
    "paternity",
    "bereavement",
)

# Statutory default entitlement in days, used when a balance row leaves the total unset
DEFAULT_LEAVE_TOTALS: dict[str, float] = {
    "annual": 7,
    "sick": 30,
    "personal": 14,
    "family_care": 7,
    "marriage": 8,
    "maternity": 56,
    "paternity": 7,
    "bereavement": 8,
}


class LeaveEntitlement(BaseModel):
    """Total and used days for one leave category."""

    model_config = ConfigDict(frozen=True)

    category: str
    total: float
    used: float

    @property
    def available(self) -> float:
        return self.total - self.used


class LeaveBalanceRecord(BaseModel):
    """Leave balance snapshot for one user, organization, and year.

    `totals` and `used` are keyed by category name from LEAVE_CATEGORIES.
    Missing or zero totals fall back to DEFAULT_LEAVE_TOTALS; missing used
    values count as zero. used <= total is NOT enforced here; the evaluator
    reports violations, it never corrects them.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    organization_id: str
    year: int
    totals: dict[str, float | None] = Field(default_factory=dict)
    used: dict[str, float | None] = Field(default_factory=dict)
    family_care_hours_total: float | None = None
    family_care_hours_used: float | None = None

    def entitlement(self, category: str) -> LeaveEntitlement:
        """Resolve total/used days for a category, applying statutory defaults.

        Unknown categories resolve to a zero entitlement.
        """
        total = self.totals.get(category) or DEFAULT_LEAVE_TOTALS.get(category, 0)
        used = self.used.get(category) or 0
        return LeaveEntitlement(category=category, total=float(total), used=float(used))


class RuleKnowledgeEntry(BaseModel):
    """A regulation entry from the compliance knowledge store."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str = ""
    content_zh: str | None = None
    article_number: str | None = None
    category: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True

    def holiday_dates(self, year: int) -> frozenset[date] | None:
        """Return the holiday calendar for `year` from metadata, if present.

        The calendar is stored as `holidays_<year>`: a list of ISO dates.
        Entries that are not valid ISO dates are ignored.

        Returns:
            The set of holiday dates, or None when the entry has no list for the year.
        """
        raw = self.metadata.get(f"holidays_{year}")
        if not isinstance(raw, list):
            return None
        holidays: set[date] = set()
        for value in raw:
            try:
                holidays.add(date.fromisoformat(str(value)))
            except ValueError:
                continue
        return frozenset(holidays)
