"""Knowledge store accessor.

Maps form types to knowledge categories and exposes the two lookups the
engine needs: the RAG context for the AI step and the statutory holiday
calendar for overtime checks.
"""

from datetime import date

from labor_compliance_engine.core.interfaces import IKnowledgeReader
from labor_compliance_engine.core.records import RuleKnowledgeEntry
from labor_compliance_engine.observability import get_logger

logger = get_logger(__name__)

# Categories included in every retrieval regardless of form type
UNIVERSAL_CATEGORIES: tuple[str, ...] = ("general", "salary")

# Article whose metadata carries holidays_<year> lists
HOLIDAY_CALENDAR_ARTICLE = "LSA Art. 37"

_FORM_TYPE_CATEGORIES: dict[str, str] = {
    "leave": "leave",
    "overtime": "overtime",
}


def category_for_form_type(form_type: str) -> str:
    """Return the knowledge category for a form type (general when unmapped)."""
    return _FORM_TYPE_CATEGORIES.get(form_type, "general")


class KnowledgeStoreAccessor:
    """Read-only lookups against the compliance knowledge store.

    Errors from the reader (CollaboratorError) propagate; callers decide how
    to degrade.

    Args:
        reader: Knowledge reader implementing IKnowledgeReader.
    """

    def __init__(self, reader: IKnowledgeReader) -> None:
        self._reader = reader

    async def entries_for_form_type(self, form_type: str, limit: int) -> list[RuleKnowledgeEntry]:
        """Retrieve active entries relevant to a form type.

        Matches the form type's own category plus the universal general and
        salary categories.

        Args:
            form_type: leave | overtime | business_trip.
            limit: Maximum number of entries.

        Returns:
            Up to `limit` active entries.
        """
        category = category_for_form_type(form_type)
        categories = [category, *(c for c in UNIVERSAL_CATEGORIES if c != category)]
        entries = await self._reader.list_active(categories, limit)
        logger.debug(
            "Knowledge entries retrieved",
            form_type=form_type,
            categories=categories,
            entry_count=len(entries),
        )
        return [entry for entry in entries if entry.is_active][:limit]

    async def holiday_dates(self, year: int) -> frozenset[date] | None:
        """Return the national holiday calendar for a year.

        Returns:
            Holiday dates, or None when no active calendar entry exists or the
            entry has no list for the year.
        """
        entry = await self._reader.get_active_by_article(HOLIDAY_CALENDAR_ARTICLE)
        if entry is None:
            return None
        return entry.holiday_dates(year)
