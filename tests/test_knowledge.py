"""Tests for KnowledgeStoreAccessor and RuleKnowledgeEntry calendar parsing."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from labor_compliance_engine.core.knowledge import KnowledgeStoreAccessor, category_for_form_type
from labor_compliance_engine.core.records import RuleKnowledgeEntry
from labor_compliance_engine.errors import CollaboratorError
from tests.conftest import make_holiday_entry, make_knowledge_entry


@pytest.mark.parametrize(
    ("form_type", "expected"),
    [("leave", "leave"), ("overtime", "overtime"), ("business_trip", "general")],
)
def test_category_for_form_type(form_type: str, expected: str) -> None:
    """Form types map to their own category; business trips use general."""
    assert category_for_form_type(form_type) == expected


class TestEntriesForFormType:
    """Tests for RAG retrieval."""

    @pytest.mark.asyncio()
    async def test_includes_universal_categories(self, mock_knowledge_reader: AsyncMock) -> None:
        """Leave retrieval asks for leave, general, and salary entries."""
        accessor = KnowledgeStoreAccessor(mock_knowledge_reader)

        await accessor.entries_for_form_type("leave", limit=10)

        mock_knowledge_reader.list_active.assert_awaited_once_with(["leave", "general", "salary"], 10)

    @pytest.mark.asyncio()
    async def test_business_trip_does_not_repeat_general(self, mock_knowledge_reader: AsyncMock) -> None:
        """The general category is requested once for business trips."""
        accessor = KnowledgeStoreAccessor(mock_knowledge_reader)

        await accessor.entries_for_form_type("business_trip", limit=5)

        mock_knowledge_reader.list_active.assert_awaited_once_with(["general", "salary"], 5)

    @pytest.mark.asyncio()
    async def test_filters_inactive_and_truncates(self, mock_knowledge_reader: AsyncMock) -> None:
        """Inactive entries are dropped and the result never exceeds the limit."""
        inactive = RuleKnowledgeEntry(title="Repealed", category="overtime", is_active=False)
        mock_knowledge_reader.list_active.return_value = [
            make_knowledge_entry(title="A"),
            inactive,
            make_knowledge_entry(title="B"),
            make_knowledge_entry(title="C"),
        ]
        accessor = KnowledgeStoreAccessor(mock_knowledge_reader)

        entries = await accessor.entries_for_form_type("overtime", limit=2)

        assert [entry.title for entry in entries] == ["A", "B"]

    @pytest.mark.asyncio()
    async def test_reader_errors_propagate(self, mock_knowledge_reader: AsyncMock) -> None:
        """Lookup failures are left to the caller to degrade."""
        mock_knowledge_reader.list_active.side_effect = CollaboratorError("compliance_knowledge", "down")
        accessor = KnowledgeStoreAccessor(mock_knowledge_reader)

        with pytest.raises(CollaboratorError):
            await accessor.entries_for_form_type("leave", limit=10)


class TestHolidayCalendar:
    """Tests for the holiday calendar lookup."""

    @pytest.mark.asyncio()
    async def test_returns_dates_for_year(self, mock_knowledge_reader: AsyncMock) -> None:
        """Listed ISO dates are returned as date objects."""
        accessor = KnowledgeStoreAccessor(mock_knowledge_reader)

        holidays = await accessor.holiday_dates(2026)

        assert holidays == frozenset({date(2026, 1, 1), date(2026, 10, 10)})

    @pytest.mark.asyncio()
    async def test_no_calendar_entry(self, mock_knowledge_reader: AsyncMock) -> None:
        """No active LSA Art. 37 entry means no calendar."""
        mock_knowledge_reader.get_active_by_article.return_value = None
        accessor = KnowledgeStoreAccessor(mock_knowledge_reader)

        assert await accessor.holiday_dates(2026) is None

    def test_invalid_dates_are_ignored(self) -> None:
        """Malformed calendar values are skipped rather than failing the check."""
        entry = make_holiday_entry(["2026-02-28", "not-a-date", "2026-13-01"])

        assert entry.holiday_dates(2026) == frozenset({date(2026, 2, 28)})

    def test_other_year_has_no_calendar(self) -> None:
        """A year without a holidays_<year> list yields None."""
        entry = make_holiday_entry(["2026-01-01"], year=2026)

        assert entry.holiday_dates(2025) is None
