"""Test fixtures for labor-compliance-engine.

Provides:
- organization_id / user_id: Fixed identifiers
- fixed_now / clock: A deterministic Asia/Taipei clock
- mock_balance_reader: AsyncMock ILeaveBalanceReader
- mock_ledger_reader: AsyncMock IOvertimeLedgerReader (0 hours by default)
- mock_knowledge_reader: AsyncMock IKnowledgeReader with one entry and a holiday calendar
- mock_model_client: AsyncMock ILanguageModelClient answering "no issues"
- mock_check_repo: AsyncMock IComplianceCheckRepository capturing append_many() calls

Helper factories (make_*) build collaborator data and mock sessions for individual tests.
"""

import json
import uuid
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest

from labor_compliance_engine.core.records import LeaveBalanceRecord, RuleKnowledgeEntry

TAIPEI = ZoneInfo("Asia/Taipei")


def make_balance(
    user_id: str = "user_123",
    organization_id: str = "org_456",
    year: int = 2026,
    totals: dict[str, float | None] | None = None,
    used: dict[str, float | None] | None = None,
    family_care_hours_total: float | None = None,
    family_care_hours_used: float | None = None,
) -> LeaveBalanceRecord:
    """Create a LeaveBalanceRecord for evaluator tests."""
    return LeaveBalanceRecord(
        user_id=user_id,
        organization_id=organization_id,
        year=year,
        totals=totals or {},
        used=used or {},
        family_care_hours_total=family_care_hours_total,
        family_care_hours_used=family_care_hours_used,
    )


def make_knowledge_entry(
    title: str = "Monthly overtime cap",
    category: str = "overtime",
    article_number: str | None = "LSA Art. 32",
    content: str = "Overtime may not exceed 46 hours per month.",
    content_zh: str | None = "每月延長工時不得超過46小時。",
    metadata: dict[str, Any] | None = None,
) -> RuleKnowledgeEntry:
    """Create a RuleKnowledgeEntry."""
    return RuleKnowledgeEntry(
        title=title,
        category=category,
        article_number=article_number,
        content=content,
        content_zh=content_zh,
        metadata=metadata or {},
    )


def make_holiday_entry(holidays: Sequence[str], year: int = 2026) -> RuleKnowledgeEntry:
    """Create the LSA Art. 37 holiday calendar entry."""
    return make_knowledge_entry(
        title="National holidays",
        category="general",
        article_number="LSA Art. 37",
        content="Holidays prescribed by the central competent authority shall be days off.",
        metadata={f"holidays_{year}": list(holidays)},
    )


def make_model_response(
    issues: list[dict[str, Any]] | None = None,
    summary_en: str = "No compliance issues found.",
    summary_zh: str = "未發現合規問題。",
) -> str:
    """Render a model answer in the expected JSON shape."""
    return json.dumps(
        {"summary_en": summary_en, "summary_zh": summary_zh, "issues": issues or []},
        ensure_ascii=False,
    )


def make_fake_check_record(
    organization_id: str = "org_456",
    user_id: str = "user_123",
    check_type: str = "leave_balance",
    status: str = "pass",
    submission_id: str | None = None,
) -> MagicMock:
    """Create a fake ComplianceCheckRecord ORM object."""
    record = MagicMock()
    record.id = uuid.uuid4()
    record.organization_id = organization_id
    record.user_id = user_id
    record.submission_id = submission_id
    record.check_type = check_type
    record.status = status
    record.rule_reference = "Leave Balance Check"
    record.message = "Leave balance sufficient."
    record.message_zh = "假期餘額充足。"
    record.details = {"requested": 1.0}
    record.created_at = datetime.now(UTC)
    return record


def make_mock_session(result: MagicMock | None = None) -> AsyncMock:
    """Create a mock AsyncSession whose begin_nested() is an async context manager."""
    session = AsyncMock()
    savepoint = MagicMock()
    savepoint.__aenter__.return_value = savepoint
    savepoint.__aexit__.return_value = False
    session.begin_nested = MagicMock(return_value=savepoint)
    session.add_all = MagicMock()
    if result is not None:
        session.execute.return_value = result
    return session


@pytest.fixture()
def organization_id() -> str:
    """Return a fixed organization ID."""
    return "org_456"


@pytest.fixture()
def user_id() -> str:
    """Return a fixed user ID."""
    return "user_123"


@pytest.fixture()
def fixed_now() -> datetime:
    """Return a fixed Taipei-local time: Tuesday 2026-03-10 09:30."""
    return datetime(2026, 3, 10, 9, 30, tzinfo=TAIPEI)


@pytest.fixture()
def clock(fixed_now: datetime) -> Callable[[], datetime]:
    """Return a clock that always reads fixed_now."""
    return lambda: fixed_now


@pytest.fixture()
def mock_balance_reader() -> AsyncMock:
    """Create a mock balance reader with a default 2026 balance (all defaults, nothing used)."""
    reader = AsyncMock()
    reader.get_balance.return_value = make_balance()
    return reader


@pytest.fixture()
def mock_ledger_reader() -> AsyncMock:
    """Create a mock ledger reader reporting no existing overtime."""
    reader = AsyncMock()
    reader.sum_overtime_hours.return_value = 0.0
    return reader


@pytest.fixture()
def mock_knowledge_reader() -> AsyncMock:
    """Create a mock knowledge reader with one rule entry and a 2026 holiday calendar."""
    reader = AsyncMock()
    reader.list_active.return_value = [make_knowledge_entry()]
    reader.get_active_by_article.return_value = make_holiday_entry(["2026-01-01", "2026-10-10"])
    return reader


@pytest.fixture()
def mock_model_client() -> AsyncMock:
    """Create a mock model client that reports no issues."""
    client = AsyncMock()
    client.complete.return_value = make_model_response()
    return client


@pytest.fixture()
def mock_check_repo() -> AsyncMock:
    """Create a mock check repository whose append_many() returns the batch size."""
    repo = AsyncMock()
    repo.append_many.side_effect = lambda records: len(records)
    repo.query.return_value = []
    return repo
