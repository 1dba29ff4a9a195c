"""SQLAlchemy repositories for the compliance engine.

Each repository implements the corresponding protocol from core/interfaces.py.

Every read runs inside a savepoint: a failed statement rolls back to the
savepoint, so the request's session stays usable for the remaining checks and
the audit write. Read failures, including rows that cannot be converted to
snapshots, surface as CollaboratorError so the evaluators can degrade a single
check instead of failing the request.

Repositories:
- LeaveBalanceRepository        — leave_balances (read-only)
- OvertimeLedgerRepository      — workflow_submissions (read-only aggregate)
- KnowledgeRepository           — compliance_knowledge (read-only)
- ComplianceCheckRepository     — compliance_checks (append-only + query)
"""

from collections.abc import Sequence
from datetime import date

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from labor_compliance_engine.core.forms import parse_number
from labor_compliance_engine.core.models import (
    ComplianceCheckRecord,
    ComplianceKnowledge,
    LeaveBalance,
    WorkflowSubmission,
)
from labor_compliance_engine.core.records import LEAVE_CATEGORIES, LeaveBalanceRecord, RuleKnowledgeEntry
from labor_compliance_engine.errors import AuditWriteError, CollaboratorError
from labor_compliance_engine.observability import get_logger

logger = get_logger(__name__)

# Submission statuses that count against the monthly overtime cap
LEDGER_STATUSES: tuple[str, ...] = ("pending", "approved")

_READ_ERRORS = (SQLAlchemyError, PydanticValidationError)


class LeaveBalanceRepository:
    """Reads leave balances.

    Args:
        session: The SQLAlchemy async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_balance(
        self,
        user_id: str,
        organization_id: str,
        year: int,
    ) -> LeaveBalanceRecord | None:
        """Fetch the balance row for (user, organization, year).

        Returns:
            The balance snapshot, or None when no row exists.

        Raises:
            CollaboratorError: If the query fails or the row is malformed.
        """
        stmt = (
            select(LeaveBalance)
            .where(
                LeaveBalance.user_id == user_id,
                LeaveBalance.organization_id == organization_id,
                LeaveBalance.year == year,
            )
            .limit(1)
        )
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(stmt)
                row = result.scalar_one_or_none()
                return _balance_to_record(row) if row is not None else None
        except _READ_ERRORS as exc:
            raise CollaboratorError("leave_balances", str(exc)) from exc


class OvertimeLedgerRepository:
    """Aggregates overtime hours from workflow submissions.

    Submissions are matched on the overtime date recorded in form_data, not
    on when they were created. Only the first 10 characters (yyyy-mm-dd) are
    compared, so values stored with a time part still count.

    Args:
        session: The SQLAlchemy async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def sum_overtime_hours(
        self,
        user_id: str,
        organization_id: str,
        period_start: date,
        period_end: date,
    ) -> float:
        """Sum form_data.hours over pending and approved overtime in the period.

        Hours that are not numeric count as zero.

        Raises:
            CollaboratorError: If the query fails.
        """
        overtime_date = func.substr(WorkflowSubmission.form_data["date"].astext, 1, 10)
        stmt = select(WorkflowSubmission.form_data).where(
            WorkflowSubmission.organization_id == organization_id,
            WorkflowSubmission.user_id == user_id,
            WorkflowSubmission.form_type == "overtime",
            WorkflowSubmission.status.in_(LEDGER_STATUSES),
            overtime_date >= period_start.isoformat(),
            overtime_date <= period_end.isoformat(),
        )
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(stmt)
                rows = list(result.scalars())
        except SQLAlchemyError as exc:
            raise CollaboratorError("workflow_submissions", str(exc)) from exc

        return sum((parse_number(_hours_of(form_data)) for form_data in rows), 0.0)


class KnowledgeRepository:
    """Reads active compliance knowledge entries.

    Args:
        session: The SQLAlchemy async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_active(self, categories: Sequence[str], limit: int) -> list[RuleKnowledgeEntry]:
        """List active entries in any of `categories`, ordered by article number.

        Raises:
            CollaboratorError: If the query fails or a row is malformed.
        """
        stmt = (
            select(ComplianceKnowledge)
            .where(
                ComplianceKnowledge.is_active.is_(True),
                or_(*(ComplianceKnowledge.category == category for category in categories)),
            )
            .order_by(ComplianceKnowledge.article_number, ComplianceKnowledge.title)
            .limit(limit)
        )
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(stmt)
                return [_knowledge_to_entry(row) for row in result.scalars().all()]
        except _READ_ERRORS as exc:
            raise CollaboratorError("compliance_knowledge", str(exc)) from exc

    async def get_active_by_article(self, article_number: str) -> RuleKnowledgeEntry | None:
        """Fetch the most recently updated active entry for an article.

        Raises:
            CollaboratorError: If the query fails or the row is malformed.
        """
        stmt = (
            select(ComplianceKnowledge)
            .where(
                ComplianceKnowledge.article_number == article_number,
                ComplianceKnowledge.is_active.is_(True),
            )
            .order_by(ComplianceKnowledge.updated_at.desc())
            .limit(1)
        )
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(stmt)
                row = result.scalar_one_or_none()
                return _knowledge_to_entry(row) if row is not None else None
        except _READ_ERRORS as exc:
            raise CollaboratorError("compliance_knowledge", str(exc)) from exc


class ComplianceCheckRepository:
    """Append-only repository for compliance check records.

    It has no update() or delete() methods: check records are permanent.

    Args:
        session: The SQLAlchemy async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append_many(self, records: Sequence[ComplianceCheckRecord]) -> int:
        """Insert all records and commit them.

        The batch is committed here, so a successful return means the records
        are durable. On failure the session is rolled back, leaving no partial
        batch behind and a clean session for a retry.

        Raises:
            AuditWriteError: If the insert or the commit fails.
        """
        try:
            self._session.add_all(records)
            await self._session.flush()
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise AuditWriteError(f"Failed to write {len(records)} compliance check records: {exc}") from exc
        return len(records)

    async def query(
        self,
        organization_id: str,
        submission_id: str | None = None,
        user_id: str | None = None,
        limit: int = 50,
    ) -> list[ComplianceCheckRecord]:
        """Return the most recent records for an organization, newest first.

        Raises:
            CollaboratorError: If the query fails.
        """
        stmt = select(ComplianceCheckRecord).where(ComplianceCheckRecord.organization_id == organization_id)
        if submission_id:
            stmt = stmt.where(ComplianceCheckRecord.submission_id == submission_id)
        if user_id:
            stmt = stmt.where(ComplianceCheckRecord.user_id == user_id)
        stmt = stmt.order_by(ComplianceCheckRecord.created_at.desc()).limit(limit)

        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise CollaboratorError("compliance_checks", str(exc)) from exc
        return list(result.scalars().all())


def _hours_of(form_data: object) -> object:
    return form_data.get("hours") if isinstance(form_data, dict) else None


def _balance_to_record(row: LeaveBalance) -> LeaveBalanceRecord:
    """Convert a LeaveBalance row to a LeaveBalanceRecord snapshot."""
    return LeaveBalanceRecord(
        user_id=row.user_id,
        organization_id=row.organization_id,
        year=row.year,
        totals={category: getattr(row, f"{category}_total") for category in LEAVE_CATEGORIES},
        used={category: getattr(row, f"{category}_used") for category in LEAVE_CATEGORIES},
        family_care_hours_total=row.family_care_hours_total,
        family_care_hours_used=row.family_care_hours_used,
    )


def _knowledge_to_entry(row: ComplianceKnowledge) -> RuleKnowledgeEntry:
    """Convert a ComplianceKnowledge row to a RuleKnowledgeEntry snapshot."""
    return RuleKnowledgeEntry(
        title=row.title,
        content=row.content or "",
        content_zh=row.content_zh,
        article_number=row.article_number,
        category=row.category,
        metadata=row.metadata_ or {},
        is_active=row.is_active,
    )
