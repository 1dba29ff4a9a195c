"""Abstract interfaces (Protocol classes) for the compliance engine.

Defines the contracts between the core layer and the adapter layer. Evaluators,
the AI adapter, and the audit sink depend on these protocols, never on
concrete adapters, so every external dependency can be replaced by a fake.

Protocols defined:
- ILeaveBalanceReader
- IOvertimeLedgerReader
- IKnowledgeReader
- ILanguageModelClient
- IComplianceCheckRepository

Read protocols raise CollaboratorError on failure; the model client raises
ModelClientError; the check repository raises AuditWriteError on writes.
"""

from collections.abc import Sequence
from datetime import date
from typing import Protocol

from labor_compliance_engine.core.models import ComplianceCheckRecord
from labor_compliance_engine.core.records import LeaveBalanceRecord, RuleKnowledgeEntry


class ILeaveBalanceReader(Protocol):
    """Read access to leave balances (owned by the balance subsystem)."""

    async def get_balance(
        self,
        user_id: str,
        organization_id: str,
        year: int,
    ) -> LeaveBalanceRecord | None:
        """Fetch the leave balance for a user in an organization for a year.

        Args:
            user_id: The employee's user ID.
            organization_id: The organization ID.
            year: Calendar year.

        Returns:
            The balance snapshot, or None if no record exists.

        Raises:
            CollaboratorError: If the lookup fails.
        """
        ...


class IOvertimeLedgerReader(Protocol):
    """Read access to overtime hours already requested."""

    async def sum_overtime_hours(
        self,
        user_id: str,
        organization_id: str,
        period_start: date,
        period_end: date,
    ) -> float:
        """Sum hours over the user's pending and approved overtime submissions.

        Args:
            user_id: The employee's user ID.
            organization_id: The organization ID.
            period_start: First day of the period (inclusive).
            period_end: Last day of the period (inclusive).

        Returns:
            Total overtime hours in the period.

        Raises:
            CollaboratorError: If the query fails.
        """
        ...


class IKnowledgeReader(Protocol):
    """Read access to active compliance knowledge entries."""

    async def list_active(
        self,
        categories: Sequence[str],
        limit: int,
    ) -> list[RuleKnowledgeEntry]:
        """List active entries in any of the given categories.

        Args:
            categories: Category names to match.
            limit: Maximum number of entries.

        Returns:
            Matching active entries.

        Raises:
            CollaboratorError: If the query fails.
        """
        ...

    async def get_active_by_article(self, article_number: str) -> RuleKnowledgeEntry | None:
        """Fetch one active entry by article number.

        Raises:
            CollaboratorError: If the query fails.
        """
        ...


class ILanguageModelClient(Protocol):
    """Language model completion service."""

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one system + user message pair and return the response text.

        Raises:
            ModelClientError: If the model cannot be reached or rejects the call.
        """
        ...


class IComplianceCheckRepository(Protocol):
    """Append-only persistence for compliance check records."""

    async def append_many(self, records: Sequence[ComplianceCheckRecord]) -> int:
        """Persist and commit all records as one batch.

        Args:
            records: Unsaved ComplianceCheckRecord instances.

        Returns:
            Number of records written.

        Raises:
            AuditWriteError: If the batch could not be written. No record of
                the batch is persisted in that case.
        """
        ...

    async def query(
        self,
        organization_id: str,
        submission_id: str | None = None,
        user_id: str | None = None,
        limit: int = 50,
    ) -> list[ComplianceCheckRecord]:
        """Return the most recent records, newest first.

        Raises:
            CollaboratorError: If the query fails.
        """
        ...
