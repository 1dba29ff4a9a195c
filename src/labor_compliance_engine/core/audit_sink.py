"""Audit sink — persists every check item of a returned result.

One append-only ComplianceCheckRecord is written per item, pass items
included, all sharing the result's timestamp. A result's records are written
as a single batch: either all items are persisted or none are, so history
never shows a partial check.

Write failures are retried a bounded number of times, then logged and
reported back in AuditReport. They are never raised to the API caller.
"""

from dataclasses import dataclass
from datetime import datetime

from labor_compliance_engine.core.interfaces import IComplianceCheckRepository
from labor_compliance_engine.core.models import ComplianceCheckRecord
from labor_compliance_engine.core.results import ComplianceCheckResult
from labor_compliance_engine.errors import AuditWriteError
from labor_compliance_engine.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuditReport:
    """Outcome of persisting one result.

    Attributes:
        persisted: True when every item was written.
        records_written: Number of records written (0 or len(checks)).
        attempts: Write attempts made.
        error: Last error message when persisted is False.
    """

    persisted: bool
    records_written: int
    attempts: int
    error: str | None = None


class ComplianceAuditSink:
    """Writes compliance check records for returned results.

    Args:
        check_repo: Repository implementing IComplianceCheckRepository.
        max_attempts: Write attempts before giving up (at least 1).
    """

    def __init__(self, check_repo: IComplianceCheckRepository, max_attempts: int = 3) -> None:
        self._check_repo = check_repo
        self._max_attempts = max(1, max_attempts)

    async def record(
        self,
        result: ComplianceCheckResult,
        organization_id: str,
        user_id: str,
        checked_at: datetime,
        submission_id: str | None = None,
    ) -> AuditReport:
        """Persist one record per item of `result`.

        Args:
            result: The aggregated result exactly as returned to the caller.
            organization_id: Submitting organization.
            user_id: Submitting user.
            checked_at: Timestamp shared by all records of this result.
            submission_id: Optional submission the check belongs to.

        Returns:
            AuditReport describing what was written.
        """
        if not result.checks:
            return AuditReport(persisted=True, records_written=0, attempts=0)

        last_error: str | None = None
        for attempt in range(1, self._max_attempts + 1):
            records = [
                ComplianceCheckRecord(
                    organization_id=organization_id,
                    user_id=user_id,
                    submission_id=submission_id,
                    check_type=item.check_type,
                    status=item.status,
                    rule_reference=item.rule_reference,
                    message=item.message,
                    message_zh=item.message_localized,
                    details=dict(item.details),
                    created_at=checked_at,
                )
                for item in result.checks
            ]
            try:
                written = await self._check_repo.append_many(records)
            except AuditWriteError as exc:
                last_error = exc.message
                logger.warning(
                    "Compliance check audit write failed",
                    organization_id=organization_id,
                    user_id=user_id,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    error=exc.message,
                )
                continue

            logger.info(
                "Compliance check audit written",
                organization_id=organization_id,
                user_id=user_id,
                submission_id=submission_id,
                records_written=written,
                status=result.status,
            )
            return AuditReport(persisted=True, records_written=written, attempts=attempt)

        logger.error(
            "Compliance check audit records lost after retries",
            organization_id=organization_id,
            user_id=user_id,
            submission_id=submission_id,
            check_count=len(result.checks),
            error=last_error,
        )
        return AuditReport(
            persisted=False,
            records_written=0,
            attempts=self._max_attempts,
            error=last_error,
        )
