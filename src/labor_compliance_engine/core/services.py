"""Core business logic services for the compliance engine.

Two service classes:
- ComplianceCheckService: Validates one submission end to end and records the audit trail
- ComplianceHistoryService: Reads persisted compliance check records

Both services accept injected evaluators, adapters, and repositories through
their constructors and contain no framework code.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from labor_compliance_engine.api.schemas import (
    CategoryEvaluationResponse,
    ComplianceCheckHistoryResponse,
    ComplianceCheckItemResponse,
    ComplianceCheckRecordResponse,
    ComplianceCheckResponse,
    ComplianceEvaluationSummary,
)
from labor_compliance_engine.core.aggregator import ResultAggregator, business_trip_checks
from labor_compliance_engine.core.ai_adapter import AIAugmentationAdapter
from labor_compliance_engine.core.audit_sink import AuditReport, ComplianceAuditSink
from labor_compliance_engine.core.forms import (
    LeaveFormData,
    OvertimeFormData,
    parse_form_data,
)
from labor_compliance_engine.core.interfaces import IComplianceCheckRepository
from labor_compliance_engine.core.leave_evaluator import LeaveBalanceEvaluator
from labor_compliance_engine.core.models import ComplianceCheckRecord
from labor_compliance_engine.core.overtime_evaluator import OvertimeLimitEvaluator
from labor_compliance_engine.core.results import ComplianceCheckResult, EvaluatorOutput
from labor_compliance_engine.errors import ValidationError
from labor_compliance_engine.observability import get_logger

logger = get_logger(__name__)


def make_clock(timezone: str) -> Callable[[], datetime]:
    """Return a clock producing the current time in the given IANA zone."""
    zone = ZoneInfo(timezone)

    def _now() -> datetime:
        return datetime.now(zone)

    return _now


class ComplianceCheckService:
    """Validates workflow submissions against labor regulations.

    Runs the rule evaluator selected by form type, then the AI augmentation
    step, aggregates both into one result, and only then writes the audit
    trail, so persisted records always match the returned result.

    Steps run sequentially: evaluators and the AI adapter share one database
    session, which does not support concurrent use.

    Args:
        leave_evaluator: Leave balance evaluator.
        overtime_evaluator: Overtime limit evaluator.
        ai_adapter: AI augmentation adapter.
        audit_sink: Audit sink for check records.
        clock: Returns the current timezone-aware time.
        aggregator: Result aggregator (default ResultAggregator()).
    """

    def __init__(
        self,
        leave_evaluator: LeaveBalanceEvaluator,
        overtime_evaluator: OvertimeLimitEvaluator,
        ai_adapter: AIAugmentationAdapter,
        audit_sink: ComplianceAuditSink,
        clock: Callable[[], datetime],
        aggregator: ResultAggregator | None = None,
    ) -> None:
        self._leave_evaluator = leave_evaluator
        self._overtime_evaluator = overtime_evaluator
        self._ai_adapter = ai_adapter
        self._audit_sink = audit_sink
        self._clock = clock
        self._aggregator = aggregator or ResultAggregator()

    async def evaluate(
        self,
        form_type: str,
        form_data: dict[str, Any],
        user_id: str,
        organization_id: str,
    ) -> ComplianceCheckResult:
        """Evaluate a submission without writing the audit trail.

        Args:
            form_type: leave | overtime | business_trip.
            form_data: Raw form payload.
            user_id: Submitting user.
            organization_id: Submitting organization.

        Returns:
            The aggregated ComplianceCheckResult.

        Raises:
            ValidationError: If a required field is missing or form data is malformed.
        """
        if not form_type or form_data is None or not user_id or not organization_id:
            raise ValidationError("Missing required fields")
        if not isinstance(form_data, dict):
            raise ValidationError("form_data must be an object", field="form_data")

        form = parse_form_data(form_type, form_data)
        today = self._clock().date()

        rule_output: EvaluatorOutput
        if isinstance(form, LeaveFormData):
            rule_output = await self._leave_evaluator.evaluate(form, user_id, organization_id, as_of=today)
        elif isinstance(form, OvertimeFormData):
            rule_output = await self._overtime_evaluator.evaluate(form, user_id, organization_id)
        else:
            rule_output = business_trip_checks()

        ai_outcome = await self._ai_adapter.analyze(form_type, form_data, organization_id)
        return self._aggregator.aggregate(rule_output, ai_outcome)

    async def check_submission(
        self,
        form_type: str,
        form_data: dict[str, Any],
        user_id: str,
        organization_id: str,
        submission_id: str | None = None,
    ) -> ComplianceCheckResponse:
        """Evaluate a submission and persist every check item.

        Used both as the pre-submit gate and for admin re-checks of stored
        submissions.

        Args:
            form_type: leave | overtime | business_trip.
            form_data: Raw form payload.
            user_id: Submitting user.
            organization_id: Submitting organization.
            submission_id: Optional existing submission ID.

        Returns:
            The verdict with per-category evaluation metadata.

        Raises:
            ValidationError: If a required field is missing or form data is malformed.
        """
        result = await self.evaluate(form_type, form_data, user_id, organization_id)
        checked_at = self._clock().astimezone(UTC)
        audit_report = await self._audit_sink.record(
            result,
            organization_id=organization_id,
            user_id=user_id,
            checked_at=checked_at,
            submission_id=submission_id,
        )

        logger.info(
            "Compliance check complete",
            form_type=form_type,
            organization_id=organization_id,
            user_id=user_id,
            status=result.status,
            check_count=len(result.checks),
            degraded=result.degraded,
            audit_persisted=audit_report.persisted,
        )
        return _result_to_response(result, audit_report)


class ComplianceHistoryService:
    """Reads persisted compliance check records.

    Args:
        check_repo: Repository implementing IComplianceCheckRepository.
        default_limit: Page size when the caller gives none.
        max_limit: Upper bound for the page size.
    """

    def __init__(
        self,
        check_repo: IComplianceCheckRepository,
        default_limit: int = 50,
        max_limit: int = 200,
    ) -> None:
        self._check_repo = check_repo
        self._default_limit = default_limit
        self._max_limit = max_limit

    async def list_checks(
        self,
        organization_id: str | None,
        submission_id: str | None = None,
        user_id: str | None = None,
        limit: int | None = None,
    ) -> ComplianceCheckHistoryResponse:
        """Return the most recent check records, newest first.

        Args:
            organization_id: Organization to query (required).
            submission_id: Optional submission filter.
            user_id: Optional user filter.
            limit: Optional page size, clamped to [1, max_limit].

        Returns:
            ComplianceCheckHistoryResponse with records newest first.

        Raises:
            ValidationError: If organization_id is missing.
        """
        if not organization_id:
            raise ValidationError("organization_id required", field="organization_id")

        page_size = min(max(limit or self._default_limit, 1), self._max_limit)
        records = await self._check_repo.query(
            organization_id=organization_id,
            submission_id=submission_id,
            user_id=user_id,
            limit=page_size,
        )
        return ComplianceCheckHistoryResponse(data=[_record_to_response(record) for record in records])


# ---------------------------------------------------------------------------
# Response converters
# ---------------------------------------------------------------------------


def _result_to_response(result: ComplianceCheckResult, audit_report: AuditReport) -> ComplianceCheckResponse:
    """Convert a ComplianceCheckResult to its API response."""
    return ComplianceCheckResponse(
        status=result.status,
        checks=[
            ComplianceCheckItemResponse(
                check_type=item.check_type,
                status=item.status,
                rule_reference=item.rule_reference,
                message=item.message,
                message_zh=item.message_localized,
                details=dict(item.details),
            )
            for item in result.checks
        ],
        ai_analysis=result.ai_analysis,
        ai_analysis_zh=result.ai_analysis_zh,
        evaluation=ComplianceEvaluationSummary(
            degraded=result.degraded,
            audit_persisted=audit_report.persisted,
            categories=[
                CategoryEvaluationResponse(
                    category=evaluation.category,
                    evaluated=evaluation.evaluated,
                    degraded=evaluation.degraded,
                    reason=evaluation.reason,
                )
                for evaluation in result.evaluations
            ],
        ),
    )


def _record_to_response(record: ComplianceCheckRecord) -> ComplianceCheckRecordResponse:
    """Convert a ComplianceCheckRecord ORM row to its API response."""
    return ComplianceCheckRecordResponse(
        id=record.id,
        organization_id=record.organization_id,
        user_id=record.user_id,
        submission_id=record.submission_id,
        check_type=record.check_type,
        status=record.status,
        rule_reference=record.rule_reference,
        message=record.message,
        message_zh=record.message_zh,
        details=record.details or {},
        created_at=record.created_at,
    )
