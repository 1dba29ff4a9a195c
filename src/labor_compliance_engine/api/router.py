"""API router for labor-compliance-engine.

All endpoints are registered here and included in main.py under the /api/v1
prefix. Handlers only translate errors to HTTP statuses; the check pipeline
lives in core/services.py.

Endpoints:
- POST  /compliance/check  — Validate a submission (pre-submit gate or admin re-check)
- GET   /compliance/check  — Check history for an organization, submission, or user
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from labor_compliance_engine.adapters.repositories import (
    ComplianceCheckRepository,
    KnowledgeRepository,
    LeaveBalanceRepository,
    OvertimeLedgerRepository,
)
from labor_compliance_engine.api.schemas import (
    ComplianceCheckEnvelope,
    ComplianceCheckHistoryResponse,
    ComplianceCheckRequest,
)
from labor_compliance_engine.core.ai_adapter import AIAugmentationAdapter
from labor_compliance_engine.core.audit_sink import ComplianceAuditSink
from labor_compliance_engine.core.interfaces import ILanguageModelClient
from labor_compliance_engine.core.knowledge import KnowledgeStoreAccessor
from labor_compliance_engine.core.leave_evaluator import LeaveBalanceEvaluator
from labor_compliance_engine.core.overtime_evaluator import OvertimeLimitEvaluator
from labor_compliance_engine.core.services import (
    ComplianceCheckService,
    ComplianceHistoryService,
    make_clock,
)
from labor_compliance_engine.database import get_db_session
from labor_compliance_engine.errors import CollaboratorError, ValidationError
from labor_compliance_engine.observability import get_logger
from labor_compliance_engine.settings import Settings

logger = get_logger(__name__)

router = APIRouter(tags=["compliance"])


# ---------------------------------------------------------------------------
# Dependency factories: wire repositories, services, and clients together
# ---------------------------------------------------------------------------


def get_settings(request: Request) -> Settings:
    """Return the settings stored on app state at startup."""
    return request.app.state.settings


def get_model_client(request: Request) -> ILanguageModelClient:
    """Return the shared language model client stored on app state at startup."""
    return request.app.state.model_client


def get_compliance_check_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    model_client: Annotated[ILanguageModelClient, Depends(get_model_client)],
) -> ComplianceCheckService:
    """Construct ComplianceCheckService with injected repositories and clients.

    Args:
        session: Primary DB session.
        settings: Service settings.
        model_client: Shared language model client.

    Returns:
        Fully wired ComplianceCheckService instance.
    """
    clock = make_clock(settings.timezone)
    knowledge = KnowledgeStoreAccessor(KnowledgeRepository(session))
    return ComplianceCheckService(
        leave_evaluator=LeaveBalanceEvaluator(LeaveBalanceRepository(session)),
        overtime_evaluator=OvertimeLimitEvaluator(OvertimeLedgerRepository(session), knowledge),
        ai_adapter=AIAugmentationAdapter(
            knowledge=knowledge,
            model_client=model_client,
            clock=clock,
            timeout_seconds=settings.ai_timeout_seconds,
            context_limit=settings.knowledge_context_limit,
        ),
        audit_sink=ComplianceAuditSink(
            ComplianceCheckRepository(session),
            max_attempts=settings.audit_write_attempts,
        ),
        clock=clock,
    )


def get_compliance_history_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ComplianceHistoryService:
    """Construct ComplianceHistoryService with an injected repository.

    Args:
        session: Primary DB session.
        settings: Service settings.

    Returns:
        Fully wired ComplianceHistoryService instance.
    """
    return ComplianceHistoryService(
        ComplianceCheckRepository(session),
        default_limit=settings.history_default_limit,
        max_limit=settings.history_max_limit,
    )


# ---------------------------------------------------------------------------
# Compliance check endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/compliance/check",
    response_model=ComplianceCheckEnvelope,
    response_model_exclude_none=True,
    summary="Validate a workflow submission against labor regulations",
)
async def check_compliance(
    request: ComplianceCheckRequest,
    service: Annotated[ComplianceCheckService, Depends(get_compliance_check_service)],
) -> ComplianceCheckEnvelope:
    """Run rule-based and AI compliance checks for one submission.

    The result is always best-effort: failed lookups or AI errors degrade the
    affected category (see `evaluation.categories`) rather than failing the
    request.

    Args:
        request: Submission to validate.
        service: Injected ComplianceCheckService.

    Returns:
        The verdict wrapped in `data`.
    """
    try:
        result = await service.check_submission(
            form_type=request.form_type,
            form_data=request.form_data,
            user_id=request.user_id,
            organization_id=request.organization_id,
            submission_id=request.submission_id,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    return ComplianceCheckEnvelope(data=result)


@router.get(
    "/compliance/check",
    response_model=ComplianceCheckHistoryResponse,
    summary="List recent compliance check records",
)
async def list_compliance_checks(
    service: Annotated[ComplianceHistoryService, Depends(get_compliance_history_service)],
    organization_id: Annotated[str | None, Query(description="Organization ID (required)")] = None,
    submission_id: Annotated[str | None, Query(description="Filter by submission ID")] = None,
    user_id: Annotated[str | None, Query(description="Filter by user ID")] = None,
    limit: Annotated[int | None, Query(ge=1, description="Maximum records to return")] = None,
) -> ComplianceCheckHistoryResponse:
    """Return persisted check records, newest first.

    Args:
        service: Injected ComplianceHistoryService.
        organization_id: Organization to query.
        submission_id: Optional submission filter.
        user_id: Optional user filter.
        limit: Optional page size.

    Returns:
        ComplianceCheckHistoryResponse.
    """
    try:
        return await service.list_checks(
            organization_id=organization_id,
            submission_id=submission_id,
            user_id=user_id,
            limit=limit,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    except CollaboratorError as exc:
        logger.error("Compliance check history query failed", organization_id=organization_id, error=exc.message)
        raise HTTPException(status_code=503, detail="Compliance check history unavailable") from exc
