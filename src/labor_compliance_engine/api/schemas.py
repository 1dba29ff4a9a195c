"""Pydantic request and response schemas for the compliance API.

Request bodies and responses are Pydantic models; the wire name for
message_localized is message_zh.

Resources:
- Compliance check — validate a submission (pre-submit gate or admin re-check)
- Compliance check history — persisted check records
"""

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Compliance check schemas
# ---------------------------------------------------------------------------


class ComplianceCheckRequest(BaseModel):
    """Request body for validating a workflow submission."""

    form_type: Literal["leave", "overtime", "business_trip"] = Field(
        description="Workflow form type: leave | overtime | business_trip",
    )
    form_data: dict[str, Any] = Field(
        description="Form payload. leave: leave_type, days, start_date, end_date. "
        "overtime: date, hours, start_time, end_time. business_trip: destination, dates, purpose.",
    )
    user_id: str = Field(description="Submitting user ID", min_length=1, max_length=255)
    organization_id: str = Field(description="Submitting organization ID", min_length=1, max_length=255)
    submission_id: str | None = Field(
        default=None,
        description="Existing submission ID when re-checking after submit; recorded on audit rows",
        max_length=255,
    )


class ComplianceCheckItemResponse(BaseModel):
    """One compliance finding."""

    check_type: str = Field(description="Finding category, e.g. leave_balance, daily_overtime_limit")
    status: Literal["pass", "warning", "blocked"] = Field(description="Finding severity")
    rule_reference: str = Field(description="Regulation citation, e.g. 'LSA Art. 32'")
    message: str = Field(description="English message")
    message_zh: str = Field(description="Traditional Chinese message")
    details: dict[str, Any] = Field(default_factory=dict, description="Numeric evidence for the finding")


class CategoryEvaluationResponse(BaseModel):
    """Whether one check category ran."""

    category: str = Field(description="Check category")
    evaluated: bool = Field(description="True when the category was actually checked")
    degraded: bool = Field(description="True when the category should have run but a dependency failed")
    reason: str | None = Field(default=None, description="Why the category was not evaluated")


class ComplianceEvaluationSummary(BaseModel):
    """Evaluation metadata distinguishing 'checked and clean' from 'could not check'."""

    degraded: bool = Field(description="True when any category is degraded")
    audit_persisted: bool = Field(description="True when every check was written to the audit trail")
    categories: list[CategoryEvaluationResponse] = Field(description="Per-category evaluation state")


class ComplianceCheckResponse(BaseModel):
    """Verdict for one submission."""

    status: Literal["pass", "warning", "blocked"] = Field(
        description="Most severe status across checks (blocked > warning > pass)",
    )
    checks: list[ComplianceCheckItemResponse] = Field(
        description="Rule-based findings first, then AI findings",
    )
    ai_analysis: str | None = Field(default=None, description="AI compliance summary (English)")
    ai_analysis_zh: str | None = Field(default=None, description="AI compliance summary (Traditional Chinese)")
    evaluation: ComplianceEvaluationSummary = Field(description="Evaluation metadata")


class ComplianceCheckEnvelope(BaseModel):
    """Response wrapper for POST /compliance/check."""

    data: ComplianceCheckResponse


# ---------------------------------------------------------------------------
# Compliance check history schemas
# ---------------------------------------------------------------------------


class ComplianceCheckRecordResponse(BaseModel):
    """A persisted compliance check record."""

    id: uuid.UUID = Field(description="Record UUID")
    organization_id: str = Field(description="Organization ID")
    user_id: str = Field(description="User ID")
    submission_id: str | None = Field(description="Submission ID when the check was tied to one")
    check_type: str = Field(description="Finding category")
    status: Literal["pass", "warning", "blocked"] = Field(description="Finding severity")
    rule_reference: str = Field(description="Regulation citation")
    message: str = Field(description="English message")
    message_zh: str = Field(description="Traditional Chinese message")
    details: dict[str, Any] = Field(description="Numeric evidence for the finding")
    created_at: datetime = Field(description="Check timestamp (UTC)")


class ComplianceCheckHistoryResponse(BaseModel):
    """Response wrapper for GET /compliance/check."""

    data: list[ComplianceCheckRecordResponse]
