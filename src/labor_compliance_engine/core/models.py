"""SQLAlchemy ORM models for the labor compliance engine.

Models:
- LeaveBalance           — Per-user, per-year leave entitlement (owned by the balance subsystem)
- WorkflowSubmission     — Submitted workflow forms (source of the overtime ledger)
- ComplianceKnowledge    — Versioned regulation entries used for rules and AI context
- ComplianceCheckRecord  — APPEND-ONLY audit record, one row per check item

This engine only reads LeaveBalance, WorkflowSubmission, and ComplianceKnowledge.
The only table it writes is compliance_checks, and it never updates or deletes
rows there.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from labor_compliance_engine.database import Base


class LeaveBalance(Base):
    """Leave entitlement for one user in one organization for one calendar year.

    Totals may be NULL for categories the organization never configured; the
    evaluator falls back to statutory defaults in that case.
    """

    __tablename__ = "leave_balances"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    organization_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    annual_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    annual_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    sick_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    sick_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    personal_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    personal_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    family_care_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    family_care_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    family_care_hours_total: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        comment="Family-care leave may be taken by the hour; tracked separately from days",
    )
    family_care_hours_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    marriage_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    marriage_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    maternity_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    maternity_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    paternity_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    paternity_used: Mapped[float | None] = mapped_column(Float, nullable=True)
    bereavement_total: Mapped[float | None] = mapped_column(Float, nullable=True)
    bereavement_used: Mapped[float | None] = mapped_column(Float, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class WorkflowSubmission(Base):
    """A submitted workflow form (leave, overtime, business trip).

    form_data is the parsed form payload; for overtime it carries `date`
    (ISO yyyy-mm-dd) and `hours`.
    """

    __tablename__ = "workflow_submissions"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    form_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="leave | overtime | business_trip",
    )
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default="pending",
        index=True,
        comment="pending | approved | rejected | cancelled",
    )
    form_data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class ComplianceKnowledge(Base):
    """A versioned regulation entry.

    Maintained by an external sync process. The `metadata` column carries
    category-specific structure, e.g. `{"holidays_2026": ["2026-01-01", ...]}`
    on the LSA Art. 37 entry.
    """

    __tablename__ = "compliance_knowledge"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="leave | overtime | salary | general",
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content_zh: Mapped[str | None] = mapped_column(Text, nullable=True)
    article_number: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSONB, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class ComplianceCheckRecord(Base):
    """Immutable audit record for one compliance check item.

    Every item of every returned result is written, including `pass` items,
    so history queries can show what was checked for clean submissions too.
    Written ONLY via ComplianceCheckRepository.append_many().
    """

    __tablename__ = "compliance_checks"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    submission_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    check_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, comment="pass | warning | blocked")
    rule_reference: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    message_zh: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Check timestamp (UTC), shared by all items of one result",
    )
