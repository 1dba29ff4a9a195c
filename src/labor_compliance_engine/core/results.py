"""Immutable result types for compliance checks.

- ComplianceCheckItem    — one atomic finding
- CategoryEvaluation     — whether a check category actually ran, or degraded
- EvaluatorOutput        — items + evaluations produced by one rule evaluator
- AIOutcome              — explicit ok / skipped / degraded outcome of the AI step
- ComplianceCheckResult  — the verdict for one request

Status escalation is monotone: blocked > warning > pass. escalate() is the
only place that ranks statuses.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

CheckStatus = Literal["pass", "warning", "blocked"]

STATUS_PASS: CheckStatus = "pass"
STATUS_WARNING: CheckStatus = "warning"
STATUS_BLOCKED: CheckStatus = "blocked"

_SEVERITY_RANK: dict[str, int] = {
    STATUS_PASS: 0,
    STATUS_WARNING: 1,
    STATUS_BLOCKED: 2,
}


def escalate(statuses: Iterable[str]) -> CheckStatus:
    """Return the most severe status, or pass when there are none.

    Args:
        statuses: Item statuses in any order.

    Returns:
        blocked if any is blocked, else warning if any is warning, else pass.
    """
    overall: CheckStatus = STATUS_PASS
    for status in statuses:
        if _SEVERITY_RANK[status] > _SEVERITY_RANK[overall]:
            overall = status  # type: ignore[assignment]
    return overall


class ComplianceCheckItem(BaseModel):
    """One atomic compliance finding.

    Attributes:
        check_type: Category tag, e.g. leave_balance, daily_overtime_limit, ai_compliance.
        status: pass | warning | blocked.
        rule_reference: Human-readable citation, e.g. "LSA Art. 32".
        message: English message.
        message_localized: Traditional Chinese message, parallel to `message`.
        details: Numeric evidence behind the finding.
    """

    model_config = ConfigDict(frozen=True)

    check_type: str
    status: CheckStatus
    rule_reference: str
    message: str
    message_localized: str
    details: dict[str, Any] = Field(default_factory=dict)


class CategoryEvaluation(BaseModel):
    """Records whether a check category ran.

    `evaluated=False` with `degraded=False` means the check did not apply
    (e.g. no balance record, no date). `degraded=True` means it should have
    run but a collaborator failed, so absence of items is NOT a clean bill.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    evaluated: bool
    degraded: bool = False
    reason: str | None = None

    @classmethod
    def ran(cls, category: str) -> CategoryEvaluation:
        return cls(category=category, evaluated=True)

    @classmethod
    def not_applicable(cls, category: str, reason: str) -> CategoryEvaluation:
        return cls(category=category, evaluated=False, reason=reason)

    @classmethod
    def failed(cls, category: str, reason: str) -> CategoryEvaluation:
        return cls(category=category, evaluated=False, degraded=True, reason=reason)


class EvaluatorOutput(BaseModel):
    """Items and category evaluations produced by one rule evaluator."""

    model_config = ConfigDict(frozen=True)

    items: tuple[ComplianceCheckItem, ...] = ()
    evaluations: tuple[CategoryEvaluation, ...] = ()


class AIOutcome(BaseModel):
    """Outcome of the AI augmentation step.

    Attributes:
        state: ok (model answered and was parsed), skipped (nothing to ask,
            e.g. no knowledge entries), degraded (knowledge lookup, model call,
            or response parsing failed).
        issues: ai_compliance items; always empty unless state is ok.
        summary_en: English narrative summary (ok only).
        summary_zh: Traditional Chinese narrative summary (ok only).
        reason: Machine-readable reason for skipped/degraded.
    """

    model_config = ConfigDict(frozen=True)

    state: Literal["ok", "skipped", "degraded"]
    issues: tuple[ComplianceCheckItem, ...] = ()
    summary_en: str | None = None
    summary_zh: str | None = None
    reason: str | None = None

    @classmethod
    def ok(
        cls,
        issues: Iterable[ComplianceCheckItem],
        summary_en: str | None,
        summary_zh: str | None,
    ) -> AIOutcome:
        return cls(state="ok", issues=tuple(issues), summary_en=summary_en, summary_zh=summary_zh)

    @classmethod
    def skipped(cls, reason: str) -> AIOutcome:
        return cls(state="skipped", reason=reason)

    @classmethod
    def degraded(cls, reason: str) -> AIOutcome:
        return cls(state="degraded", reason=reason)

    def evaluation(self) -> CategoryEvaluation:
        """Express this outcome as the ai_compliance category evaluation."""
        if self.state == "ok":
            return CategoryEvaluation.ran("ai_compliance")
        if self.state == "skipped":
            return CategoryEvaluation.not_applicable("ai_compliance", self.reason or "skipped")
        return CategoryEvaluation.failed("ai_compliance", self.reason or "degraded")


class ComplianceCheckResult(BaseModel):
    """Verdict for one validation request. Never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    status: CheckStatus
    checks: tuple[ComplianceCheckItem, ...]
    ai_analysis: str | None = None
    ai_analysis_zh: str | None = None
    evaluations: tuple[CategoryEvaluation, ...] = ()

    @property
    def degraded(self) -> bool:
        """True when any check category could not be evaluated due to a failure."""
        return any(evaluation.degraded for evaluation in self.evaluations)
