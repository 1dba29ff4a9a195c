"""Result aggregation and status escalation.

Rule findings always precede AI findings. Escalation is applied exactly once,
after every item has been collected.
"""

from labor_compliance_engine.core.results import (
    STATUS_PASS,
    AIOutcome,
    CategoryEvaluation,
    ComplianceCheckItem,
    ComplianceCheckResult,
    EvaluatorOutput,
    escalate,
)


def business_trip_checks() -> EvaluatorOutput:
    """Rule-layer output for business trips: one static pass item."""
    return EvaluatorOutput(
        items=(
            ComplianceCheckItem(
                check_type="trip_basic",
                status=STATUS_PASS,
                rule_reference="Company Policy",
                message="Business trip request within normal parameters.",
                message_localized="出差申請符合一般規範。",
                details={},
            ),
        ),
        evaluations=(CategoryEvaluation.ran("trip_basic"),),
    )


class ResultAggregator:
    """Merges rule-evaluator output and the AI outcome into one result."""

    def aggregate(self, rule_output: EvaluatorOutput, ai_outcome: AIOutcome) -> ComplianceCheckResult:
        """Build the final result.

        Args:
            rule_output: Output of the evaluator selected by form type.
            ai_outcome: Outcome of the AI augmentation step.

        Returns:
            Result with rule items then AI items, the escalated status, the AI
            summary (ok outcomes only), and every category evaluation.
        """
        checks = (*rule_output.items, *ai_outcome.issues)
        ai_ok = ai_outcome.state == "ok"
        return ComplianceCheckResult(
            status=escalate(item.status for item in checks),
            checks=checks,
            ai_analysis=ai_outcome.summary_en if ai_ok else None,
            ai_analysis_zh=ai_outcome.summary_zh if ai_ok else None,
            evaluations=(*rule_output.evaluations, ai_outcome.evaluation()),
        )
