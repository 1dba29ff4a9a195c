"""AI augmentation adapter — retrieval-augmented compliance analysis.

Retrieves relevant knowledge entries, sends them with the submission to the
language model, and turns the model's JSON answer into ai_compliance items.

The step is additive: it can escalate a verdict but never reports pass items,
and every failure (knowledge lookup, timeout, model error, unparseable answer)
produces an explicit degraded AIOutcome instead of an exception. Cancellation
is not a failure and propagates to the caller.
"""

import asyncio
import json
import re
from collections.abc import Callable
from datetime import datetime
from typing import Any

from labor_compliance_engine.core.interfaces import ILanguageModelClient
from labor_compliance_engine.core.knowledge import KnowledgeStoreAccessor
from labor_compliance_engine.core.records import RuleKnowledgeEntry
from labor_compliance_engine.core.results import (
    STATUS_BLOCKED,
    STATUS_WARNING,
    AIOutcome,
    ComplianceCheckItem,
)
from labor_compliance_engine.errors import CollaboratorError, ModelClientError
from labor_compliance_engine.observability import get_logger

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

_SYSTEM_PROMPT_TEMPLATE = """You are a Taiwan Labor Law compliance AI assistant. Today is {today} ({weekday}).

You analyze employee workflow requests against Taiwan's Labor Standards Act (LSA) and related regulations.

RULES CONTEXT:
{context}

Analyze the following {form_type} request and check for any compliance issues.

Respond in JSON ONLY:
{{
  "summary_en": "Brief compliance summary in English",
  "summary_zh": "Brief compliance summary in Traditional Chinese",
  "issues": [
    {{
      "severity": "warning" or "blocked",
      "rule": "Article reference",
      "message_en": "Issue description in English",
      "message_zh": "Issue description in Traditional Chinese"
    }}
  ]
}}

If no issues found, return empty issues array.
CRITICAL: Only flag real legal compliance issues. Do not flag normal valid requests."""


class MalformedModelResponse(ValueError):
    """Raised internally when the model's answer is not the expected JSON shape."""


def build_context_block(entries: list[RuleKnowledgeEntry]) -> str:
    """Render knowledge entries as the RULES CONTEXT block of the prompt.

    Each entry contributes its article reference, title, English and Chinese
    body, and metadata as JSON.
    """
    blocks = []
    for entry in entries:
        lines = [f"[{entry.article_number or 'Policy'}] {entry.title}", entry.content]
        if entry.content_zh:
            lines.append(entry.content_zh)
        lines.append(f"Metadata: {json.dumps(entry.metadata, ensure_ascii=False, sort_keys=True)}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def parse_model_response(text: str) -> dict[str, Any]:
    """Parse the model's answer after stripping markdown code fences.

    Args:
        text: Raw model output.

    Returns:
        The decoded JSON object.

    Raises:
        MalformedModelResponse: If the text is not a JSON object.
    """
    cleaned = _CODE_FENCE.sub("", text).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedModelResponse(f"Model response is not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise MalformedModelResponse("Model response is not a JSON object")
    return parsed


def issues_to_items(issues: Any) -> list[ComplianceCheckItem]:
    """Convert model issues into ai_compliance items.

    Severity "blocked" maps to blocked, anything else to warning. Entries
    that are not objects are dropped.
    """
    if not isinstance(issues, list):
        return []
    items = []
    for issue in issues:
        if not isinstance(issue, dict):
            continue
        severity = str(issue.get("severity", "")).strip().lower()
        items.append(
            ComplianceCheckItem(
                check_type="ai_compliance",
                status=STATUS_BLOCKED if severity == STATUS_BLOCKED else STATUS_WARNING,
                rule_reference=str(issue.get("rule") or "AI Analysis"),
                message=str(issue.get("message_en") or ""),
                message_localized=str(issue.get("message_zh") or ""),
                details={"ai_detected": True},
            )
        )
    return items


class AIAugmentationAdapter:
    """Runs the retrieval-augmented model analysis for one submission.

    Args:
        knowledge: Knowledge store accessor for RAG retrieval.
        model_client: Client implementing ILanguageModelClient.
        clock: Returns the current (timezone-aware) time for the prompt date.
        timeout_seconds: Hard timeout for the model call.
        context_limit: Maximum knowledge entries embedded in the prompt.
    """

    def __init__(
        self,
        knowledge: KnowledgeStoreAccessor,
        model_client: ILanguageModelClient,
        clock: Callable[[], datetime],
        timeout_seconds: float = 20.0,
        context_limit: int = 10,
    ) -> None:
        self._knowledge = knowledge
        self._model_client = model_client
        self._clock = clock
        self._timeout_seconds = timeout_seconds
        self._context_limit = context_limit

    def build_system_prompt(self, form_type: str, entries: list[RuleKnowledgeEntry]) -> str:
        """Build the system instruction with today's date, weekday, and rules context."""
        now = self._clock()
        return _SYSTEM_PROMPT_TEMPLATE.format(
            today=now.date().isoformat(),
            weekday=now.strftime("%A"),
            context=build_context_block(entries),
            form_type=form_type,
        )

    async def analyze(
        self,
        form_type: str,
        form_data: dict[str, Any],
        organization_id: str,
    ) -> AIOutcome:
        """Analyze a submission against retrieved knowledge.

        Args:
            form_type: leave | overtime | business_trip.
            form_data: The submission's form data as sent by the caller.
            organization_id: The submitting organization (for logging).

        Returns:
            ok with issues and summary; skipped when no knowledge entries
            exist; degraded on any lookup, model, or parsing failure.
        """
        try:
            entries = await self._knowledge.entries_for_form_type(form_type, self._context_limit)
        except CollaboratorError as exc:
            logger.warning(
                "Knowledge retrieval failed, skipping AI analysis",
                form_type=form_type,
                organization_id=organization_id,
                error=exc.message,
            )
            return AIOutcome.degraded("knowledge_lookup_failed")

        if not entries:
            logger.info("No knowledge entries for AI analysis", form_type=form_type)
            return AIOutcome.skipped("no_knowledge_entries")

        system_prompt = self.build_system_prompt(form_type, entries)
        user_prompt = (
            f"Analyze this {form_type} request:\n"
            f"{json.dumps(form_data, indent=2, ensure_ascii=False, default=str)}"
        )

        try:
            async with asyncio.timeout(self._timeout_seconds):
                text = await self._model_client.complete(system_prompt, user_prompt)
        except TimeoutError:
            logger.warning(
                "AI compliance analysis timed out",
                form_type=form_type,
                organization_id=organization_id,
                timeout_seconds=self._timeout_seconds,
            )
            return AIOutcome.degraded("model_timeout")
        except ModelClientError as exc:
            logger.error(
                "AI compliance analysis failed",
                form_type=form_type,
                organization_id=organization_id,
                error=exc.message,
            )
            return AIOutcome.degraded("model_error")

        try:
            parsed = parse_model_response(text)
        except MalformedModelResponse as exc:
            logger.error(
                "AI compliance response could not be parsed",
                form_type=form_type,
                organization_id=organization_id,
                error=str(exc),
                response_preview=text[:200],
            )
            return AIOutcome.degraded("malformed_response")

        items = issues_to_items(parsed.get("issues"))
        logger.info(
            "AI compliance analysis complete",
            form_type=form_type,
            organization_id=organization_id,
            knowledge_entries=len(entries),
            issue_count=len(items),
        )
        return AIOutcome.ok(
            items,
            summary_en=str(parsed.get("summary_en") or ""),
            summary_zh=str(parsed.get("summary_zh") or ""),
        )
