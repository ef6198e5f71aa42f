"""
Behavioural insight analysis for analytics batches.

Sends a batch of user events to an OpenAI-compatible chat completion API
(OpenRouter by default) and parses the JSON summary it returns.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, APIConnectionError, APITimeoutError, RateLimitError

from app.core.config import settings
from app.core.retry import retry_with_backoff

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a behavioral analytics expert analyzing e-commerce user events."

USER_PROMPT = """You are analyzing user behavior on an e-commerce website.
Below is a batch of {count} user events from the last time window.

Events:
{events}

Analyze these events and provide a JSON response with the following structure:
{{
  "summary": "concise 1-2 sentence summary of user behavior patterns",
  "confidence": 0.85,
  "patterns": ["pattern1", "pattern2"]
}}

You MUST respond with ONLY valid JSON, no markdown, no backticks, no additional text."""

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


class InsightAnalysisError(Exception):
    """Raised when a batch cannot be analysed."""


@dataclass
class InsightResult:
    summary: str
    confidence: float
    patterns: List[str] = field(default_factory=list)


def build_event_summary(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce events to the fields the model needs."""
    return [
        {
            "type": event.get("event_type"),
            "page": event.get("page"),
            "timestamp": event.get("occurred_at"),
            "metadata": event.get("metadata") or {},
        }
        for event in events
    ]


def parse_analysis(content: Optional[str]) -> InsightResult:
    """
    Parse the model's JSON answer.

    Tolerates a surrounding markdown code fence. Confidence is clamped to
    [0, 1].

    Raises:
        InsightAnalysisError: If the content is empty, not JSON, or has no summary
    """
    if not content or not content.strip():
        raise InsightAnalysisError("No response from AI")

    try:
        result = json.loads(_FENCE.sub("", content.strip()))
    except json.JSONDecodeError as e:
        raise InsightAnalysisError(f"AI response was not valid JSON: {e}") from e

    if not isinstance(result, dict) or not result.get("summary"):
        raise InsightAnalysisError("AI response is missing a summary")

    try:
        confidence = float(result.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0

    patterns = result.get("patterns") or []
    if not isinstance(patterns, list):
        patterns = [patterns]

    return InsightResult(
        summary=str(result["summary"]),
        confidence=min(max(confidence, 0.0), 1.0),
        patterns=[str(p) for p in patterns],
    )


class InsightAnalyzer:
    """OpenRouter-backed analyzer (OpenAI-compatible API)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openrouter_api_key
        self.model = model or settings.insight_model
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=settings.openrouter_base_url,
                default_headers={"X-Title": settings.project_name},
            )
        return self._client

    @retry_with_backoff(
        max_retries=2,
        base_delay=1.0,
        exceptions=(RateLimitError, APIConnectionError, APITimeoutError),
    )
    async def _complete(self, prompt: str) -> Optional[str]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.7,
        )
        return response.choices[0].message.content

    async def analyze(self, events: List[Dict[str, Any]]) -> InsightResult:
        """
        Summarise a batch of events.

        Args:
            events: Event dicts (as produced by AnalyticsEvent.to_dict())

        Returns:
            InsightResult with summary, confidence and patterns

        Raises:
            InsightAnalysisError: If no API key is configured, the batch is
                empty, or the response cannot be parsed
        """
        if not self.api_key:
            raise InsightAnalysisError("OPENROUTER_API_KEY not configured")
        if not events:
            raise InsightAnalysisError("No events to analyze")

        prompt = USER_PROMPT.format(
            count=len(events),
            events=json.dumps(build_event_summary(events), indent=2),
        )

        logger.info(
            "Analyzing event batch",
            extra={"model": self.model, "event_count": len(events)},
        )
        content = await self._complete(prompt)
        return parse_analysis(content)
