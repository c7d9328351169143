"""Chat-completions client for concept alignment assessments."""

import json
from typing import Any

import requests

from common.logger import get_logger

from ..models import Assessment, AssessmentFinding, ConceptSpecification, ImplementationModule
from ..source_extractor import SourceExtractor
from .base import (
    AssessmentClient,
    AssessmentError,
    AssessmentParseError,
    AssessmentServiceError,
    UnavailableAssessmentClient,
)
from .prompts import SYSTEM_PROMPT, aspect_system_prompt, build_aspect_prompt, build_review_prompt

logger = get_logger(__name__)

_SEVERITIES = {"critical", "major", "minor"}
_ALIGNMENTS = {"excellent", "good", "fair", "poor"}


class OpenAIAssessmentClient(AssessmentClient):
    """Client for an OpenAI-compatible chat-completions API.

    Requests use a low temperature and a bounded reply length so answers
    stay terse and close to deterministic. Every failure (network, timeout,
    HTTP status, malformed payload) is answered by the offline fallback.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    TEMPERATURE = 0.1
    REVIEW_MAX_TOKENS = 2000
    ASPECT_MAX_TOKENS = 500

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        extractor: SourceExtractor | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer credential for the service
            model: Model name sent with each request
            base_url: API root; /chat/completions is appended
            timeout: Seconds before a request is abandoned
            extractor: Used for per-method complexity figures in prompts
        """
        self.model = model
        self.url = f"{base_url.rstrip('/')}/chat/completions"
        self.timeout = timeout
        self.extractor = extractor or SourceExtractor()
        self.fallback = UnavailableAssessmentClient()
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "User-Agent": "validate-concepts/1.0",
            }
        )

    def assess(
        self,
        spec: ConceptSpecification,
        module: ImplementationModule,
        related_text: str | None = None,
    ) -> Assessment:
        complexity = {m.name: self.extractor.complexity_of(m) for m in module.methods}
        prompt = build_review_prompt(spec, module, related_text, complexity)

        try:
            content = self._complete(SYSTEM_PROMPT, prompt, self.REVIEW_MAX_TOKENS)
        except AssessmentError as e:
            logger.warning(f"Assessment of {spec.name} failed: {e}")
            return self.fallback.assess(spec, module, related_text)

        try:
            return parse_assessment(content)
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Assessment reply for {spec.name} could not be normalized: {e}")
            return raw_assessment(content)

    def assess_aspect(
        self, spec: ConceptSpecification, module: ImplementationModule, aspect: str
    ) -> str:
        prompt = build_aspect_prompt(spec, module, aspect)

        try:
            return self._complete(aspect_system_prompt(aspect), prompt, self.ASPECT_MAX_TOKENS)
        except AssessmentError as e:
            logger.warning(f"Assessment of {aspect} for {spec.name} failed: {e}")
            return self.fallback.assess_aspect(spec, module, aspect)

    def _complete(self, system_prompt: str, prompt: str, max_tokens: int) -> str:
        """Send one chat completion and return the reply text.

        Raises:
            AssessmentServiceError: If the request fails or the reply is empty
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.TEMPERATURE,
            "max_tokens": max_tokens,
        }

        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise AssessmentServiceError(f"Request failed: {e}") from e
        except ValueError as e:
            raise AssessmentServiceError(f"Response is not JSON: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AssessmentServiceError(f"Unexpected response shape: {e}") from e

        if not content:
            raise AssessmentServiceError("No response from model")
        return content


def parse_assessment(content: str) -> Assessment:
    """Normalize a reply into an Assessment.

    The first balanced {...} fragment is decoded as JSON. When that fails the
    start of the raw reply becomes the purpose note.
    """
    try:
        data = _decode_fragment(content)
    except AssessmentParseError as e:
        logger.debug(f"Falling back to plain-text assessment: {e}")
        return raw_assessment(content)

    alignment = str(data.get("alignment") or "fair").lower()
    return Assessment(
        purpose_alignment_note=str(data.get("purposeAlignment") or "No analysis provided"),
        implementation_quality_note=str(
            data.get("implementationQuality") or "No analysis provided"
        ),
        issues=[_finding(item) for item in _list_of(data, "issues") if isinstance(item, dict)],
        suggestions=[str(s) for s in _list_of(data, "suggestions")],
        alignment=alignment if alignment in _ALIGNMENTS else "fair",
        score=_clamp_score(data.get("score")),
    )


def raw_assessment(content: str) -> Assessment:
    """Assessment carrying the start of an unparseable reply."""
    return Assessment(
        purpose_alignment_note=content[:200],
        implementation_quality_note="Unable to parse detailed analysis",
    )


def extract_json_fragment(text: str) -> str | None:
    """Return the first balanced {...} fragment in text, or None."""
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def _decode_fragment(content: str) -> dict[str, Any]:
    fragment = extract_json_fragment(content)
    if fragment is None:
        raise AssessmentParseError("No JSON object in reply")
    try:
        data = json.loads(fragment)
    except json.JSONDecodeError as e:
        raise AssessmentParseError(str(e)) from e
    if not isinstance(data, dict):
        raise AssessmentParseError("Reply JSON is not an object")
    return data


def _list_of(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    return value if isinstance(value, list) else []


def _finding(item: dict[str, Any]) -> AssessmentFinding:
    severity = str(item.get("type") or item.get("severity") or "minor").lower()
    return AssessmentFinding(
        severity=severity if severity in _SEVERITIES else "minor",
        description=str(item.get("description", "")),
        suggestion=str(item.get("suggestion", "")),
    )


def _clamp_score(value: Any) -> int:
    try:
        score = int(value)
    except (TypeError, ValueError, OverflowError):
        return 50
    return max(0, min(100, score))
