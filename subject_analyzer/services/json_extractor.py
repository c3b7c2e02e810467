# ==== JSON EXTRACTOR SERVICE ==== #

"""
JSON extraction from LLM responses.

Model output is untrusted free-form text. This module locates the JSON
object in it, repairs the most common formatting slips, and validates the
result against a strict schema. Anything that does not fit is reported as a
failed extraction and the caller serves deterministic fallback suggestions.
"""

import json
import re
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, Field, ValidationError

from subject_analyzer.schemas.analysis import SuggestionPayload


FALLBACK_INSIGHT = (
    "The subject line could benefit from more specific language and clearer value proposition."
)
DISABLED_INSIGHT = (
    "AI analysis temporarily unavailable. Consider adding urgency, personalization, "
    "and clear value proposition."
)


class JsonExtractResult(BaseModel):
    """Outcome of extracting suggestions from model output."""
    data: Optional[SuggestionPayload] = Field(None, description="Validated payload")
    success: bool = Field(False, description="Whether extraction was successful")
    error: Optional[str] = Field(None, description="Error message if extraction failed")


# ==== CORE EXTRACTION FUNCTIONS ==== #


FENCED_BLOCK = re.compile(r'```(?:json|javascript)?\s*(\{[\s\S]*?\})\s*```')


def _candidate_blocks(text: str) -> Iterator[str]:
    """
    Yield possible JSON objects in text, in the order worth trying.

    Fenced markdown blocks come first, then every outermost ``{...}`` span
    from left to right. Braces inside string literals are not special-cased;
    a span cut short by one simply fails to parse.
    """
    for match in FENCED_BLOCK.finditer(text):
        yield match.group(1).strip()

    depth, opened_at = 0, None
    for index, char in enumerate(text):
        if char == '{':
            if depth == 0:
                opened_at = index
            depth += 1
        elif char == '}' and depth:
            depth -= 1
            if depth == 0:
                yield text[opened_at:index + 1]


def _repair_json_string(s: str) -> str:
    """Repair trailing commas and unquoted keys, the usual LLM slips."""
    # Remove trailing commas
    s = re.sub(r',\s*([\}\]])', r'\1', s)

    # Quote bare keys
    s = re.sub(r'([{,]\s*)([a-zA-Z_]\w*)(\s*:)', r'\1"\2"\3', s)

    return s.strip()


def _parse_object(block: str) -> Optional[Dict[str, Any]]:
    for candidate in (block, _repair_json_string(block)):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def extract_suggestions(text: Optional[str]) -> JsonExtractResult:
    """
    Extract and validate ``{suggestions: [str], insight: str}`` from model output.

    Candidates are tried in order and the first one matching the schema wins.
    When none does, the error describes the most promising candidate.

    Args:
        text (Optional[str]): Raw message content

    Returns:
        JsonExtractResult: Validated payload on success, error description otherwise
    """
    if not text or not text.strip():
        return JsonExtractResult(error="Empty response")

    error = None
    for block in _candidate_blocks(text):
        parsed = _parse_object(block)
        if parsed is None:
            error = error or "JSON object could not be parsed"
            continue

        try:
            payload = SuggestionPayload.model_validate(parsed)
        except ValidationError as e:
            if error is None or not error.startswith("Schema mismatch"):
                error = f"Schema mismatch: {e.error_count()} error(s)"
            continue

        return JsonExtractResult(data=payload, success=True)

    return JsonExtractResult(error=error or "No JSON object found")


# ==== DETERMINISTIC FALLBACK ==== #


def fallback_suggestions(subject: str) -> List[str]:
    """Suggestions served when the model output cannot be used."""
    return [
        f"Enhanced: {subject}",
        f"New: {subject} - Limited Time",
        f"Improved: {subject} - Don't Miss Out",
    ]
