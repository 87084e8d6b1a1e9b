"""Extraction and validation of generated quiz answers."""

from __future__ import annotations

import json
import numbers
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from .models import OPTION_COUNT

__all__ = [
    "ParseError",
    "ParseStage",
    "RawAnswer",
    "ValidationResult",
    "extract_payload",
    "parse_quiz_response",
    "validate_answer",
]

_FENCED_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class ParseStage(str, Enum):
    SYNTAX = "syntax"
    SCHEMA = "schema"


class ParseError(ValueError):
    """Generated text could not be turned into a valid answer.

    ``raw_text`` is the extracted payload that failed; for schema failures
    ``value`` holds the decoded JSON and ``errors`` the individual checks
    that did not pass.
    """

    def __init__(
        self,
        stage: ParseStage,
        message: str,
        *,
        raw_text: str,
        value: Any = None,
        errors: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.raw_text = raw_text
        self.value = value
        self.errors = errors


@dataclass(frozen=True)
class RawAnswer:
    question: str
    options: tuple[str, ...]
    correct: int
    explanation: str


@dataclass(frozen=True)
class ValidationResult:
    answer: Optional[RawAnswer] = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.answer is not None and not self.errors


def extract_payload(raw_text: str) -> str:
    """Return the JSON-looking part of ``raw_text``.

    Prefer the body of a fenced code block, then the span from the first
    ``{`` to the last ``}``, then the stripped text itself.
    """

    fenced = _FENCED_RE.search(raw_text)
    if fenced:
        return fenced.group(1).strip()
    obj = _OBJECT_RE.search(raw_text)
    if obj:
        return obj.group(0).strip()
    return raw_text.strip()


def validate_answer(value: Any) -> ValidationResult:
    """Check the decoded payload field by field, collecting every problem."""

    if not isinstance(value, dict):
        return ValidationResult(
            errors=(f"expected a JSON object, got {type(value).__name__}",)
        )

    errors: List[str] = []

    question = value.get("question")
    if not isinstance(question, str) or not question.strip():
        errors.append("question: must be a non-empty string")

    options = value.get("options")
    if not isinstance(options, list):
        errors.append(f"options: must be a list of {OPTION_COUNT} strings")
    elif len(options) != OPTION_COUNT:
        errors.append(
            f"options: expected exactly {OPTION_COUNT} items, "
            f"got {len(options)}"
        )
    else:
        for i, option in enumerate(options):
            if not isinstance(option, str) or not option.strip():
                errors.append(f"options[{i}]: must be a non-empty string")

    correct = _coerce_index(value.get("correct"))
    if correct is None:
        errors.append("correct: must be an integer")
    elif not 0 <= correct < OPTION_COUNT:
        errors.append(
            f"correct: must be between 0 and {OPTION_COUNT - 1}, got {correct}"
        )

    explanation = value.get("explanation")
    if not isinstance(explanation, str) or not explanation.strip():
        errors.append("explanation: must be a non-empty string")

    if errors:
        return ValidationResult(errors=tuple(errors))
    return ValidationResult(
        answer=RawAnswer(
            question=question,
            options=tuple(options),
            correct=correct,
            explanation=explanation,
        )
    )


def _coerce_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    # JSON has one number type; 2.0 is still the index 2.
    if isinstance(value, numbers.Real) and float(value).is_integer():
        return int(value)
    return None


def parse_quiz_response(raw_text: str) -> RawAnswer:
    """Extract, decode, and validate a generated answer."""

    payload = extract_payload(raw_text)
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ParseError(
            ParseStage.SYNTAX,
            f"Failed to parse JSON: {exc}\nInput: {payload}",
            raw_text=payload,
        ) from exc

    result = validate_answer(decoded)
    if not result.ok:
        detail = "; ".join(result.errors)
        rendered = json.dumps(decoded, ensure_ascii=False, indent=2)
        raise ParseError(
            ParseStage.SCHEMA,
            f"Invalid quiz response format: {detail}\nInput: {rendered}",
            raw_text=payload,
            value=decoded,
            errors=result.errors,
        )
    return result.answer  # type: ignore[return-value]
