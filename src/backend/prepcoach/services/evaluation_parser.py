"""Lenient parsing of free-text evaluations.

The evaluation prompt asks for ``Score:``, ``Feedback:`` and ``Suggestion:``
lines. Models do not always comply, so every field degrades to ``None``
instead of raising; the raw text is always kept.
"""

import re

from prepcoach.models.schemas import EvaluationResult

MIN_SCORE = 1
MAX_SCORE = 10

_SCORE_RE = re.compile(r"Score:\s*(\d+)", re.IGNORECASE)
_SECTION_RE = re.compile(
    r"^[\s*#-]*(Feedback|Suggestion)\s*:\s*(.*?)(?=^[\s*#-]*(?:Score|Feedback|Suggestion)\s*:|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)


def parse_score(text: str) -> int | None:
    """Return the integer after ``Score:`` if it lies in 1..10, else None."""
    match = _SCORE_RE.search(text or "")
    if match is None:
        return None
    score = int(match.group(1))
    if not MIN_SCORE <= score <= MAX_SCORE:
        return None
    return score


def parse_evaluation(text: str) -> EvaluationResult:
    sections: dict[str, str] = {}
    for label, body in _SECTION_RE.findall(text or ""):
        key = label.lower()
        body = body.strip()
        if key not in sections and body:
            sections[key] = body

    return EvaluationResult(
        text=text,
        score=parse_score(text),
        feedback=sections.get("feedback"),
        suggestion=sections.get("suggestion"),
    )
