"""
Parsing of tagged model replies.

The model is instructed to answer with paired tags:

    <QUESTION>...</QUESTION>
    <ANALYSIS>...</ANALYSIS>
    <FEEDBACK>...</FEEDBACK>
    <SUGGESTED_ALTERNATIVE>...</SUGGESTED_ALTERNATIVE>

Nothing here raises. Missing or malformed tags fall back to defaults and are
logged; deciding that a reply is unusable is the caller's job.
"""
import logging
import re
from typing import Optional, List

from .models import AiResponse

logger = logging.getLogger("parsing")

QUESTION_TAG = "QUESTION"
ANALYSIS_TAG = "ANALYSIS"
FEEDBACK_TAG = "FEEDBACK"
SUGGESTED_ALTERNATIVE_TAG = "SUGGESTED_ALTERNATIVE"
KEY_POINTS_TAG = "KEY_POINTS"

_NOT_APPLICABLE = "n/a"
_BULLET_RE = re.compile(r"^\s*(?:[-*•]\s*|\d+[.)]\s+)")
_TAG_PATTERNS = {
    tag: re.compile(rf"<{tag}>(.*?)</{tag}>", re.DOTALL)
    for tag in (QUESTION_TAG, ANALYSIS_TAG, FEEDBACK_TAG, SUGGESTED_ALTERNATIVE_TAG, KEY_POINTS_TAG)
}


def extract_tag(raw: Optional[str], tag: str) -> Optional[str]:
    """Return the trimmed contents of the first `<tag>...</tag>` pair, or None if absent."""
    if not raw:
        return None
    match = _TAG_PATTERNS[tag].search(raw)
    if match is None:
        return None
    return match.group(1).strip()


def split_lines(block: Optional[str]) -> List[str]:
    """Split on LF or CRLF only, trimming each line and dropping blanks."""
    if not block:
        return []
    lines = block.replace("\r\n", "\n").split("\n")
    return [line.strip() for line in lines if line.strip()]


def parse_key_points(raw: Optional[str]) -> List[str]:
    """Key points without their bullet markers."""
    points = []
    for line in split_lines(extract_tag(raw, KEY_POINTS_TAG)):
        point = _BULLET_RE.sub("", line, count=1).strip()
        if point:
            points.append(point)
    return points


def parse_ai_response(raw: Optional[str]) -> AiResponse:
    """
    Extract the structured fields from a raw model reply.

    Args:
        raw: Untouched model output (may be None or empty)

    Returns:
        AiResponse. `next_question` is None when the reply carries no
        question, which signals the end of the interview.
    """
    raw = raw or ""

    question = extract_tag(raw, QUESTION_TAG)
    analysis = extract_tag(raw, ANALYSIS_TAG)
    feedback = extract_tag(raw, FEEDBACK_TAG)
    alternative = extract_tag(raw, SUGGESTED_ALTERNATIVE_TAG)

    missing = [
        tag for tag, value in (
            (QUESTION_TAG, question),
            (ANALYSIS_TAG, analysis),
            (FEEDBACK_TAG, feedback),
            (SUGGESTED_ALTERNATIVE_TAG, alternative),
        ) if value is None
    ]
    if missing:
        logger.debug("Model reply missing tag(s) %s: %r", ", ".join(missing), raw[:500])

    if alternative is not None and (not alternative or alternative.lower() == _NOT_APPLICABLE):
        alternative = None

    return AiResponse(
        next_question=question or None,
        analysis=analysis or "",
        feedback_points=split_lines(feedback),
        suggested_alternative=alternative,
        key_points=parse_key_points(raw),
    )
