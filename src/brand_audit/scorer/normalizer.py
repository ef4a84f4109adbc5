"""Turn free-form model output into the ten canonical section scores.

Two encodings are understood:

* an embedded JSON object with ``overallScore`` and ``sections``
* prose with an ``Overall: X/100`` line and ``N. <name> – X/10`` lines

Sections are matched to the catalog by position. Whatever the model calls a
section, the third scored line is always "Messaging". Missing sections get
the overall score.
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..errors import NormalizationError
from ..models import SECTION_NAMES, SectionInput, SectionScores, SubScore
from ..scoring import clamp, round_score


OVERALL_RE = re.compile(
    r"overall(?:\s+score)?\s*\**\s*[:\-–—]?\s*\**\s*(\d+(?:\.\d+)?)\s*/\s*100",
    re.IGNORECASE,
)
SECTION_LINE_RE = re.compile(
    r"^[\s#>*]*(\d+)\.\s+(.+?)\s*\**\s*[–—-]\s*\**\s*(\d+(?:\.\d+)?)\s*/\s*10\b",
    re.MULTILINE,
)


@dataclass(frozen=True)
class ParsedJson:
    overall_score: float
    sections: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedProse:
    overall_score: float
    section_scores: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class Unparseable:
    reason: str


ParsedResponse = Union[ParsedJson, ParsedProse, Unparseable]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_finite(value: Any) -> Optional[float]:
    """``value`` as a finite float, or None when it is not a usable number.

    Integers too large for a float, NaN and infinities are not usable.
    """
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def find_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON strings are ignored. Starts that never balance are
    skipped.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        start = text.find("{", start + 1)
    return None


def parse_json_form(text: str) -> Optional[ParsedJson]:
    span = find_json_object(text)
    if span is None:
        return None
    try:
        data = json.loads(span)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    overall = as_finite(data.get("overallScore"))
    sections = data.get("sections")
    if overall is None or not isinstance(sections, list) or not sections:
        return None
    return ParsedJson(overall_score=overall, sections=sections)


def parse_prose_form(text: str) -> Optional[ParsedProse]:
    overall_match = OVERALL_RE.search(text)
    overall = as_finite(float(overall_match.group(1))) if overall_match else None
    if overall is None:
        return None

    scores = []
    for match in SECTION_LINE_RE.finditer(text):
        score = as_finite(float(match.group(3)))
        if score is None:
            continue
        scores.append(score * 10)
        if len(scores) == len(SECTION_NAMES):
            break
    return ParsedProse(overall_score=overall, section_scores=scores)


def parse_response(text: str) -> ParsedResponse:
    """Classify raw model output as JSON, prose or unparseable."""
    if not text or not text.strip():
        return Unparseable("empty response")

    parsed: Optional[ParsedResponse] = parse_json_form(text)
    if parsed is not None:
        return parsed
    parsed = parse_prose_form(text)
    if parsed is not None:
        return parsed
    return Unparseable("no overall score found")


def _score_value(value: Any, max_score: Any = None) -> Optional[float]:
    number = as_finite(value)
    if number is None:
        return None
    scale = as_finite(max_score)
    if scale is not None and scale > 0:
        number = number / scale * 100
    return round_score(clamp(number, 0, 100))


def _json_section(item: Any, default: float) -> SectionInput:
    if not isinstance(item, dict):
        return SectionInput(score=default)

    score = _score_value(item.get("score"), item.get("maxScore"))

    recommendations = item.get("recommendations")
    if isinstance(recommendations, list):
        recommendations = len(recommendations)
    elif not isinstance(recommendations, int) or isinstance(recommendations, bool) or recommendations < 0:
        recommendations = None

    issues = item.get("issues")
    if isinstance(issues, list):
        issues = len(issues)
    elif not isinstance(issues, int) or isinstance(issues, bool) or issues < 0:
        issues = None

    subs = []
    for sub in item.get("subScores") or []:
        if isinstance(sub, dict) and isinstance(sub.get("name"), str):
            sub_score = _score_value(sub.get("score"), sub.get("maxScore"))
            if sub_score is not None:
                subs.append(SubScore(name=sub["name"], score=sub_score))

    details = item.get("details")
    return SectionInput(
        score=default if score is None else score,
        sub_scores=tuple(subs),
        issues=issues,
        recommendations=recommendations,
        details=details if isinstance(details, str) else "",
    )


def normalize_response(text: str) -> SectionScores:
    """Normalize raw model output into exactly ten ordered sections.

    Raises:
        NormalizationError: when neither encoding yields an overall score
    """
    parsed = parse_response(text)

    if isinstance(parsed, Unparseable):
        raise NormalizationError(parsed.reason)

    overall = round_score(clamp(parsed.overall_score, 0, 100))
    count = len(SECTION_NAMES)

    if isinstance(parsed, ParsedJson):
        items = parsed.sections[:count]
        sections = [_json_section(item, overall) for item in items]
    else:
        sections = [
            SectionInput(score=round_score(clamp(score, 0, 100)))
            for score in parsed.section_scores[:count]
        ]

    # Back-fill missing sections with the overall score as a neutral default
    sections.extend(SectionInput(score=overall) for _ in range(count - len(sections)))

    return SectionScores(overall_score=overall, sections=sections, reported_overall=overall)
