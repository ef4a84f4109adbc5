"""Deterministic heuristic scoring derived from the domain name.

Used when no external model is configured or when the external path fails.
The same domain always produces the same scores; different domains spread out
around per-section baselines.
"""

from urllib.parse import urlparse

from ..models import SECTION_NAMES, SectionInput, SectionScores, SubScore
from ..scoring import (
    MAX_SYNTHETIC_SCORE,
    MIN_SYNTHETIC_SCORE,
    clamp,
    issue_count,
    recommendation_count,
    round_score,
    weighted_overall,
)


BASELINES: tuple[float, ...] = (75, 70, 72, 68, 73, 65, 74, 71, 66, 82)
VARIANCE: tuple[float, ...] = (15, 12, 14, 16, 12, 18, 12, 14, 16, 10)
SUB_SCORE_VARIANCE = 6.0

SUB_CRITERIA: tuple[tuple[str, str, str], ...] = (
    ("Logo & Visual Identity", "Brand Voice", "Brand Recall"),
    ("Layout & Hierarchy", "Typography & Color", "Imagery"),
    ("Value Proposition", "Headline Clarity", "Tone Consistency"),
    ("Navigation", "Page Structure", "Accessibility"),
    ("Content Depth", "Content Freshness", "Multimedia"),
    ("Search Visibility", "Social Presence", "Structured Data"),
    ("Support Channels", "Self-Service", "Trust Signals"),
    ("Differentiation", "Market Positioning", "Competitive Proof"),
    ("Call-to-Action", "Lead Capture", "Funnel Friction"),
    ("Cross-Page Consistency", "Privacy & Legal", "Standards Compliance"),
)

_MASK = 0xFFFFFFFF


def normalize_domain(value: str) -> str:
    """Lower-cased host without a leading ``www.``; accepts a URL or a bare host."""
    value = value.strip().lower()
    if "://" in value:
        value = urlparse(value).hostname or ""
    else:
        value = value.split("/", 1)[0].split(":", 1)[0]
    if value.startswith("www."):
        value = value[4:]
    return value


def domain_hash(domain: str) -> int:
    """32-bit polynomial hash over the domain's characters."""
    h = 0
    for ch in domain:
        h = (h * 31 + ord(ch)) & _MASK
    return h


def _unit_offset(seed: int, salt: int) -> float:
    """Pseudo-random value in [-1, 1] for a (seed, salt) pair."""
    x = (seed ^ (salt * 0x9E3779B1)) & _MASK
    x = ((x >> 16) ^ x) * 0x45D9F3B & _MASK
    x = ((x >> 16) ^ x) * 0x45D9F3B & _MASK
    x = (x >> 16) ^ x
    return (x % 10001) / 5000 - 1.0


def _bounded(value: float) -> float:
    return round_score(clamp(value, MIN_SYNTHETIC_SCORE, MAX_SYNTHETIC_SCORE))


def section_score(seed: int, index: int) -> float:
    offset = _unit_offset(seed, index + 1) * VARIANCE[index]
    return _bounded(BASELINES[index] + offset)


def sub_scores(seed: int, index: int, parent: float) -> tuple[SubScore, ...]:
    results = []
    for j, name in enumerate(SUB_CRITERIA[index]):
        salt = 100 + index * 10 + j + 1
        score = _bounded(parent + _unit_offset(seed, salt) * SUB_SCORE_VARIANCE)
        if score == parent:
            score = parent - 0.5 if parent >= MAX_SYNTHETIC_SCORE else parent + 0.5
        results.append(SubScore(name=name, score=score))
    return tuple(results)


def _details(name: str, score: float, subs: tuple[SubScore, ...]) -> str:
    weakest = min(subs, key=lambda s: s.score)
    strongest = max(subs, key=lambda s: s.score)
    return (
        f"Overview: {name} scores {score}/100 on heuristic analysis. "
        f"Strongest area: {strongest.name} ({strongest.score}). "
        f"Weakest area: {weakest.name} ({weakest.score})."
    )


def score_domain(domain: str) -> SectionScores:
    """Score all ten sections for ``domain`` without any I/O.

    Args:
        domain: Host name or URL; normalized with normalize_domain

    Returns:
        SectionScores in catalog order with the weighted overall score
    """
    seed = domain_hash(normalize_domain(domain))
    sections = []

    for index, name in enumerate(SECTION_NAMES):
        score = section_score(seed, index)
        subs = sub_scores(seed, index, score)
        sections.append(SectionInput(
            score=score,
            sub_scores=subs,
            issues=issue_count(score),
            recommendations=recommendation_count(score),
            details=_details(name, score, subs),
        ))

    return SectionScores(
        overall_score=weighted_overall([s.score for s in sections]),
        sections=sections,
    )
