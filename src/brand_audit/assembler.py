"""Build the canonical Audit record from scores and page signals."""

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .models import (
    SECTION_NAMES,
    SECTION_WEIGHTS,
    Audit,
    PageSignals,
    Priority,
    Section,
    SectionScores,
)
from .scoring import (
    SCORING_VERSION,
    clamp,
    difficulty_for,
    grade,
    issue_count,
    priority_for,
    recommendation_count,
    round_score,
    validate_weights,
    weighted_overall,
)
from .scorer.synthetic import normalize_domain


SYNTHETIC = "synthetic"
EXTERNAL = "external"

CONFIDENCE = {
    SYNTHETIC: 0.7,
    EXTERNAL: 0.85,
}


@dataclass
class Provenance:
    """How an audit's scores and content were obtained."""
    scoring_method: str = SYNTHETIC
    provider: Optional[str] = None
    model: Optional[str] = None
    fallback_reason: Optional[str] = None
    acquisition_strategy: Optional[str] = None
    fetch_time_ms: Optional[int] = None
    final_url: Optional[str] = None
    cache_hit: bool = False


def company_name(url: str) -> str:
    """``https://www.acme-tools.com`` -> ``Acme-tools``."""
    domain = normalize_domain(url)
    first = domain.split(".")[0] if domain else "Website"
    return first[:1].upper() + first[1:]


def build_summary(company: str, overall: float, sections: tuple[Section, ...]) -> str:
    ranked = sorted(sections, key=lambda s: s.score, reverse=True)
    strengths = ", ".join(s.name for s in ranked[:2])
    weaknesses = ", ".join(s.name for s in ranked[-2:][::-1])
    high = sum(1 for s in sections if s.priority == Priority.HIGH)
    return (
        f"{company} scores {overall}/100 (grade {grade(overall)}) across ten brand criteria. "
        f"Strongest areas: {strengths}. "
        f"Biggest opportunities: {weaknesses}. "
        f"{high} section{'s' if high != 1 else ''} flagged as high priority."
    )


def signals_metadata(signals: PageSignals) -> dict[str, Any]:
    ux = asdict(signals.ux_features)
    ux["accessibility"]["alt_text_coverage"] = signals.ux_features.accessibility.alt_text_coverage
    return {
        "page_title": signals.title,
        "page_description": signals.description,
        "category": signals.business_context.category,
        "category_confidence": signals.business_context.confidence,
        "business_type": signals.business_context.business_type,
        "site_structure": asdict(signals.site_structure),
        "ux_features": ux,
    }


def assemble_audit(
    url: str,
    scores: SectionScores,
    signals: Optional[PageSignals] = None,
    provenance: Optional[Provenance] = None,
    audit_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Audit:
    """Combine section scores, signals and provenance into a new Audit.

    The overall score is always the weighted sum of the section scores; an
    overall stated by the model is kept in metadata only. Inputs are not
    modified.

    Raises:
        ValueError: if ``scores`` does not hold one entry per section
    """
    if len(scores.sections) != len(SECTION_NAMES):
        raise ValueError(f"Expected {len(SECTION_NAMES)} sections, got {len(scores.sections)}")
    validate_weights(SECTION_WEIGHTS)
    provenance = provenance or Provenance()

    sections = []
    for index, (name, weight, entry) in enumerate(zip(SECTION_NAMES, SECTION_WEIGHTS, scores.sections)):
        score = round_score(clamp(entry.score, 0, 100))
        sections.append(Section(
            name=name,
            score=score,
            weight=weight,
            sub_scores=tuple(entry.sub_scores),
            issues=entry.issues if entry.issues is not None else issue_count(score),
            recommendations=entry.recommendations if entry.recommendations is not None else recommendation_count(score),
            details=entry.details or f"{name} scored {score}/100.",
            priority=priority_for(index, score),
            difficulty=difficulty_for(index, score),
        ))
    section_tuple = tuple(sections)
    overall = weighted_overall([s.score for s in section_tuple])

    company = company_name(url)
    metadata: dict[str, Any] = {
        "scoring_method": provenance.scoring_method,
        "deterministic": provenance.scoring_method == SYNTHETIC,
        "provider": provenance.provider,
        "model": provenance.model,
        "confidence": CONFIDENCE.get(provenance.scoring_method, 0.5),
        "fallback_reason": provenance.fallback_reason,
        "reported_overall_score": scores.reported_overall,
        "score_cache_hit": provenance.cache_hit,
        "acquisition_strategy": provenance.acquisition_strategy,
        "fetch_time_ms": provenance.fetch_time_ms,
        "final_url": provenance.final_url,
        "scoring_version": SCORING_VERSION,
        "grade": grade(overall),
        "category": "general",
        "business_type": None,
    }
    if signals is not None:
        metadata.update(signals_metadata(signals))

    return Audit(
        id=audit_id or uuid.uuid4().hex,
        url=url,
        title=f"{company} Brand Audit Report",
        created_at=created_at or datetime.now(timezone.utc),
        overall_score=overall,
        sections=section_tuple,
        summary=build_summary(company, overall, section_tuple),
        metadata=metadata,
    )
