"""Tests for audit assembly."""

from dataclasses import replace
from datetime import timezone

import pytest

from brand_audit.assembler import EXTERNAL, Provenance, assemble_audit, company_name
from brand_audit.checks import analyze_page
from brand_audit.models import SECTION_NAMES, SECTION_WEIGHTS, Priority, SectionInput, SectionScores
from brand_audit.scorer import normalize_response, score_domain
from brand_audit.scoring import SCORING_VERSION

from conftest import BASE_URL, SAMPLE_HTML


class TestAssembleAudit:
    """Test assemble_audit."""

    def test_sections_follow_catalog(self):
        audit = assemble_audit(BASE_URL, score_domain(BASE_URL))
        assert audit.section_names == SECTION_NAMES
        assert tuple(s.weight for s in audit.sections) == SECTION_WEIGHTS

    def test_overall_is_weighted_sum(self):
        audit = assemble_audit(BASE_URL, score_domain(BASE_URL))
        expected = sum(s.score * s.weight for s in audit.sections)
        assert abs(audit.overall_score - expected) <= 0.051

    def test_reported_overall_kept_in_metadata(self):
        scores = normalize_response("Overall: 99/100\n1. Branding – 5/10")
        audit = assemble_audit(BASE_URL, scores, provenance=Provenance(scoring_method=EXTERNAL))
        assert audit.metadata["reported_overall_score"] == 99
        assert audit.overall_score < 99
        assert audit.overall_score == round(sum(s.score * s.weight for s in audit.sections), 1)

    def test_synthetic_metadata(self):
        audit = assemble_audit(BASE_URL, score_domain(BASE_URL))
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["confidence"] == 0.7
        assert audit.metadata["scoring_version"] == SCORING_VERSION
        assert audit.metadata["category"] == "general"
        assert audit.deterministic

    def test_external_metadata(self):
        provenance = Provenance(scoring_method=EXTERNAL, provider="Grok", model="grok-4-0709")
        audit = assemble_audit(BASE_URL, score_domain(BASE_URL), provenance=provenance)
        assert audit.metadata["confidence"] == 0.85
        assert audit.metadata["provider"] == "Grok"
        assert not audit.deterministic

    def test_metadata_is_read_only(self):
        audit = assemble_audit(BASE_URL, score_domain(BASE_URL))
        with pytest.raises(TypeError):
            audit.metadata["scoring_method"] = "external"
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["score_cache_hit"] is False

    def test_metadata_copied_from_caller(self):
        audit = assemble_audit(BASE_URL, score_domain(BASE_URL))
        source = {"scoring_method": "synthetic"}
        rebuilt = replace(audit, metadata=source)
        source["scoring_method"] = "external"
        assert rebuilt.metadata["scoring_method"] == "synthetic"

    def test_signals_in_metadata(self):
        signals = analyze_page(SAMPLE_HTML, BASE_URL)
        audit = assemble_audit(BASE_URL, score_domain(BASE_URL), signals=signals)
        assert audit.metadata["category"] == "ecommerce"
        assert audit.metadata["page_title"] == "Acme Tools - Quality hardware"
        assert audit.metadata["ux_features"]["accessibility"]["alt_text_coverage"] == 0.5
        assert len(audit.metadata["site_structure"]["discovered_pages"]) == 3

    def test_derived_fields_when_scorer_gives_none(self):
        scores = SectionScores(overall_score=40, sections=[SectionInput(score=40) for _ in range(10)])
        audit = assemble_audit(BASE_URL, scores)
        branding = audit.sections[0]
        assert branding.issues == 4
        assert branding.recommendations == 3
        assert branding.priority == Priority.HIGH
        assert branding.details

    def test_scorer_counts_preferred(self):
        scores = SectionScores(
            overall_score=40,
            sections=[SectionInput(score=40, issues=0, recommendations=9) for _ in range(10)],
        )
        section = assemble_audit(BASE_URL, scores).sections[0]
        assert section.issues == 0
        assert section.recommendations == 9

    def test_priorities_sorted_lowest_first(self):
        values = [30, 90, 20, 90, 90, 90, 90, 90, 90, 90]
        scores = SectionScores(overall_score=0, sections=[SectionInput(score=v) for v in values])
        audit = assemble_audit(BASE_URL, scores)
        assert [s.name for s in audit.priorities] == ["Messaging", "Branding"]

    def test_wrong_section_count(self):
        scores = SectionScores(overall_score=50, sections=[SectionInput(score=50)] * 9)
        with pytest.raises(ValueError):
            assemble_audit(BASE_URL, scores)

    def test_identity_fields(self):
        first = assemble_audit("https://www.acme.com", score_domain("acme.com"))
        second = assemble_audit("https://www.acme.com", score_domain("acme.com"))
        assert first.id != second.id
        assert first.title == "Acme Brand Audit Report"
        assert first.created_at.tzinfo == timezone.utc
        assert first.summary.startswith("Acme scores")

    def test_inputs_not_modified(self):
        scores = score_domain(BASE_URL)
        before = [s.score for s in scores.sections]
        assemble_audit(BASE_URL, scores)
        assert [s.score for s in scores.sections] == before


def test_company_name():
    assert company_name("https://www.acme-tools.com/about") == "Acme-tools"
    assert company_name("") == "Website"
