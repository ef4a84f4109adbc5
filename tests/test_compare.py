"""Tests for the comparison engine."""

from dataclasses import replace

import pytest

from brand_audit.assembler import assemble_audit
from brand_audit.compare import compare_audits, score_delta
from brand_audit.errors import ComparisonContractError
from brand_audit.models import SectionInput, SectionScores, Trend


def make_audit(score, url="https://acme.example.com"):
    """Audit with every section at ``score``, so the overall is ``score`` too."""
    scores = SectionScores(overall_score=score, sections=[SectionInput(score=score) for _ in range(10)])
    return assemble_audit(url, scores)


class TestScoreDelta:
    """Test score_delta."""

    def test_increase(self):
        delta = score_delta(60, 65)
        assert delta.trend == Trend.INCREASE
        assert delta.delta == 5.0
        assert delta.label == "+5.0"

    def test_decrease(self):
        delta = score_delta(72.5, 60)
        assert delta.trend == Trend.DECREASE
        assert delta.label == "-12.5"

    def test_small_change_is_no_change(self):
        delta = score_delta(60, 61.9)
        assert delta.trend == Trend.NO_CHANGE
        assert delta.label == "no change"
        assert delta.delta == 1.9

    def test_two_points_is_a_change(self):
        assert score_delta(60, 62).trend == Trend.INCREASE
        assert score_delta(62, 60).trend == Trend.DECREASE

    def test_one_decimal_steps_of_two_are_changes(self):
        # e.g. 30.3 -> 32.3 differs by slightly less than 2.0 in float arithmetic
        for tenths in range(200, 980):
            previous = tenths / 10
            current = round(previous + 2.0, 1)
            up = score_delta(previous, current)
            down = score_delta(current, previous)
            assert up.trend == Trend.INCREASE, (previous, current)
            assert up.delta == 2.0
            assert down.trend == Trend.DECREASE, (current, previous)
            assert down.delta == -2.0

    def test_one_decimal_steps_under_two_are_no_change(self):
        for tenths in range(200, 980):
            previous = tenths / 10
            assert score_delta(previous, round(previous + 1.9, 1)).trend == Trend.NO_CHANGE


class TestCompareAudits:
    """Test compare_audits."""

    def test_two_audits(self):
        first, second = make_audit(60), make_audit(65)
        result = compare_audits([first, second])

        assert result.overall_trends[0] is None
        assert result.overall_trends[1].label == "+5.0"
        assert result.overall_trends[1].trend == Trend.INCREASE
        assert result.section_deltas[0][0].label == "+5.0"
        assert len(result.section_deltas) == 10
        assert result.section_names == first.section_names

    def test_three_audits_in_input_order(self):
        result = compare_audits([make_audit(70), make_audit(60), make_audit(61)])
        assert [d.trend for d in result.overall_trends[1:]] == [Trend.DECREASE, Trend.NO_CHANGE]
        assert [d.label for d in result.section_deltas[9]] == ["-10.0", "no change"]

    def test_single_audit(self):
        result = compare_audits([make_audit(50)])
        assert result.overall_trends == [None]
        assert all(deltas == [] for deltas in result.section_deltas.values())

    def test_empty_rejected(self):
        with pytest.raises(ComparisonContractError):
            compare_audits([])

    def test_more_than_three_rejected(self):
        with pytest.raises(ComparisonContractError):
            compare_audits([make_audit(50) for _ in range(4)])

    def test_misaligned_sections_rejected(self):
        first = make_audit(60)
        reordered = replace(make_audit(65), sections=tuple(reversed(make_audit(65).sections)))
        with pytest.raises(ComparisonContractError):
            compare_audits([first, reordered])

    def test_missing_section_rejected(self):
        first = make_audit(60)
        shorter = replace(make_audit(65), sections=make_audit(65).sections[:9])
        with pytest.raises(ComparisonContractError):
            compare_audits([first, shorter])
