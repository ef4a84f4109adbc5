"""Positional comparison of audits over time."""

from .errors import ComparisonContractError
from .models import Audit, ComparisonResult, ScoreDelta, Trend
from .scoring import round_score


MAX_AUDITS = 3
NO_CHANGE_BELOW = 2.0


def score_delta(previous: float, current: float) -> ScoreDelta:
    """Classify the change from ``previous`` to ``current``."""
    delta = round_score(current - previous)
    if abs(delta) < NO_CHANGE_BELOW:
        trend = Trend.NO_CHANGE
    elif delta > 0:
        trend = Trend.INCREASE
    else:
        trend = Trend.DECREASE
    return ScoreDelta(previous=previous, current=current, delta=delta, trend=trend)


def compare_audits(audits: list[Audit]) -> ComparisonResult:
    """Compare 1-3 audits in the order given.

    Section *i* of one audit is compared only with section *i* of the next;
    the audits must list the same sections in the same order.

    Raises:
        ComparisonContractError: empty or over-sized input, or section orderings differ
    """
    audits = list(audits)
    if not audits:
        raise ComparisonContractError("At least one audit is required")
    if len(audits) > MAX_AUDITS:
        raise ComparisonContractError(f"At most {MAX_AUDITS} audits can be compared, got {len(audits)}")

    reference = audits[0].section_names
    for audit in audits[1:]:
        if audit.section_names != reference:
            raise ComparisonContractError(
                f"Audit {audit.id} has a different section ordering than audit {audits[0].id}"
            )

    result = ComparisonResult(audits=audits)
    result.overall_trends.append(None)
    for index in range(len(reference)):
        result.section_deltas[index] = []

    for previous, current in zip(audits, audits[1:]):
        result.overall_trends.append(score_delta(previous.overall_score, current.overall_score))
        for index, (before, after) in enumerate(zip(previous.sections, current.sections)):
            result.section_deltas[index].append(score_delta(before.score, after.score))

    return result
