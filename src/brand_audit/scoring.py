"""Scoring constants and the fields derived from a section score."""

from .models import SECTION_NAMES, SECTION_WEIGHTS, Difficulty, Priority


SCORING_VERSION = "3.0.0"

MIN_SYNTHETIC_SCORE = 20.0
MAX_SYNTHETIC_SCORE = 95.0

# Per-section cut-offs for priority and difficulty. They differ per section
# and are kept as-is; changing them changes every stored audit's labels.
SECTION_THRESHOLDS: tuple[int, ...] = (60, 55, 60, 65, 60, 65, 55, 60, 65, 55)

WEIGHT_TOLERANCE = 0.001


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_score(value: float) -> float:
    """Round to one decimal."""
    return round(float(value), 1)


def validate_weights(weights: tuple[float, ...] = SECTION_WEIGHTS) -> None:
    """Raise ValueError unless there is one weight per section and they sum to 1."""
    if len(weights) != len(SECTION_NAMES):
        raise ValueError(f"Expected {len(SECTION_NAMES)} weights, got {len(weights)}")
    total = sum(weights)
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ValueError(f"Section weights must sum to 1.0, got {total}")


def weighted_overall(scores: list[float], weights: tuple[float, ...] = SECTION_WEIGHTS) -> float:
    """Weighted sum of the section scores, rounded to one decimal."""
    if len(scores) != len(weights):
        raise ValueError(f"Expected {len(weights)} section scores, got {len(scores)}")
    return round_score(sum(score * weight for score, weight in zip(scores, weights)))


def issue_count(score: float) -> int:
    """Lower scores carry more issues (1-6)."""
    return int(clamp(round((100 - score) / 15), 1, 6))


def recommendation_count(score: float) -> int:
    """Lower scores carry more recommendations (1-5)."""
    return int(clamp(round((100 - score) / 20), 1, 5))


def priority_for(index: int, score: float) -> Priority:
    threshold = SECTION_THRESHOLDS[index]
    if score < threshold:
        return Priority.HIGH
    if score < threshold + 20:
        return Priority.MEDIUM
    return Priority.LOW


def difficulty_for(index: int, score: float) -> Difficulty:
    threshold = SECTION_THRESHOLDS[index]
    if score < threshold - 10:
        return Difficulty.HARD
    if score < threshold + 15:
        return Difficulty.MEDIUM
    return Difficulty.EASY


def grade(score: float) -> str:
    """Letter grade for an overall score."""
    if score >= 90:
        return "A"
    elif score >= 80:
        return "B"
    elif score >= 70:
        return "C"
    elif score >= 60:
        return "D"
    else:
        return "F"
