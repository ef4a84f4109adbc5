"""Section scoring: synthetic heuristics or an external model."""

from .cache import PageSignature, ScoreCache, page_signature
from .external import ExternalScorer
from .normalizer import ParsedJson, ParsedProse, Unparseable, normalize_response, parse_response
from .providers import ModelProvider, get_provider
from .synthetic import score_domain

__all__ = [
    "ExternalScorer",
    "ModelProvider",
    "PageSignature",
    "ParsedJson",
    "ParsedProse",
    "ScoreCache",
    "Unparseable",
    "get_provider",
    "normalize_response",
    "page_signature",
    "parse_response",
    "score_domain",
]
