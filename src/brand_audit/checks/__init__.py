"""Structural and UX checks over a page's HTML."""

from .business_context import detect_business_context
from .page import analyze_page
from .site_structure import analyze_site_structure, visible_text
from .ux_features import analyze_ux_features

__all__ = [
    "analyze_page",
    "analyze_site_structure",
    "analyze_ux_features",
    "detect_business_context",
    "visible_text",
]
