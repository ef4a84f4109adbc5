"""Guess the industry and business model of a site from its copy."""

import re

from ..models import BusinessContext


INDUSTRY_PATTERNS: dict[str, re.Pattern] = {
    "ecommerce": re.compile(r"\b(shop|store|buy|cart|product|ecommerce|marketplace|retail|purchase|checkout)\b"),
    "saas": re.compile(r"\b(software|saas|platform|dashboard|api|subscription|trial|demo|app|cloud)\b"),
    "healthcare": re.compile(r"\b(health|medical|doctor|clinic|hospital|patient|therapy|wellness|medicine)\b"),
    "finance": re.compile(r"\b(finance|bank|investment|loan|insurance|mortgage|credit|financial|wealth)\b"),
    "education": re.compile(r"\b(education|school|university|course|learning|student|teacher|academic|training)\b"),
    "realestate": re.compile(r"\b(real estate|property|homes|rent|lease|realtor|listing|mls)\b"),
    "restaurant": re.compile(r"\b(restaurant|food|menu|dining|chef|cuisine|delivery|catering|takeout)\b"),
    "legal": re.compile(r"\b(law|lawyer|attorney|legal|court|litigation|counsel)\b"),
    "consulting": re.compile(r"\b(consulting|consultant|advisory|strategy|expert|professional services)\b"),
    "agency": re.compile(r"\b(agency|marketing|advertising|creative|branding|media)\b"),
    "nonprofit": re.compile(r"\b(nonprofit|charity|donation|donate|volunteer|foundation|cause)\b"),
    "portfolio": re.compile(r"\b(portfolio|designer|photographer|artist|freelance)\b"),
}

# First match wins, in this order.
BUSINESS_TYPE_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("b2b", re.compile(r"\b(enterprise|business|corporate|professional|solution|industry|commercial)\b")),
    ("b2c", re.compile(r"\b(customer|consumer|personal|individual|family|home|lifestyle)\b")),
    ("marketplace", re.compile(r"\b(marketplace|connect|network|community|seller|buyer)\b")),
]


def detect_business_context(text: str) -> BusinessContext:
    """Pick the industry whose keywords appear most often.

    Confidence is the number of distinct keywords hit, divided by three and
    capped at 1.0. Ties go to the industry listed first.
    """
    text = text.lower()
    category = "general"
    best_hits = 0

    for industry, pattern in INDUSTRY_PATTERNS.items():
        hits = len(set(pattern.findall(text)))
        if hits > best_hits:
            category = industry
            best_hits = hits

    business_type = "b2c"
    for name, pattern in BUSINESS_TYPE_PATTERNS:
        if pattern.search(text):
            business_type = name
            break

    return BusinessContext(
        category=category,
        confidence=round(min(best_hits / 3, 1.0), 2),
        business_type=business_type,
    )
