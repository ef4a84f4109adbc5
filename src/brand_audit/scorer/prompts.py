"""Prompt templates for the external scorer."""

from typing import Optional

from ..models import SECTION_NAMES, SECTION_WEIGHTS, PageSignals


def section_catalog() -> str:
    return "\n".join(
        f"{i}. {name} ({int(round(weight * 100))}%)"
        for i, (name, weight) in enumerate(zip(SECTION_NAMES, SECTION_WEIGHTS), 1)
    )


def get_system_prompt() -> str:
    """Instructions naming the ten sections in the order they must be scored."""
    return f"""You are a senior brand strategist auditing a company's website.

Evaluate the site across exactly these 10 criteria, in this order. Weights for the overall /100 score:
{section_catalog()}

Be candid and base every score on the page content provided. Scores must vary between sections.

Reply with a JSON object:
{{
  "overallScore": <number 0-100>,
  "sections": [
    {{"name": "<criterion>", "score": <number 0-100>, "issues": <number>, "recommendations": <number>, "details": "<analysis>"}}
  ],
  "summary": "<overall assessment>"
}}

If you cannot produce JSON, use exactly this format instead:
**Overall: X/100**
1. <criterion> – X/10
...
10. <criterion> – X/10"""


def get_audit_prompt(url: str, page_text: str, signals: Optional[PageSignals] = None) -> str:
    """User prompt with the page content and extracted signals."""
    lines = [f"Audit this brand's website: {url}", ""]

    if signals is not None:
        structure = signals.site_structure
        ux = signals.ux_features
        lines += [
            f"- Title: {signals.title or 'n/a'}",
            f"- Description: {signals.description or 'n/a'}",
            f"- Detected industry: {signals.business_context.category}",
            f"- Navigation: {', '.join(structure.navigation.menu_items[:15]) or 'n/a'}",
            f"- Internal pages linked: {structure.page_count}",
            f"- Forms: {ux.forms.count}, images: {ux.media.images}, "
            f"alt-text coverage: {ux.accessibility.alt_text_coverage:.0%}",
            f"- Social links: {ux.social.social_links}",
            f"- HTTPS: {'yes' if url.startswith('https://') else 'no'}",
            "",
        ]

    lines += ["Page content:", page_text or "(no readable text)"]
    return "\n".join(lines)
