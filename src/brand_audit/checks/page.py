"""Run every structural check over one page."""

from bs4 import BeautifulSoup

from ..models import PageSignals
from .business_context import detect_business_context
from .site_structure import DEFAULT_MAX_PAGES, analyze_site_structure, visible_text
from .ux_features import analyze_ux_features


def extract_title(soup: BeautifulSoup) -> str:
    """Page title, falling back to og:title."""
    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    if not title:
        og_title = soup.find("meta", property="og:title")
        title = og_title.get("content", "").strip() if og_title else ""
    return title


def extract_description(soup: BeautifulSoup) -> str:
    """Meta description, falling back to og:description."""
    desc_tag = soup.find("meta", attrs={"name": "description"})
    description = desc_tag.get("content", "") if desc_tag else ""
    if not description:
        og_desc = soup.find("meta", property="og:description")
        description = og_desc.get("content", "") if og_desc else ""
    return description.strip()


def analyze_page(html: str, base_url: str, max_pages: int = DEFAULT_MAX_PAGES) -> PageSignals:
    """Extract site structure, UX features and business context from raw HTML.

    Pure function of its input; no network access.
    """
    soup = BeautifulSoup(html, "lxml")
    text = visible_text(soup)
    title = extract_title(soup)
    description = extract_description(soup)

    return PageSignals(
        title=title,
        description=description,
        text=text,
        site_structure=analyze_site_structure(soup, base_url, max_pages=max_pages, text=text),
        ux_features=analyze_ux_features(soup),
        business_context=detect_business_context(" ".join([title, description, text])),
    )
