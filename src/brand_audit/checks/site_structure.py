"""Discover pages, navigation and content layout from a page's HTML."""

import re
from urllib.parse import urljoin, urldefrag, urlparse

from bs4 import BeautifulSoup

from ..models import ContentStructure, NavigationSummary, SiteStructure


DEFAULT_MAX_PAGES = 10

MENU_SELECTOR = "nav a, .nav a, .navbar a, .menu a"
SEARCH_SELECTOR = 'input[type="search"], [role="search"], .search'
LANGUAGE_SELECTOR = '[hreflang], .language, .lang, .language-selector, select[name*="lang"]'
BREADCRUMB_SELECTOR = '.breadcrumb, .breadcrumbs, [aria-label="breadcrumb"]'

# Keyword heuristics over the visible text. A page that merely mentions
# "email" gets has_contact_info; these are signals, not a page classifier.
CONTACT_RE = re.compile(r"contact|phone|email|address")
ABOUT_RE = re.compile(r"about|our story|who we are")
BLOG_RE = re.compile(r"blog|news|articles")
PRODUCTS_RE = re.compile(r"product|service|shop|buy")


def as_soup(markup: BeautifulSoup | str) -> BeautifulSoup:
    """Parse raw HTML with lxml; already-parsed pages pass through."""
    if isinstance(markup, BeautifulSoup):
        return markup
    return BeautifulSoup(markup, "lxml")


def visible_text(soup: BeautifulSoup) -> str:
    """Page text without scripts, styles and other non-rendered tags."""
    content_soup = BeautifulSoup(str(soup), "lxml")
    for tag in content_soup.find_all(["script", "style", "noscript", "template"]):
        tag.decompose()
    return " ".join(content_soup.get_text(separator=" ").split())


def _origin(url: str) -> tuple[str, str]:
    parsed = urlparse(url)
    return parsed.scheme.lower(), parsed.netloc.lower()


def discover_pages(soup: BeautifulSoup, base_url: str, max_pages: int = DEFAULT_MAX_PAGES) -> tuple[list[str], int]:
    """Same-origin page URLs linked from the page.

    Returns the first ``max_pages`` unique URLs in document order and the
    total number of unique same-origin URLs found.
    """
    base_origin = _origin(base_url)
    seen: dict[str, None] = {}

    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href or href.startswith("#"):
            continue
        try:
            resolved, _fragment = urldefrag(urljoin(base_url, href))
        except ValueError:
            continue
        scheme, netloc = _origin(resolved)
        if scheme not in ("http", "https"):
            continue  # mailto:, tel:, javascript:, ...
        if (scheme, netloc) != base_origin:
            continue
        seen.setdefault(resolved, None)

    pages = list(seen)
    return pages[:max_pages], len(pages)


def extract_navigation(soup: BeautifulSoup) -> NavigationSummary:
    menu_items = []
    for a in soup.select(MENU_SELECTOR):
        text = a.get_text(strip=True)
        if 0 < len(text) < 50:
            menu_items.append(text)

    return NavigationSummary(
        menu_items=menu_items,
        has_search=bool(soup.select(SEARCH_SELECTOR)),
        has_language_selector=bool(soup.select(LANGUAGE_SELECTOR)),
        has_breadcrumbs=bool(soup.select(BREADCRUMB_SELECTOR)),
    )


def extract_content_structure(soup: BeautifulSoup, text: str) -> ContentStructure:
    page_text = text.lower()
    return ContentStructure(
        heading_levels=[h.name for h in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])],
        has_contact_info=bool(CONTACT_RE.search(page_text)),
        has_about_page=bool(ABOUT_RE.search(page_text)),
        has_blog=bool(BLOG_RE.search(page_text)),
        has_products=bool(PRODUCTS_RE.search(page_text)),
    )


def analyze_site_structure(
    page: BeautifulSoup | str,
    base_url: str,
    max_pages: int = DEFAULT_MAX_PAGES,
    text: str | None = None,
) -> SiteStructure:
    """Build the SiteStructure for a parsed page.

    Args:
        page: Raw HTML or a parsed page
        base_url: Final URL of the page; relative links resolve against it
        max_pages: Cap on discovered pages
        text: Pre-computed visible text, if the caller already has it
    """
    soup = as_soup(page)
    if text is None:
        text = visible_text(soup)
    pages, page_count = discover_pages(soup, base_url, max_pages)
    return SiteStructure(
        discovered_pages=pages,
        navigation=extract_navigation(soup),
        content_structure=extract_content_structure(soup, text),
        page_count=page_count,
    )
