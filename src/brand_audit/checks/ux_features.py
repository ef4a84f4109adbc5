"""Forms, accessibility, interactivity, media and social signals."""

from urllib.parse import urlparse

from bs4 import BeautifulSoup

from ..models import (
    AccessibilitySignals,
    FormSignals,
    InteractivitySignals,
    MediaSignals,
    SocialSignals,
    UXFeatures,
)
from .site_structure import as_soup


SOCIAL_HOSTS = {
    "facebook.com",
    "twitter.com",
    "x.com",
    "linkedin.com",
    "instagram.com",
    "youtube.com",
    "tiktok.com",
}


def _is_social_link(href: str) -> bool:
    host = urlparse(href).netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    return host in SOCIAL_HOSTS or any(host.endswith("." + h) for h in SOCIAL_HOSTS)


def check_forms(soup: BeautifulSoup) -> FormSignals:
    forms = soup.find_all("form")
    return FormSignals(
        count=len(forms),
        has_labels=bool(soup.find("label")),
        has_validation=bool(soup.select("[required], .required")),
        has_contact_form=any("contact" in f.get_text().lower() for f in forms),
    )


def check_accessibility(soup: BeautifulSoup) -> AccessibilitySignals:
    images = soup.find_all("img")
    return AccessibilitySignals(
        images_with_alt=sum(1 for img in images if img.has_attr("alt")),
        images_total=len(images),
        has_skip_links=bool(soup.select('a[href="#content"], a[href="#main"], a[href="#main-content"]')),
        has_aria_labels=bool(soup.select("[aria-label], [aria-labelledby]")),
        heading_structure_valid=len(soup.find_all("h1")) == 1,
    )


def check_interactivity(soup: BeautifulSoup) -> InteractivitySignals:
    return InteractivitySignals(
        buttons=len(soup.select('button, input[type="button"], input[type="submit"]')),
        dropdowns=len(soup.select("select, .dropdown")),
        modals=len(soup.select("[data-modal], .modal, dialog")),
        carousels=len(soup.select("[data-carousel], .carousel, .slider")),
    )


def check_media(soup: BeautifulSoup) -> MediaSignals:
    return MediaSignals(
        images=len(soup.find_all("img")),
        videos=len(soup.select('video, iframe[src*="youtube"], iframe[src*="vimeo"]')),
        has_lazy_loading=bool(soup.select('[loading="lazy"], [data-src]')),
    )


def check_social(soup: BeautifulSoup) -> SocialSignals:
    links = [a["href"] for a in soup.find_all("a", href=True)]
    return SocialSignals(
        social_links=sum(1 for href in links if _is_social_link(href)),
        has_social_sharing=bool(soup.select(".share, .social-share, [data-share]")),
    )


def analyze_ux_features(page: BeautifulSoup | str) -> UXFeatures:
    """Collect UX signals from raw HTML or a parsed page."""
    soup = as_soup(page)
    return UXFeatures(
        forms=check_forms(soup),
        accessibility=check_accessibility(soup),
        interactivity=check_interactivity(soup),
        media=check_media(soup),
        social=check_social(soup),
    )
