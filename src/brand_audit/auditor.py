"""Main auditor that runs the whole pipeline for one URL."""

import logging
import time
from typing import Optional
from urllib.parse import urlparse

from .assembler import EXTERNAL, SYNTHETIC, Provenance, assemble_audit
from .checks import analyze_page
from .config import Settings, get_settings
from .errors import (
    AcquisitionError,
    InvalidURLError,
    NormalizationError,
    ScorerRequestError,
    ScorerUnavailableError,
    StoreError,
)
from .fetcher import ContentAcquirer, FetchResult
from .models import Audit, PageSignals, SectionScores
from .scorer import ExternalScorer, ScoreCache, normalize_response, page_signature, score_domain
from .store import AuditStore


logger = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Ensure URL has a scheme."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


def validate_url(url: str) -> str:
    """Normalize ``url`` and reject anything that is not an auditable http(s) URL.

    Raises:
        InvalidURLError: before any network access
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError("URL is required")
    if "://" in url.strip() and not url.strip().lower().startswith(("http://", "https://")):
        raise InvalidURLError(f"Unsupported URL scheme: {url}")

    url = normalize_url(url)
    try:
        parsed = urlparse(url)
        host = parsed.hostname
        parsed.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL: {url}") from e

    if not host or any(c.isspace() for c in url):
        raise InvalidURLError(f"Invalid URL: {url}")
    if "." not in host and host != "localhost":
        raise InvalidURLError(f"Invalid host: {host}")
    return url


class Auditor:
    """Acquire -> analyze -> score -> assemble (-> store) for one URL at a time.

    Holds configuration and collaborators only (the score cache locks), so one
    instance can serve concurrent ``run`` calls.
    """

    def __init__(
        self,
        settings: Settings,
        acquirer: Optional[ContentAcquirer] = None,
        scorer: Optional[ExternalScorer] = None,
        store: Optional[AuditStore] = None,
        cache: Optional[ScoreCache] = None,
    ):
        self.settings = settings
        self.acquirer = acquirer or ContentAcquirer.from_settings(settings)
        self.scorer = scorer or ExternalScorer.from_settings(settings)
        self.store = store
        self.cache = cache if cache is not None else ScoreCache.from_days(settings.score_cache_days)

    def run(self, url: str, synthetic_only: bool = False) -> Audit:
        """Produce an audit for ``url``.

        Every failure after URL validation falls back to synthetic scoring;
        the reason ends up in ``metadata["fallback_reason"]``.

        Args:
            url: URL or bare domain
            synthetic_only: Skip the external model even when configured

        Raises:
            InvalidURLError: if the URL is not auditable
        """
        url = validate_url(url)
        deadline = time.monotonic() + self.settings.audit_timeout
        provenance = Provenance(scoring_method=SYNTHETIC)

        fetched: Optional[FetchResult] = None
        signals: Optional[PageSignals] = None
        try:
            fetched = self.acquirer.acquire(url, deadline=deadline)
        except AcquisitionError as e:
            logger.warning("Could not fetch %s, using synthetic scoring: %s", url, e)
            provenance.fallback_reason = f"acquisition failed: {e}"
        else:
            signals = analyze_page(fetched.html, fetched.final_url, max_pages=self.settings.max_discovered_pages)
            provenance.acquisition_strategy = fetched.strategy
            provenance.fetch_time_ms = fetched.fetch_time_ms
            provenance.final_url = fetched.final_url
            logger.debug(
                "Analyzed %s: %d pages discovered, %d forms, category %s",
                url,
                len(signals.site_structure.discovered_pages),
                signals.ux_features.forms.count,
                signals.business_context.category,
            )

        scores = None
        if fetched is not None and not synthetic_only:
            scores = self._external_scores(url, fetched, signals, deadline, provenance)

        if scores is None:
            scores = score_domain(url)

        audit = assemble_audit(url, scores, signals=signals, provenance=provenance)
        logger.info(
            "Audit %s for %s: %.1f/100 (%s)",
            audit.id, url, audit.overall_score, provenance.scoring_method,
        )

        if self.store is not None:
            try:
                self.store.put(audit)
            except StoreError as e:
                logger.error("Audit %s was generated but not saved: %s", audit.id, e)
        return audit

    def _external_scores(
        self,
        url: str,
        fetched: FetchResult,
        signals: PageSignals,
        deadline: float,
        provenance: Provenance,
    ) -> Optional[SectionScores]:
        """Model scores for the page, or None after recording why there are none."""
        signature = page_signature(signals)
        if self.scorer.available:
            cached = self.cache.get(signature)
            if cached is not None:
                logger.info("Page content of %s is unchanged, re-using cached %s scores", url, cached.provider)
                provenance.scoring_method = EXTERNAL
                provenance.provider = cached.provider
                provenance.model = cached.model
                provenance.cache_hit = True
                return cached.scores

        try:
            raw = self.scorer.score(fetched.html, url, signals=signals, deadline=deadline)
            scores = normalize_response(raw)
        except ScorerUnavailableError as e:
            logger.info("External scorer unavailable (%s), using synthetic scoring", e)
            provenance.fallback_reason = "external scorer not configured"
            return None
        except ScorerRequestError as e:
            logger.warning("External scorer failed for %s, using synthetic scoring: %s", url, e)
            provenance.fallback_reason = f"scorer request failed: {e}"
            return None
        except NormalizationError as e:
            logger.warning("Could not parse scorer output for %s, using synthetic scoring: %s", url, e)
            provenance.fallback_reason = f"unparseable scorer output: {e}"
            return None

        provenance.scoring_method = EXTERNAL
        provenance.provider = self.scorer.provider.name
        provenance.model = self.scorer.provider.model
        self.cache.put(signature, scores, provenance.provider, provenance.model)
        return scores


def generate_audit(url: str, settings: Optional[Settings] = None) -> Audit:
    """Run a complete brand audit on a URL.

    Args:
        url: The URL to audit
        settings: Configuration; read from the environment when omitted

    Returns:
        Audit with ten scored sections
    """
    return Auditor(settings or get_settings()).run(url)
