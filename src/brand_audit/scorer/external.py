"""Send page content to the configured model and return its raw verdict."""

import logging
import time
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from ..checks import visible_text
from ..config import Settings
from ..errors import ScorerRequestError, ScorerUnavailableError
from ..models import PageSignals
from .prompts import get_audit_prompt, get_system_prompt
from .providers import ModelProvider, get_provider


logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2  # one retry, transient failures only


def extract_page_text(html: str, max_chars: int) -> str:
    """Visible text of ``html`` (markup, scripts and styles removed), truncated."""
    return visible_text(BeautifulSoup(html, "lxml"))[:max_chars]


class ExternalScorer:
    """Adapter between the audit pipeline and a ModelProvider."""

    def __init__(
        self,
        provider: ModelProvider,
        timeout: float = 60.0,
        max_chars: int = 4000,
        retry_delay: float = 1.0,
    ):
        self.provider = provider
        self.timeout = timeout
        self.max_chars = max_chars
        self.retry_delay = retry_delay

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> "ExternalScorer":
        return cls(
            get_provider(settings, transport=transport),
            timeout=settings.scorer_timeout,
            max_chars=settings.max_content_chars,
            retry_delay=settings.scorer_retry_delay,
        )

    @property
    def available(self) -> bool:
        return self.provider.is_configured()

    def _call_timeout(self, deadline: Optional[float]) -> float:
        if deadline is None:
            return self.timeout
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ScorerRequestError("Deadline exceeded before the model replied")
        return min(self.timeout, remaining)

    def score(
        self,
        html: str,
        url: str,
        signals: Optional[PageSignals] = None,
        deadline: Optional[float] = None,
    ) -> str:
        """Ask the model for a verdict on the page.

        Args:
            html: Raw page HTML
            url: Audited URL
            signals: Analysis of the same page; its visible text is reused
            deadline: Optional ``time.monotonic()`` cut-off

        Raises:
            ScorerUnavailableError: no credential configured
            ScorerRequestError: transport failure or non-2xx, after at most one retry
        """
        if not self.available:
            raise ScorerUnavailableError(f"No API key configured for {self.provider.name}")

        if signals is not None:
            page_text = signals.text[:self.max_chars]
        else:
            page_text = extract_page_text(html, self.max_chars)

        system = get_system_prompt()
        prompt = get_audit_prompt(url, page_text, signals)

        for attempt in range(1, MAX_ATTEMPTS + 1):
            timeout = self._call_timeout(deadline)
            start = time.time()
            try:
                reply = self.provider.complete(system, prompt, timeout)
            except ScorerRequestError as e:
                if not e.retryable or attempt == MAX_ATTEMPTS:
                    raise
                logger.warning("%s call failed (%s), retrying once", self.provider.name, e)
                if self.retry_delay > 0:
                    time.sleep(self.retry_delay)
                continue

            if not reply.strip():
                raise ScorerRequestError(f"{self.provider.name} returned an empty reply")
            logger.info(
                "%s (%s) replied in %dms, %d chars",
                self.provider.name, self.provider.model, int((time.time() - start) * 1000), len(reply),
            )
            return reply

        raise AssertionError("unreachable")
