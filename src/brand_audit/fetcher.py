"""Fetch page HTML, falling back to a rendering proxy for sites that block bots."""

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import Settings
from .errors import AcquisitionError, BlockedError, InsufficientContentError


logger = logging.getLogger(__name__)


BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}

BLOCK_STATUS_CODES = {403, 429, 503}

# Matched against the page <title> only; scripts on normal pages mention captcha too.
BLOCK_TITLE_MARKERS = (
    "just a moment",
    "attention required",
    "access denied",
    "captcha",
    "are you a robot",
    "security check",
)

TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


@dataclass
class FetchResult:
    """Raw HTML for a URL and how it was obtained."""
    url: str
    final_url: str  # After redirects
    html: str
    status_code: int
    fetch_time_ms: int
    strategy: str


def looks_blocked(response: httpx.Response) -> bool:
    """Whether a response is an anti-automation wall rather than the page."""
    if response.status_code in BLOCK_STATUS_CODES:
        return True
    if response.headers.get("cf-mitigated", "").lower() == "challenge":
        return True
    match = TITLE_RE.search(response.text[:5000])
    if match:
        title = match.group(1).strip().lower()
        return any(marker in title for marker in BLOCK_TITLE_MARKERS)
    return False


class FetchStrategy(ABC):
    """One way of getting a page's HTML.

    ``fetch`` returns a FetchResult or raises an AcquisitionError. The acquirer
    moves on to the next strategy only for errors listed in ``fallback_on``.
    """

    name: str
    fallback_on: tuple[type[AcquisitionError], ...] = (AcquisitionError,)

    def __init__(self, timeout: float, min_content_bytes: int = 100):
        self.timeout = timeout
        self.min_content_bytes = min_content_bytes

    @abstractmethod
    def fetch(self, url: str, client: httpx.Client, timeout: float) -> FetchResult:
        """Fetch ``url`` within ``timeout`` seconds."""

    def _check_length(self, url: str, response: httpx.Response) -> None:
        size = len(response.content)
        if size < self.min_content_bytes:
            raise InsufficientContentError(
                f"{self.name}: only {size} bytes returned",
                url=url,
                status_code=response.status_code,
            )


class DirectFetch(FetchStrategy):
    """Plain GET with browser headers."""

    name = "direct"
    fallback_on = (BlockedError, InsufficientContentError)

    def fetch(self, url: str, client: httpx.Client, timeout: float) -> FetchResult:
        start_time = time.time()
        try:
            response = client.get(
                url,
                headers=BROWSER_HEADERS,
                timeout=timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException as e:
            raise AcquisitionError(f"Timeout after {timeout:.0f}s", url=url) from e
        except httpx.RequestError as e:
            raise AcquisitionError(f"Request failed: {e}", url=url) from e

        if looks_blocked(response):
            raise BlockedError(
                f"Blocked by site (HTTP {response.status_code})",
                url=url,
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise AcquisitionError(
                f"HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        self._check_length(url, response)

        return FetchResult(
            url=url,
            final_url=str(response.url),
            html=response.text,
            status_code=response.status_code,
            fetch_time_ms=int((time.time() - start_time) * 1000),
            strategy=self.name,
        )


class RenderingProxyFetch(FetchStrategy):
    """Fetch through a scraping proxy, optionally executing client-side scripts."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        timeout: float,
        render: bool = True,
        min_content_bytes: int = 100,
    ):
        super().__init__(timeout, min_content_bytes)
        self.api_key = api_key
        self.api_url = api_url
        self.render = render
        self.name = "proxy-render" if render else "proxy"

    def fetch(self, url: str, client: httpx.Client, timeout: float) -> FetchResult:
        params = {"api_key": self.api_key, "url": url}
        if self.render:
            params["render"] = "true"

        start_time = time.time()
        try:
            response = client.get(
                self.api_url,
                params=params,
                headers={"Accept": BROWSER_HEADERS["Accept"]},
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise AcquisitionError(f"{self.name}: timeout after {timeout:.0f}s", url=url) from e
        except httpx.RequestError as e:
            # Not the exception text: it may carry the proxy URL with the key in it.
            raise AcquisitionError(f"{self.name}: request failed ({type(e).__name__})", url=url) from e

        if response.status_code >= 400:
            raise AcquisitionError(
                f"{self.name}: HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        self._check_length(url, response)

        return FetchResult(
            url=url,
            final_url=url,
            html=response.text,
            status_code=response.status_code,
            fetch_time_ms=int((time.time() - start_time) * 1000),
            strategy=self.name,
        )


def build_strategies(settings: Settings) -> list[FetchStrategy]:
    """Direct fetch first, then the proxy with and without rendering (if configured)."""
    strategies: list[FetchStrategy] = [
        DirectFetch(settings.fetch_timeout, settings.min_content_bytes),
    ]
    if settings.has_proxy_credential:
        api_key = settings.scraper_api_key.get_secret_value()
        for render in (True, False):
            strategies.append(RenderingProxyFetch(
                api_key=api_key,
                api_url=settings.scraper_api_url,
                timeout=settings.proxy_timeout,
                render=render,
                min_content_bytes=settings.min_content_bytes,
            ))
    return strategies


class ContentAcquirer:
    """Tries each strategy in order until one returns HTML."""

    def __init__(
        self,
        strategies: list[FetchStrategy],
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not strategies:
            raise ValueError("at least one fetch strategy is required")
        self.strategies = strategies
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> "ContentAcquirer":
        return cls(build_strategies(settings), transport=transport)

    def acquire(self, url: str, deadline: Optional[float] = None) -> FetchResult:
        """Fetch ``url``.

        Args:
            url: Absolute http(s) URL
            deadline: Optional ``time.monotonic()`` value after which no
                further request is started

        Raises:
            AcquisitionError: when every applicable strategy failed
        """
        last_error: Optional[AcquisitionError] = None

        with httpx.Client(transport=self.transport) as client:
            for strategy in self.strategies:
                timeout = strategy.timeout
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise AcquisitionError("Deadline exceeded before fetch completed", url=url) from last_error
                    timeout = min(timeout, remaining)

                logger.debug("Fetching %s with %s strategy (timeout %.1fs)", url, strategy.name, timeout)
                try:
                    result = strategy.fetch(url, client, timeout)
                except AcquisitionError as e:
                    logger.warning("%s strategy failed for %s: %s", strategy.name, url, e)
                    last_error = e
                    if not isinstance(e, strategy.fallback_on):
                        raise
                    continue

                logger.info(
                    "Fetched %s via %s in %dms (%d bytes)",
                    url, result.strategy, result.fetch_time_ms, len(result.html),
                )
                return result

        assert last_error is not None
        raise last_error
