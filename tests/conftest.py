"""Shared fixtures: a sample page, isolated settings and fake collaborators."""

import httpx
import pytest
from pydantic import SecretStr

from brand_audit.config import Settings
from brand_audit.fetcher import ContentAcquirer
from brand_audit.scorer.providers import ModelProvider


BASE_URL = "https://acme.example.com/"

SAMPLE_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>Acme Tools - Quality hardware</title>
  <meta name="description" content="Shop quality hardware online.">
</head>
<body>
  <a href="#main">Skip to content</a>
  <nav>
    <a href="/">Home</a>
    <a href="/products">Products</a>
    <a href="/about#team">About</a>
    <a href="https://acme.example.com/products">All products</a>
  </nav>
  <main id="main">
    <h1>Acme Tools</h1>
    <h2>Our products</h2>
    <p>Buy hammers and drills in our store. Add to cart and checkout in seconds.</p>
    <img src="/hammer.png" alt="Hammer">
    <img src="/drill.png">
    <form>
      <label for="email">Email</label>
      <input id="email" type="email" required>
      <button type="submit">Contact us</button>
    </form>
    <a href="https://partner.example.org/page">Partner</a>
    <a href="http://acme.example.com/insecure">Old site</a>
    <a href="mailto:hello@acme.example.com">Write to us</a>
    <a href="tel:+15550100">Call</a>
    <a href="https://twitter.com/acme">Twitter</a>
  </main>
  <script>var captchaLoaded = false;</script>
</body>
</html>
"""


class FakeProvider(ModelProvider):
    """Provider that replays canned replies; exceptions in the list are raised."""

    name = "Fake"
    default_model = "fake-1"

    def __init__(self, replies=(), api_key="test-key"):
        super().__init__(api_key=api_key)
        self.replies = list(replies)
        self.prompts = []

    def complete(self, system, prompt, timeout):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def sample_html():
    return SAMPLE_HTML


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        scorer_api_key=None,
        scraper_api_key=None,
        store_dir=str(tmp_path / "audits"),
        scorer_retry_delay=0.0,
        log_level="WARNING",
    )


@pytest.fixture
def proxy_settings(settings):
    return settings.model_copy(update={"scraper_api_key": SecretStr("proxy-secret")})


@pytest.fixture
def site_transport():
    """MockTransport serving SAMPLE_HTML for every request. Requests are recorded."""
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, text=SAMPLE_HTML, headers={"content-type": "text/html"})

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport


@pytest.fixture
def site_acquirer(settings, site_transport):
    return ContentAcquirer.from_settings(settings, transport=site_transport)


@pytest.fixture
def fake_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider
