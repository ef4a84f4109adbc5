"""Tests for the end-to-end audit pipeline."""

import httpx
import pytest

from brand_audit import Auditor, generate_audit
from brand_audit.auditor import validate_url
from brand_audit.errors import InvalidURLError, ScorerRequestError, StoreError
from brand_audit.fetcher import ContentAcquirer
from brand_audit.scorer import ExternalScorer, ScoreCache, score_domain
from brand_audit.store import MemoryAuditStore

from conftest import BASE_URL


PROSE_REPLY = "**Overall: 82/100**\n1. Branding – 7/10\n2. Design – 9/10"


class FailingStore:
    def put(self, audit):
        raise StoreError("disk full")

    def get(self, audit_id):
        return None


@pytest.fixture
def make_auditor(settings, site_acquirer, fake_provider):
    """Auditor over the sample site with a FakeProvider replaying ``replies``."""

    def factory(replies=(), api_key="test-key", acquirer=None, store=None):
        provider = fake_provider(replies, api_key=api_key)
        scorer = ExternalScorer(provider, retry_delay=0)
        auditor = Auditor(settings, acquirer=acquirer or site_acquirer, scorer=scorer, store=store)
        return auditor, provider

    return factory


class TestValidateUrl:
    """Test validate_url."""

    def test_adds_scheme(self):
        assert validate_url("example.com") == "https://example.com"

    def test_keeps_http(self):
        assert validate_url("  http://example.com/path ") == "http://example.com/path"

    def test_localhost_allowed(self):
        assert validate_url("http://localhost:8000") == "http://localhost:8000"

    @pytest.mark.parametrize("url", [
        "",
        "   ",
        "ftp://example.com",
        "javascript:alert(1)://x.com",
        "not a url",
        "nohost",
        "https://",
        "https://example.com:notaport",
    ])
    def test_rejected(self, url):
        with pytest.raises(InvalidURLError):
            validate_url(url)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_url("nohost")


class TestAuditorRun:
    """Test Auditor.run fallbacks and provenance."""

    def test_invalid_url_before_any_io(self, make_auditor, site_transport):
        auditor, provider = make_auditor([PROSE_REPLY])
        with pytest.raises(InvalidURLError):
            auditor.run("not a url")
        assert site_transport.requests == []
        assert provider.prompts == []

    def test_no_credential_uses_synthetic(self, make_auditor):
        auditor, _ = make_auditor(api_key=None)
        audit = auditor.run(BASE_URL)

        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["fallback_reason"] == "external scorer not configured"
        assert audit.metadata["acquisition_strategy"] == "direct"
        assert audit.metadata["category"] == "ecommerce"
        assert audit.deterministic
        expected = [s.score for s in score_domain(BASE_URL).sections]
        assert [s.score for s in audit.sections] == expected

    def test_synthetic_is_reproducible(self, make_auditor):
        auditor, _ = make_auditor(api_key=None)
        first, second = auditor.run(BASE_URL), auditor.run(BASE_URL)
        assert first.id != second.id
        assert first.overall_score == second.overall_score
        assert [s.score for s in first.sections] == [s.score for s in second.sections]

    def test_external_scores(self, make_auditor):
        auditor, provider = make_auditor([PROSE_REPLY])
        audit = auditor.run(BASE_URL)

        assert audit.metadata["scoring_method"] == "external"
        assert audit.metadata["provider"] == "Fake"
        assert audit.metadata["model"] == "fake-1"
        assert audit.metadata["fallback_reason"] is None
        assert audit.metadata["reported_overall_score"] == 82
        assert [s.score for s in audit.sections[:3]] == [70, 90, 82]
        assert not audit.deterministic
        assert "Detected industry: ecommerce" in provider.prompts[0]

    def test_scorer_failure_falls_back(self, make_auditor):
        auditor, _ = make_auditor([ScorerRequestError("HTTP 401", status_code=401)])
        audit = auditor.run(BASE_URL)
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["fallback_reason"].startswith("scorer request failed")

    def test_unparseable_reply_falls_back(self, make_auditor):
        auditor, _ = make_auditor(["I cannot assess this website."])
        audit = auditor.run(BASE_URL)
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["fallback_reason"].startswith("unparseable scorer output")
        assert len(audit.sections) == 10

    def test_oversized_number_falls_back(self, make_auditor):
        reply = '{"overallScore": ' + "9" * 400 + ', "sections": [{"score": 50}]}'
        auditor, _ = make_auditor([reply])
        audit = auditor.run("acme.example.com")
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["fallback_reason"].startswith("unparseable scorer output")
        assert len(audit.sections) == 10

    def test_acquisition_failure_falls_back(self, make_auditor, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        acquirer = ContentAcquirer.from_settings(settings, transport=httpx.MockTransport(handler))
        auditor, provider = make_auditor([PROSE_REPLY], acquirer=acquirer)
        audit = auditor.run("down.example.com")

        assert audit.url == "https://down.example.com"
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["fallback_reason"].startswith("acquisition failed")
        assert audit.metadata["acquisition_strategy"] is None
        assert audit.metadata["category"] == "general"
        assert provider.prompts == []

    def test_synthetic_only_skips_model(self, make_auditor):
        auditor, provider = make_auditor([PROSE_REPLY])
        audit = auditor.run(BASE_URL, synthetic_only=True)
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["fallback_reason"] is None
        assert audit.metadata["acquisition_strategy"] == "direct"
        assert provider.prompts == []

    def test_audit_is_stored(self, make_auditor):
        store = MemoryAuditStore()
        auditor, _ = make_auditor(api_key=None, store=store)
        audit = auditor.run(BASE_URL)
        assert store.get(audit.id) is audit

    def test_store_failure_keeps_audit(self, make_auditor):
        auditor, _ = make_auditor(api_key=None, store=FailingStore())
        audit = auditor.run(BASE_URL)
        assert len(audit.sections) == 10


def test_generate_audit_without_network(settings, monkeypatch, site_transport):
    real_from_settings = ContentAcquirer.from_settings.__func__

    def offline(cls, settings, transport=None):
        return real_from_settings(cls, settings, transport=site_transport)

    monkeypatch.setattr(ContentAcquirer, "from_settings", classmethod(offline))
    audit = generate_audit("acme.example.com", settings=settings)

    assert audit.metadata["scoring_method"] == "synthetic"
    assert audit.metadata["fallback_reason"] == "external scorer not configured"
    assert len(site_transport.requests) == 1


class TestScoreConsistency:
    """Unchanged pages re-use their external scores."""

    def test_unchanged_page_reuses_scores(self, make_auditor):
        auditor, provider = make_auditor([PROSE_REPLY, "Overall: 40/100\n1. Branding – 2/10"])
        first = auditor.run(BASE_URL)
        second = auditor.run(BASE_URL)

        assert len(provider.prompts) == 1
        assert first.id != second.id
        assert [s.score for s in second.sections] == [s.score for s in first.sections]
        assert first.metadata["score_cache_hit"] is False
        assert second.metadata["score_cache_hit"] is True
        assert second.metadata["scoring_method"] == "external"
        assert second.metadata["provider"] == "Fake"
        assert second.metadata["fallback_reason"] is None

    def test_failed_scoring_not_cached(self, make_auditor):
        auditor, provider = make_auditor(["I cannot assess this website.", PROSE_REPLY])
        assert auditor.run(BASE_URL).metadata["scoring_method"] == "synthetic"
        audit = auditor.run(BASE_URL)
        assert audit.metadata["scoring_method"] == "external"
        assert audit.metadata["score_cache_hit"] is False
        assert len(provider.prompts) == 2

    def test_synthetic_only_ignores_cache(self, make_auditor):
        auditor, _ = make_auditor([PROSE_REPLY])
        auditor.run(BASE_URL)
        audit = auditor.run(BASE_URL, synthetic_only=True)
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["score_cache_hit"] is False

    def test_cache_not_used_without_credential(self, settings, site_acquirer, fake_provider):
        cache = ScoreCache.from_days(7)
        configured = Auditor(
            settings, acquirer=site_acquirer,
            scorer=ExternalScorer(fake_provider([PROSE_REPLY]), retry_delay=0), cache=cache,
        )
        configured.run(BASE_URL)
        unconfigured = Auditor(
            settings, acquirer=site_acquirer,
            scorer=ExternalScorer(fake_provider(api_key=None), retry_delay=0), cache=cache,
        )
        audit = unconfigured.run(BASE_URL)
        assert audit.metadata["scoring_method"] == "synthetic"
        assert audit.metadata["fallback_reason"] == "external scorer not configured"

    def test_cache_disabled_by_settings(self, settings, site_acquirer, fake_provider):
        provider = fake_provider([PROSE_REPLY, PROSE_REPLY])
        auditor = Auditor(
            settings.model_copy(update={"score_cache_days": 0.0}),
            acquirer=site_acquirer,
            scorer=ExternalScorer(provider, retry_delay=0),
        )
        auditor.run(BASE_URL)
        audit = auditor.run(BASE_URL)
        assert audit.metadata["score_cache_hit"] is False
        assert len(provider.prompts) == 2
