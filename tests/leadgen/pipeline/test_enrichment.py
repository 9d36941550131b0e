"""Tests for leadgen.pipeline.enrichment — the enrichment state machine and persistence policy."""
from unittest.mock import MagicMock

import pytest

from conftest import ACME_HTML, ACME_RESPONSE, FakeFetcher, FakeInference, FakeSearch
from leadgen.config import STATUS_ANALYZED, STATUS_NEW
from leadgen.models.lead import Lead
from leadgen.pipeline.base import EnrichmentState as S
from leadgen.pipeline.enrichment import (
    EnrichmentPipeline, normalize_url,
    ERROR_CONFIG, ERROR_INFERENCE, ERROR_INPUT, ERROR_NOT_FOUND, ERROR_PERSISTENCE,
)
from leadgen.pipeline.extractor import PageDigest
from leadgen.services.inference import InferenceProviderError
from leadgen.services.research import ResearchCollaborator
from leadgen.services.search import SearchError, SearchResult
from leadgen.services.store import LeadStore, StoreError

URL = 'https://example.com'


def _pipeline(store, html=ACME_HTML, response=None, fetch_fail=False, research=None, **inference_kwargs):
    fetcher = FakeFetcher(html, fail=fetch_fail)
    inference = FakeInference(response=response, **inference_kwargs)
    return EnrichmentPipeline(store=store, inference=inference, fetcher=fetcher, research=research), fetcher, inference


def _spy_store(store):
    """MagicMock that forwards to the real store and counts calls."""
    return MagicMock(spec=LeadStore, wraps=store)


class TestNormalizeUrl:

    def test_trims_whitespace(self):
        assert normalize_url('  https://acme.com ') == 'https://acme.com'

    def test_bare_domain_gets_https(self):
        assert normalize_url('acme.com') == 'https://acme.com'

    def test_keeps_http_scheme(self):
        assert normalize_url('http://acme.com') == 'http://acme.com'

    @pytest.mark.parametrize('value', [None, '', '   ', 42])
    def test_blank_or_non_string(self, value):
        assert normalize_url(value) == ''


class TestEndToEnd:
    """The Acme scenario: fetch → extract → infer → persist."""

    def test_acme_is_persisted_as_analyzed(self, store, db_session):
        pipeline, fetcher, inference = _pipeline(store)

        result = pipeline.run(URL)

        assert result.success is True
        assert result.error is None
        assert result.state == S.DONE
        row = db_session.query(Lead).filter_by(url=URL).one()
        assert row.status == STATUS_ANALYZED
        assert row.company_name == 'Acme Co'
        assert row.email_draft == 'Hello Acme...'

    def test_states_visited_in_order_without_research(self, store):
        pipeline, _, _ = _pipeline(store)
        result = pipeline.run(URL)
        assert result.states == [S.PENDING, S.FETCHING, S.EXTRACTING, S.INFERRING, S.PERSISTING, S.DONE]

    def test_ai_analysis_stored_verbatim(self, store):
        response = dict(ACME_RESPONSE, research_notes='none', confidence=0.8)
        pipeline, _, _ = _pipeline(store, response=response)
        lead = pipeline.run(URL).lead
        assert lead.ai_analysis == response

    def test_scraped_data_holds_extraction_byproducts(self, store):
        html = ('<html><head><title>Acme Co</title><meta name="description" content="Widgets">'
                '<link href="/wp-content/a.css"></head><body>'
                '<a href="https://www.linkedin.com/company/acme">in</a></body></html>')
        pipeline, _, _ = _pipeline(store, html=html)
        scraped = pipeline.run(URL).lead.scraped_data
        assert scraped['title'] == 'Acme Co'
        assert scraped['description'] == 'Widgets'
        assert scraped['tech_stack'] == ['WordPress']
        assert scraped['social_links'] == ['https://www.linkedin.com/company/acme']
        assert 'research_summary' not in scraped

    def test_prompt_embeds_digest(self, store):
        pipeline, _, inference = _pipeline(store)
        pipeline.run(URL)
        assert len(inference.prompts) == 1
        assert 'Title: Acme Co' in inference.prompts[0]
        assert 'We sell widgets' in inference.prompts[0]

    def test_bare_domain_is_normalized_before_fetch(self, store):
        pipeline, fetcher, _ = _pipeline(store)
        result = pipeline.run('  example.com ')
        assert fetcher.calls == ['https://example.com']
        assert result.lead.url == 'https://example.com'


class TestIdempotency:
    """Reruns overwrite the same row."""

    def test_rerun_does_not_duplicate(self, store, db_session):
        pipeline, _, _ = _pipeline(store)
        first = pipeline.run(URL)
        second = pipeline.run(URL)

        assert db_session.query(Lead).filter_by(url=URL).count() == 1
        assert first.lead.id == second.lead.id
        for key in ('company_name', 'email_draft'):
            assert getattr(first.lead, key) == getattr(second.lead, key)
        assert second.lead.ai_analysis['tech_stack'] == ['WordPress']
        assert second.lead.ai_analysis['opportunities'] == ['chatbot']

    def test_rerun_replaces_operator_edited_draft(self, store):
        """Known behavior: a successful rerun discards manual draft edits."""
        pipeline, _, _ = _pipeline(store)
        lead = pipeline.run(URL).lead
        store.update_by_id(lead.id, {'email_draft': 'Edited by operator'})

        rerun = pipeline.run(URL)

        assert rerun.lead.email_draft == 'Hello Acme...'

    def test_existing_new_lead_is_upgraded_in_place(self, store, db_session):
        discovered = store.upsert_by_url(URL, {'status': STATUS_NEW, 'scraped_data': {'description': 'snippet'}})
        pipeline, _, _ = _pipeline(store)

        result = pipeline.run(URL)

        assert result.lead.id == discovered.id
        assert result.lead.status == STATUS_ANALYZED
        assert db_session.query(Lead).count() == 1


class TestDegradation:
    """Fetch and research failures degrade instead of failing."""

    def test_failed_fetch_still_reaches_inference(self, store):
        pipeline, _, inference = _pipeline(store, fetch_fail=True)

        result = pipeline.run(URL)

        assert result.success is True
        assert S.INFERRING in result.states
        assert len(inference.prompts) == 1
        assert 'Website content unavailable' in inference.prompts[0]
        assert any(w.startswith('fetch:') for w in result.warnings)

    def test_failed_fetch_digest_is_titled_with_url(self, store):
        pipeline, _, _ = _pipeline(store, fetch_fail=True, response={'email_draft': 'Hi'})
        lead = pipeline.run(URL).lead
        assert lead.scraped_data['title'] == URL
        assert lead.scraped_data['description'] == ''

    def test_fetcher_that_raises_is_degraded(self, store):
        pipeline, _, inference = _pipeline(store)
        pipeline.fetcher = MagicMock()
        pipeline.fetcher.fetch.side_effect = RuntimeError('socket exploded')

        result = pipeline.run(URL)

        assert result.success is True
        assert len(inference.prompts) == 1

    def test_research_failure_is_degraded(self, store):
        research = ResearchCollaborator(FakeSearch(error=SearchError('Search API error: 500')))
        pipeline, _, inference = _pipeline(store, research=research)

        result = pipeline.run(URL)

        assert result.success is True
        assert S.RESEARCHING in result.states
        assert any(w.startswith('research:') for w in result.warnings)
        assert 'Recent public mentions' not in inference.prompts[0]


class TestResearch:
    """Optional research stage."""

    def test_skipped_without_collaborator(self, store):
        pipeline, _, _ = _pipeline(store, research=None)
        assert S.RESEARCHING not in pipeline.run(URL).states

    def test_skipped_when_unconfigured(self, store):
        search = FakeSearch(configured=False)
        pipeline, _, _ = _pipeline(store, research=ResearchCollaborator(search))
        result = pipeline.run(URL)
        assert S.RESEARCHING not in result.states
        assert search.queries == []

    def test_context_reaches_prompt_and_scraped_data(self, store):
        search = FakeSearch([SearchResult('Acme wins award', 'https://news.example/a', 'Best widgets 2026')])
        pipeline, _, inference = _pipeline(store, research=ResearchCollaborator(search))

        result = pipeline.run('https://www.example.com/about')

        assert result.states.index(S.RESEARCHING) == result.states.index(S.EXTRACTING) + 1
        assert search.queries[0][0].startswith('"example.com"')
        assert 'Acme wins award: Best widgets 2026' in inference.prompts[0]
        assert 'Acme wins award' in result.lead.scraped_data['research_summary']


class TestFatalInference:
    """Inference failures end the run with no store write."""

    def test_non_json_response_fails_without_write(self, store):
        spy = _spy_store(store)
        pipeline, _, _ = _pipeline(spy, response='Sure! Here is the analysis you asked for.')

        result = pipeline.run(URL)

        assert result.success is False
        assert result.state == S.FAILED
        assert result.error_kind == ERROR_INFERENCE
        assert 'Invalid inference response format' in result.error
        assert spy.upsert_by_url.call_count == 0
        assert spy.update_by_id.call_count == 0
        assert spy.update_by_url.call_count == 0

    def test_json_array_is_rejected(self, store):
        pipeline, _, _ = _pipeline(store, response='["not", "an", "object"]')
        result = pipeline.run(URL)
        assert result.success is False
        assert 'Invalid inference response format' in result.error

    def test_provider_error_surfaces_status(self, store):
        error = InferenceProviderError('OpenAI error 429: Rate limit reached', status=429)
        pipeline, _, _ = _pipeline(store, error=error)

        result = pipeline.run(URL)

        assert result.success is False
        assert '429' in result.error
        assert store.find_by_url(URL) is None

    def test_unexpected_exception_is_contained(self, store):
        pipeline, _, _ = _pipeline(store, error=KeyError('choices'))
        result = pipeline.run(URL)
        assert result.success is False
        assert result.error.startswith('Inference failed')

    def test_failure_leaves_existing_draft_intact(self, store):
        store.upsert_by_url(URL, {'email_draft': 'Operator draft', 'status': STATUS_NEW})
        pipeline, _, _ = _pipeline(store, response='not json')

        pipeline.run(URL)

        lead = store.find_by_url(URL)
        assert lead.email_draft == 'Operator draft'
        assert lead.status == STATUS_NEW


class TestMissingCredential:
    """A missing inference credential fails before any network call."""

    def test_fails_before_fetch(self, store):
        pipeline, fetcher, inference = _pipeline(store, configured=False)

        result = pipeline.run(URL)

        assert result.success is False
        assert result.error_kind == ERROR_CONFIG
        assert 'FAKE_API_KEY' in result.error
        assert fetcher.calls == []
        assert inference.prompts == []
        assert result.states == [S.PENDING, S.FAILED]


class TestFallbackNaming:
    """company_name := inference → page title → URL."""

    def test_missing_company_name_uses_title(self, store):
        pipeline, _, _ = _pipeline(store, response={'email_draft': 'Hi'})
        assert pipeline.run(URL).lead.company_name == 'Acme Co'

    def test_blank_company_name_uses_title(self, store):
        pipeline, _, _ = _pipeline(store, response={'company_name': '  ', 'email_draft': 'Hi'})
        assert pipeline.run(URL).lead.company_name == 'Acme Co'

    def test_no_title_uses_url(self, store):
        pipeline, _, _ = _pipeline(store, html='<html><body>No title here</body></html>', response={})
        assert pipeline.run(URL).lead.company_name == URL

    def test_build_fields_with_empty_digest(self):
        fields = EnrichmentPipeline.build_fields(URL, PageDigest(title=''), {})
        assert fields['company_name'] == URL
        assert fields['status'] == STATUS_ANALYZED


class TestDraftPolicy:

    def test_empty_draft_does_not_clear_existing(self, store):
        store.upsert_by_url(URL, {'email_draft': 'Keep me'})
        pipeline, _, _ = _pipeline(store, response={'company_name': 'Acme Co'})

        lead = pipeline.run(URL).lead

        assert lead.email_draft == 'Keep me'
        assert lead.status == STATUS_ANALYZED

    def test_build_fields_omits_blank_draft(self):
        fields = EnrichmentPipeline.build_fields(URL, PageDigest(title='Acme'), {'email_draft': '   '})
        assert 'email_draft' not in fields


class TestInputAndLookup:

    def test_blank_url_rejected(self, store):
        pipeline, fetcher, _ = _pipeline(store)
        result = pipeline.run('   ')
        assert result.success is False
        assert result.error_kind == ERROR_INPUT
        assert fetcher.calls == []

    def test_lead_id_targets_existing_row(self, store):
        lead = store.upsert_by_url('https://acme.example', {'status': STATUS_NEW})
        pipeline, _, _ = _pipeline(store)

        result = pipeline.run('https://acme.example', lead_id=lead.id)

        assert result.success is True
        assert result.lead.id == lead.id
        assert result.lead.status == STATUS_ANALYZED

    def test_lead_id_accepts_equivalent_url(self, store):
        lead = store.upsert_by_url('https://acme.example', {'status': STATUS_NEW})
        pipeline, _, _ = _pipeline(store)

        result = pipeline.run(' acme.example/ ', lead_id=lead.id)

        assert result.success is True
        assert result.lead.url == 'https://acme.example'

    def test_lead_id_with_other_url_is_rejected(self, store, db_session):
        beta = store.upsert_by_url('https://beta.example', {'status': STATUS_NEW, 'company_name': 'Beta'})
        pipeline, fetcher, inference = _pipeline(store)

        result = pipeline.run('https://acme.example', lead_id=beta.id)

        assert result.success is False
        assert result.error_kind == ERROR_INPUT
        assert 'https://beta.example' in result.error
        assert fetcher.calls == []
        assert inference.prompts == []
        row = db_session.get(Lead, beta.id)
        assert row.company_name == 'Beta'
        assert row.status == STATUS_NEW

    def test_unknown_lead_id_fails_before_fetch(self, store):
        pipeline, fetcher, _ = _pipeline(store)
        result = pipeline.run(URL, lead_id=999)
        assert result.success is False
        assert result.error_kind == ERROR_NOT_FOUND
        assert fetcher.calls == []

    def test_store_failure_is_reported(self, store):
        spy = _spy_store(store)
        spy.upsert_by_url.side_effect = StoreError('Failed to upsert lead: OperationalError')
        pipeline, _, _ = _pipeline(spy)

        result = pipeline.run(URL)

        assert result.success is False
        assert result.state == S.FAILED
        assert result.error_kind == ERROR_PERSISTENCE
        assert S.PERSISTING in result.states

    def test_to_dict(self, store):
        pipeline, _, _ = _pipeline(store)
        data = pipeline.run(URL).to_dict()
        assert data['success'] is True
        assert data['state'] == 'done'
        assert data['lead']['company_name'] == 'Acme Co'
