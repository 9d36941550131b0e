"""Shared test fixtures."""
import json

import pytest
from sqlalchemy.orm import sessionmaker

from leadgen.database import Base, make_engine
from leadgen.pipeline.base import StageResult
from leadgen.services.inference import InferenceClient
from leadgen.services.search import SearchResult
from leadgen.services.store import LeadStore


ACME_HTML = '<html><title>Acme Co</title><body>We sell widgets</body></html>'

ACME_RESPONSE = {
    'company_name': 'Acme Co',
    'tech_stack': ['WordPress'],
    'opportunities': ['chatbot'],
    'email_draft': 'Hello Acme...',
}


# ── Fakes ────────────────────────────────────────────────────────────────────

class FakeFetcher:
    """WebFetcher stand-in: returns canned HTML (or degrades) and records URLs."""

    def __init__(self, html='', fail=False):
        self.html = html
        self.fail = fail
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        if self.fail:
            return StageResult.degrade('', 'Fetch failed: simulated timeout')
        return StageResult.success(self.html)


class FakeInference(InferenceClient):
    """Provider strategy that answers from memory instead of the network."""
    provider = 'fake'
    credential_name = 'FAKE_API_KEY'

    def __init__(self, response=None, configured=True, error=None):
        super().__init__(model='fake-model', timeout=1)
        self.response = ACME_RESPONSE if response is None else response
        self._configured = configured
        self.error = error
        self.prompts = []

    @property
    def configured(self):
        return self._configured

    def _complete(self, system, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if isinstance(self.response, dict):
            return json.dumps(self.response)
        return self.response


class FakeSearch:
    """BraveSearchClient stand-in."""

    def __init__(self, results=None, configured=True, error=None):
        self.results = list(results or [])
        self._configured = configured
        self.error = error
        self.queries = []

    @property
    def configured(self):
        return self._configured

    def search(self, query, count=5):
        self.queries.append((query, count))
        if self.error is not None:
            raise self.error
        return list(self.results[:count])


# ── Database ─────────────────────────────────────────────────────────────────

@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = make_engine('sqlite:///:memory:')
    import leadgen.models.lead  # noqa: F401
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    """Session for asserting on what the code under test committed."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def store(session_factory):
    return LeadStore(session_factory)


# ── Collaborators ────────────────────────────────────────────────────────────

@pytest.fixture
def fetcher():
    return FakeFetcher(ACME_HTML)


@pytest.fixture
def inference():
    return FakeInference()


@pytest.fixture
def search():
    return FakeSearch([
        SearchResult('Logistica Segura SAS', 'https://logistica.example.com', 'Soluciones de logistica...'),
        SearchResult('Transportes Rapidos', 'https://transportes.example.com', 'Envios nacionales...'),
    ])


@pytest.fixture
def make_search_result():
    """Factory fixture — SearchResult with sensible defaults."""
    def _make(url='https://acme.example.com', title='Acme', description='Widgets'):
        return SearchResult(title=title, url=url, description=description)
    return _make


# ── Flask ────────────────────────────────────────────────────────────────────

@pytest.fixture
def services(store, search, inference, fetcher):
    from leadgen.extensions import build_services
    return build_services(store=store, search=search, inference=inference, fetcher=fetcher)


@pytest.fixture
def app(services):
    """Flask test app wired to in-memory fakes."""
    from leadgen import create_app
    app = create_app(services=services)
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c
