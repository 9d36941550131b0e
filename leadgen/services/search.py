"""
Brave Search web API client — used by discovery and by the research stage.
"""
import logging
from dataclasses import dataclass, asdict
from typing import List, Optional

import requests

from leadgen.config import BRAVE_API_KEY, BRAVE_SEARCH_URL, SEARCH_TIMEOUT, MOCK_PIPELINE

logger = logging.getLogger('services.search')


@dataclass
class SearchResult:
    title: str
    url: str
    description: str = ''

    def to_dict(self):
        return asdict(self)


# Canned results for MOCK_PIPELINE=1 local runs without a Brave key
MOCK_RESULTS = [
    SearchResult('Logistica Segura SAS', 'https://example-logistics.com', 'Soluciones de logistica...'),
    SearchResult('Transportes Rapidos', 'https://example-transport.com', 'Envios nacionales...'),
]


class SearchError(Exception):
    """Search provider rejected or failed the request."""


class BraveSearchClient:
    """Thin wrapper over GET /res/v1/web/search."""

    def __init__(self, api_key: Optional[str] = BRAVE_API_KEY, base_url: str = BRAVE_SEARCH_URL,
                 timeout: int = SEARCH_TIMEOUT, mock: bool = MOCK_PIPELINE,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.mock = mock
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def search(self, query: str, count: int = 5) -> List[SearchResult]:
        """
        Run one web search. Raises SearchError on transport or HTTP failure.

        Without an API key: canned results in mock mode, otherwise [].
        """
        if not self.configured:
            if self.mock:
                logger.warning("No BRAVE_API_KEY, returning mock results")
                return list(MOCK_RESULTS[:count])
            logger.warning("No BRAVE_API_KEY, search disabled")
            return []

        try:
            resp = self._session.get(
                self.base_url,
                params={'q': query, 'count': count},
                headers={
                    'Accept': 'application/json',
                    'X-Subscription-Token': self.api_key,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SearchError(f"Search request failed: {e}") from e

        if not resp.ok:
            raise SearchError(f"Search API error: {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise SearchError("Search API returned invalid JSON") from e

        results = []
        for item in ((payload.get('web') or {}).get('results') or [])[:count]:
            url = item.get('url')
            if not url:
                continue
            results.append(SearchResult(
                title=item.get('title', '') or '',
                url=url,
                description=item.get('description', '') or '',
            ))
        logger.info("Search %r returned %d results", query, len(results))
        return results
