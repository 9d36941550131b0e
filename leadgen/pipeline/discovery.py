"""
Discovery — web search → new leads, deduplicated by url.

Discovered rows are created with status 'new' and the search snippet in
scraped_data.description; analysis happens later (operator or daily workflow).
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from leadgen.config import DEFAULT_DISCOVERY_QUERY, STATUS_NEW
from leadgen.services.search import BraveSearchClient, SearchError, SearchResult
from leadgen.services.store import LeadStore

logger = logging.getLogger('pipeline.discovery')

ADDED = 'added'
SKIPPED = 'skipped'


@dataclass
class DiscoveryResult:
    query: str
    added: int = 0
    skipped: int = 0
    results: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self):
        return {
            'success': True,
            'query': self.query,
            'added': self.added,
            'skipped': self.skipped,
            'results': self.results,
        }


def find_candidates(search_client: BraveSearchClient, query: str, count: int = 5) -> List[SearchResult]:
    """Search, degrading to [] on provider failure."""
    try:
        return search_client.search(query, count=count)
    except SearchError as e:
        logger.error("Discovery search failed for %r: %s", query, e)
        return []


def discover_leads(store: LeadStore, search_client: BraveSearchClient,
                   query: str = None, count: int = 5) -> DiscoveryResult:
    """
    Insert every search hit whose url isn't already stored.

    Store errors propagate — the caller turns them into a failed response.
    """
    query = (query or '').strip() or DEFAULT_DISCOVERY_QUERY
    outcome = DiscoveryResult(query=query)

    seen = set()
    for candidate in find_candidates(search_client, query, count):
        row = candidate.to_dict()
        if candidate.url in seen or store.find_by_url(candidate.url) is not None:
            row['status'] = SKIPPED
            outcome.skipped += 1
        else:
            store.upsert_by_url(candidate.url, {
                'company_name': candidate.title or None,
                'status': STATUS_NEW,
                'scraped_data': {'description': candidate.description},
            })
            row['status'] = ADDED
            outcome.added += 1
        seen.add(candidate.url)
        outcome.results.append(row)

    logger.info("Discovery %r: %d added, %d already known", query, outcome.added, outcome.skipped)
    return outcome
