"""
External research — recent public mentions of a company, for personalization.

Pure enrichment: every failure degrades to an empty context.
"""
import logging
import re
from typing import Iterator, List, Optional, Tuple
from urllib.parse import urlparse

from leadgen.config import RESEARCH_MAX_RESULTS, RESEARCH_CONTEXT_LIMIT
from leadgen.pipeline.base import StageResult
from leadgen.services.search import BraveSearchClient, SearchError

logger = logging.getLogger('services.research')

RESEARCH_TERMS = 'news projects recent achievements social media'

_TAGS = re.compile(r'<[^>]+>')


def bare_domain(url: str) -> str:
    """'https://www.acme.com/about' → 'acme.com'."""
    if '://' not in url:
        url = f'https://{url}'
    host = (urlparse(url).hostname or '').lower()
    return host[4:] if host.startswith('www.') else host


def build_query(domain: str, augmentation: str = '') -> str:
    query = f'"{domain}" {RESEARCH_TERMS}'
    if augmentation and augmentation.strip():
        query = f'{query} {augmentation.strip()}'
    return query


def build_context(pairs, limit: int = RESEARCH_CONTEXT_LIMIT) -> str:
    """Join (title, snippet) pairs into one bounded text blob for the prompt."""
    lines = []
    for title, snippet in pairs:
        # Brave highlights matches with <strong>
        line = f"- {_TAGS.sub('', title).strip()}: {_TAGS.sub('', snippet).strip()}"
        lines.append(line)
    return '\n'.join(lines)[:limit]


class ResearchCollaborator:
    """Looks up a domain on the web-search API and returns (title, snippet) pairs."""

    def __init__(self, search_client: BraveSearchClient, max_results: int = RESEARCH_MAX_RESULTS):
        self.search_client = search_client
        self.max_results = max_results

    @property
    def configured(self) -> bool:
        return self.search_client is not None and self.search_client.configured

    def mentions(self, domain: str, augmentation: str = '') -> Iterator[Tuple[str, str]]:
        """Lazily yield at most max_results pairs. Raises SearchError."""
        results = self.search_client.search(build_query(domain, augmentation), count=self.max_results)
        for result in results[:self.max_results]:
            yield result.title, result.description

    def research(self, domain: str, augmentation: str = '') -> StageResult:
        """Never raises; unconfigured or failing lookups degrade to []."""
        if not domain:
            return StageResult.degrade([], "No domain to research")
        if not self.configured:
            return StageResult.degrade([], "Research credential not configured")
        try:
            pairs: List[Tuple[str, str]] = list(self.mentions(domain, augmentation))
        except SearchError as e:
            logger.warning("Research for %s failed: %s", domain, e)
            return StageResult.degrade([], str(e))

        logger.info("Research for %s found %d mentions", domain, len(pairs))
        return StageResult.success(pairs)


def build_research_collaborator(search_client: Optional[BraveSearchClient]) -> Optional[ResearchCollaborator]:
    """None when there's no real search credential; mock results never feed research."""
    if search_client is None or not search_client.configured:
        logger.info("BRAVE_API_KEY not set — research stage disabled")
        return None
    return ResearchCollaborator(search_client)
