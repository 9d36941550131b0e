"""
Website fetch — one GET per lead, degraded to empty HTML on any failure.
"""
import logging
from typing import Optional

import requests

from leadgen.config import FETCH_TIMEOUT, BROWSER_USER_AGENT
from leadgen.pipeline.base import StageResult

logger = logging.getLogger('pipeline.fetcher')


class WebFetcher:
    """Fetch raw HTML with a browser-like identity and a bounded timeout."""

    def __init__(self, timeout: int = FETCH_TIMEOUT, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            'User-Agent': BROWSER_USER_AGENT,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'es-CO,es;q=0.9,en;q=0.8',
        })

    def fetch(self, url: str) -> StageResult:
        """GET the page. Never raises; failures come back as a degraded ''."""
        try:
            resp = self._session.get(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            logger.warning("Fetch failed for %s: %s", url, e)
            return StageResult.degrade('', f"Fetch failed: {e}")

        if not resp.ok:
            logger.warning("Fetch for %s returned HTTP %s", url, resp.status_code)
            return StageResult.degrade('', f"HTTP {resp.status_code}")

        logger.debug("Fetched %s (%d bytes)", url, len(resp.text))
        return StageResult.success(resp.text)
