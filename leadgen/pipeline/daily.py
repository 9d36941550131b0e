"""
Scheduled daily workflow — discover candidates for one niche, then enrich them
one after another.
"""
import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from leadgen.config import DAILY_NICHES, DAILY_CANDIDATES, STATUS_ANALYZED, STATUS_NEW
from leadgen.pipeline.discovery import find_candidates
from leadgen.pipeline.enrichment import EnrichmentPipeline
from leadgen.services.search import BraveSearchClient
from leadgen.services.store import LeadStore

logger = logging.getLogger('pipeline.daily')


def pick_niche(niches: Sequence[str] = DAILY_NICHES, rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(list(niches))


def run_daily_workflow(store: LeadStore, search_client: BraveSearchClient, pipeline: EnrichmentPipeline,
                       niche: Optional[str] = None, max_candidates: int = DAILY_CANDIDATES) -> Dict[str, Any]:
    """
    Returns {'niche', 'leads_processed': [{url, success, error}]}.

    Already-analyzed URLs are skipped without touching the row. A failure on
    one candidate is logged and the batch moves on.
    """
    niche = niche or pick_niche()
    logger.info("Hunting for leads in: %s", niche)

    candidates = find_candidates(search_client, niche)[:max_candidates]
    processed: List[Dict[str, Any]] = []

    for item in candidates:
        logger.info("Processing potential lead: %s", item.url)
        try:
            existing = store.find_by_url(item.url)
            if existing is not None and existing.status == STATUS_ANALYZED:
                logger.info("Skipping %s (already analyzed)", item.url)
                continue

            fields = {'status': STATUS_NEW}
            if existing is None:
                fields['company_name'] = item.title or None
                fields['scraped_data'] = {'description': item.description}
            store.upsert_by_url(item.url, fields)

            result = pipeline.run(item.url)
            processed.append({
                'url': item.url,
                'success': result.success,
                'error': result.error,
            })
        except Exception as e:
            logger.error("Failed to process %s: %s", item.url, e, exc_info=True)

    logger.info("Workflow finished. Processed %d leads.", len(processed))
    return {'niche': niche, 'leads_processed': processed}
