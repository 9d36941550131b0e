"""
Lead enrichment — URL → analyzed Lead.

  PENDING → FETCHING → EXTRACTING → RESEARCHING → INFERRING → PERSISTING → DONE
                                                        ↘            ↘
                                                         FAILED       FAILED

FETCHING and RESEARCHING degrade instead of failing. RESEARCHING is skipped
when no research collaborator is configured. INFERRING and PERSISTING failures
end the run before (or instead of) the single store write.

Known behavior: a successful rerun replaces email_draft with the freshly
generated draft, so operator edits made since the previous run are lost.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from leadgen.config import STATUS_ANALYZED
from leadgen.models.records import AiAnalysis, ScrapedData
from leadgen.pipeline.base import EnrichmentState, StageResult
from leadgen.pipeline.extractor import PageDigest, extract_digest
from leadgen.pipeline.fetcher import WebFetcher
from leadgen.pipeline.prompts import build_enrichment_prompt
from leadgen.services.inference import InferenceClient, InferenceError
from leadgen.services.research import ResearchCollaborator, bare_domain, build_context
from leadgen.services.store import LeadStore, StoreError

logger = logging.getLogger('pipeline.enrichment')

# EnrichmentResult.error_kind values
ERROR_INPUT = 'input'
ERROR_CONFIG = 'config'
ERROR_NOT_FOUND = 'not_found'
ERROR_INFERENCE = 'inference'
ERROR_PERSISTENCE = 'persistence'


def normalize_url(url) -> str:
    """Trim, and default to https:// for bare domains."""
    url = (url or '').strip() if isinstance(url, str) else ''
    if url and '://' not in url:
        url = f'https://{url}'
    return url


def same_url(a, b) -> bool:
    """Equal after normalization, ignoring case and a trailing slash."""
    a, b = normalize_url(a).rstrip('/'), normalize_url(b).rstrip('/')
    return a.lower() == b.lower()


@dataclass
class EnrichmentResult:
    """Outcome of one run. success=False always carries an error string."""
    url: str
    success: bool = False
    lead: Any = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    state: EnrichmentState = EnrichmentState.PENDING
    states: List[EnrichmentState] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'success': self.success,
            'error': self.error,
            'error_kind': self.error_kind,
            'state': self.state.value,
            'warnings': list(self.warnings),
            'lead': self.lead.to_dict() if self.lead is not None else None,
        }


class EnrichmentPipeline:
    """
    Sequences fetch → extract → research → infer → persist for one URL.

    Collaborators are injected once at process start (see extensions.build_services)
    and shared across runs; none of them hold per-run state.
    """

    def __init__(self, store: LeadStore, inference: InferenceClient,
                 fetcher: Optional[WebFetcher] = None,
                 research: Optional[ResearchCollaborator] = None):
        self.store = store
        self.inference = inference
        self.fetcher = fetcher or WebFetcher()
        self.research = research

    # ── Public API ───────────────────────────────────────────────────────

    def run(self, url: str, lead_id=None, research_hint: str = '') -> EnrichmentResult:
        """Enrich one URL. Never raises — failures come back on the result."""
        url = normalize_url(url)
        result = EnrichmentResult(url=url, states=[EnrichmentState.PENDING])
        log_extra = {'lead_url': url}

        if not url:
            return self._fail(result, 'URL is required', ERROR_INPUT)

        # Configuration is checked before any network call
        try:
            self.inference.ensure_configured()
        except InferenceError as e:
            return self._fail(result, str(e), ERROR_CONFIG)

        if lead_id is not None:
            try:
                existing = self.store.get_by_id(lead_id)
            except StoreError as e:
                return self._fail(result, str(e), ERROR_PERSISTENCE)
            if existing is None:
                return self._fail(result, f'Lead {lead_id} not found', ERROR_NOT_FOUND)
            # url is the lead's identity; never write one site's analysis onto another row
            if not same_url(url, existing.url):
                return self._fail(result, f'URL does not match lead {lead_id} ({existing.url})', ERROR_INPUT)

        logger.info("Enriching %s", url, extra=log_extra)

        self._enter(result, EnrichmentState.FETCHING)
        fetched = self._fetch(url)
        if fetched.degraded:
            result.warnings.append(f'fetch: {fetched.error}')

        self._enter(result, EnrichmentState.EXTRACTING)
        digest = self._extract(fetched.value or '', url)

        research_context = ''
        if self.research is not None and self.research.configured:
            self._enter(result, EnrichmentState.RESEARCHING)
            researched = self._research(url, research_hint)
            if researched.degraded:
                result.warnings.append(f'research: {researched.error}')
            research_context = build_context(researched.value or [])

        self._enter(result, EnrichmentState.INFERRING)
        inferred = self._infer(url, digest, research_context)
        if inferred.failed:
            return self._fail(result, inferred.error, ERROR_INFERENCE)

        self._enter(result, EnrichmentState.PERSISTING)
        fields = self.build_fields(url, digest, inferred.value, research_context)
        try:
            if lead_id is not None:
                lead = self.store.update_by_id(lead_id, fields)
                if lead is None:
                    return self._fail(result, f'Lead {lead_id} not found', ERROR_NOT_FOUND)
            else:
                lead = self.store.upsert_by_url(url, fields)
        except StoreError as e:
            return self._fail(result, str(e), ERROR_PERSISTENCE)

        self._enter(result, EnrichmentState.DONE)
        result.success = True
        result.lead = lead
        logger.info("Enriched %s as %r", url, fields['company_name'], extra=log_extra)
        return result

    @staticmethod
    def build_fields(url: str, digest: PageDigest, raw: Dict[str, Any],
                     research_context: str = '') -> Dict[str, Any]:
        """Apply field-level fallbacks and shape the single store write."""
        analysis = AiAnalysis.from_dict(raw)

        company_name = (analysis.company_name or '').strip() or (digest.title or '').strip() or url

        scraped = ScrapedData(
            title=digest.title,
            description=digest.meta_description,
            headings=digest.headings or None,
            tech_stack=list(digest.tech_hints),
            social_links=list(digest.social_links),
            research_summary=research_context or None,
        )

        fields = {
            'company_name': company_name,
            'status': STATUS_ANALYZED,
            'scraped_data': scraped.to_dict(),
            'ai_analysis': dict(raw),
        }
        # An empty draft from the model never clears what's already stored
        draft = (analysis.email_draft or '').strip()
        if draft:
            fields['email_draft'] = draft
        return fields

    # ── Stages ───────────────────────────────────────────────────────────

    def _fetch(self, url: str) -> StageResult:
        try:
            return self.fetcher.fetch(url)
        except Exception as e:
            logger.warning("Fetcher raised for %s: %s", url, e, exc_info=True)
            return StageResult.degrade('', f'Fetch failed: {e}')

    @staticmethod
    def _extract(html: str, url: str) -> PageDigest:
        try:
            return extract_digest(html, url)
        except Exception:
            logger.warning("Extraction failed for %s, using empty digest", url, exc_info=True)
            return PageDigest(title=url)

    def _research(self, url: str, hint: str) -> StageResult:
        try:
            return self.research.research(bare_domain(url), hint)
        except Exception as e:
            logger.warning("Research raised for %s: %s", url, e, exc_info=True)
            return StageResult.degrade([], str(e))

    def _infer(self, url: str, digest: PageDigest, research_context: str) -> StageResult:
        prompt = build_enrichment_prompt(url, digest, research_context)
        try:
            return StageResult.success(self.inference.infer(prompt))
        except InferenceError as e:
            logger.error("Inference failed for %s: %s", url, e)
            return StageResult.failure(str(e))
        except Exception as e:
            logger.error("Inference raised for %s", url, exc_info=True)
            return StageResult.failure(f'Inference failed: {e}')

    # ── State bookkeeping ────────────────────────────────────────────────

    @staticmethod
    def _enter(result: EnrichmentResult, state: EnrichmentState):
        result.state = state
        result.states.append(state)
        logger.debug("%s → %s", result.url, state.value,
                     extra={'lead_url': result.url, 'state': state.value})

    def _fail(self, result: EnrichmentResult, error: str, kind: str) -> EnrichmentResult:
        self._enter(result, EnrichmentState.FAILED)
        result.success = False
        result.error = error
        result.error_kind = kind
        logger.error("Enrichment failed for %s: %s", result.url or '<no url>', error)
        return result
