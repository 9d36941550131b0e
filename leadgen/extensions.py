"""
Shared service instances — store, search, inference, enrichment pipeline.

Built once by create_app() and kept on app.extensions['leadgen']. Nothing here
opens a network connection at import time; SDK clients are created lazily on
first use, so building services is always safe (even with env vars missing).
"""
import logging
from dataclasses import dataclass
from typing import Optional

from leadgen.pipeline.enrichment import EnrichmentPipeline
from leadgen.pipeline.fetcher import WebFetcher
from leadgen.services.inference import InferenceClient, build_inference_client
from leadgen.services.research import ResearchCollaborator, build_research_collaborator
from leadgen.services.search import BraveSearchClient
from leadgen.services.store import LeadStore

logger = logging.getLogger('leadgen.extensions')

EXTENSION_KEY = 'leadgen'


@dataclass
class Services:
    store: LeadStore
    search: BraveSearchClient
    inference: InferenceClient
    research: Optional[ResearchCollaborator]
    pipeline: EnrichmentPipeline


def build_services(store: Optional[LeadStore] = None,
                   search: Optional[BraveSearchClient] = None,
                   inference: Optional[InferenceClient] = None,
                   fetcher: Optional[WebFetcher] = None,
                   research: Optional[ResearchCollaborator] = None) -> Services:
    """Wire collaborators from config; any of them can be passed in instead."""
    store = store or LeadStore()
    search = search or BraveSearchClient()
    inference = inference or build_inference_client()
    if research is None:
        research = build_research_collaborator(search)

    pipeline = EnrichmentPipeline(
        store=store,
        inference=inference,
        fetcher=fetcher or WebFetcher(),
        research=research,
    )
    logger.info("Services ready (inference=%s, research=%s)",
                inference.provider, 'on' if research is not None else 'off')
    return Services(store=store, search=search, inference=inference, research=research, pipeline=pipeline)


def get_services(app=None) -> Services:
    """Services for the given (or current) Flask app."""
    if app is None:
        from flask import current_app
        app = current_app
    return app.extensions[EXTENSION_KEY]
