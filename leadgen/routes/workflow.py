"""
Workflow routes — discovery trigger and the scheduled daily workflow.
"""
import hmac
import logging

from flask import Blueprint, jsonify, request

from leadgen import config
from leadgen.extensions import get_services
from leadgen.pipeline.daily import run_daily_workflow
from leadgen.pipeline.discovery import discover_leads
from leadgen.routes import NOT_AN_OBJECT, json_body

logger = logging.getLogger('routes.workflow')

bp = Blueprint('workflow', __name__)


def _cron_authorized() -> bool:
    """No CRON_SECRET configured → open; otherwise require the bearer token."""
    secret = config.CRON_SECRET
    if not secret:
        return True
    header = request.headers.get('Authorization', '')
    return hmac.compare_digest(header, f'Bearer {secret}')


@bp.route('/api/discover', methods=['POST'])
def discover():
    """Search for candidates and insert the ones we don't have yet."""
    try:
        data = json_body()
        if data is None:
            return jsonify({'error': NOT_AN_OBJECT}), 400
        query = data.get('query')
        if query is not None and not isinstance(query, str):
            return jsonify({'error': 'query must be a string'}), 400
        services = get_services()
        outcome = discover_leads(services.store, services.search, query=query)
        return jsonify(outcome.to_dict())
    except Exception:
        logger.error("Discovery failed", exc_info=True)
        return jsonify({'error': 'Discovery failed'}), 500


@bp.route('/api/cron/daily-workflow')
def daily_workflow():
    """Scheduler entry point: discover for a random niche, enrich sequentially."""
    if not _cron_authorized():
        return jsonify({'error': 'Unauthorized'}), 401

    logger.info("Starting daily workflow...")
    try:
        services = get_services()
        outcome = run_daily_workflow(services.store, services.search, services.pipeline)
        return jsonify({
            'success': True,
            'message': 'Daily workflow completed',
            'niche': outcome['niche'],
            'leads_processed': outcome['leads_processed'],
        })
    except Exception as e:
        logger.error("Daily workflow failed", exc_info=True)
        return jsonify({'error': str(e)}), 500
