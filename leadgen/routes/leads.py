"""
Lead routes — health check, operator lead API, analyze trigger.
"""
import logging

from flask import Blueprint, jsonify, request

from leadgen.config import STATUS_NEW, LEAD_STATUSES
from leadgen.extensions import get_services
from leadgen.pipeline.enrichment import ERROR_INPUT, ERROR_NOT_FOUND, normalize_url
from leadgen.routes import NOT_AN_OBJECT, json_body
from leadgen.services.store import StoreError

logger = logging.getLogger('routes.leads')

bp = Blueprint('leads', __name__)

# Operators may only hand-edit the draft; everything else belongs to the pipeline
OPERATOR_EDITABLE = {'email_draft'}

_ERROR_STATUS = {ERROR_INPUT: 400, ERROR_NOT_FOUND: 404}


def _parse_lead_id(raw):
    if raw is None or raw == '':
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid lead id: {raw!r}")


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


# ── Operator lead API ────────────────────────────────────────────────────────

@bp.route('/api/leads')
def list_leads():
    """All leads, newest first. Optional ?status= filter."""
    status = request.args.get('status')
    if status and status not in LEAD_STATUSES:
        return jsonify({'error': f'Unknown status: {status}'}), 400
    try:
        leads = get_services().store.list_leads(status=status)
        return jsonify([lead.to_dict() for lead in leads])
    except StoreError as e:
        return jsonify({'error': str(e)}), 500


@bp.route('/api/leads/<int:lead_id>')
def get_lead(lead_id):
    try:
        lead = get_services().store.get_by_id(lead_id)
    except StoreError as e:
        return jsonify({'error': str(e)}), 500
    if lead is None:
        return jsonify({'error': 'Lead not found'}), 404
    return jsonify(lead.to_dict())


@bp.route('/api/leads', methods=['POST'])
def create_lead():
    """Manual lead entry — status 'new', no analysis yet."""
    data = json_body()
    if data is None:
        return jsonify({'error': NOT_AN_OBJECT}), 400
    url = normalize_url(data.get('url'))
    if not url:
        return jsonify({'error': 'URL is required'}), 400
    company_name = data.get('company_name')
    if company_name is not None and not isinstance(company_name, str):
        return jsonify({'error': 'company_name must be a string'}), 400

    store = get_services().store
    try:
        if store.find_by_url(url) is not None:
            return jsonify({'error': 'Lead already exists'}), 409
        company_name = (company_name or '').strip() or None
        lead = store.upsert_by_url(url, {'company_name': company_name, 'status': STATUS_NEW})
    except StoreError as e:
        return jsonify({'error': str(e)}), 500
    logger.info("Created lead %s for %s", lead.id, url)
    return jsonify(lead.to_dict()), 201


@bp.route('/api/leads/<int:lead_id>', methods=['PATCH'])
def update_lead(lead_id):
    """Operator edit of the email draft."""
    data = json_body()
    if data is None:
        return jsonify({'error': NOT_AN_OBJECT}), 400
    rejected = set(data) - OPERATOR_EDITABLE
    if rejected:
        return jsonify({'error': f'Fields not editable: {sorted(rejected)}'}), 400
    if 'email_draft' not in data or not isinstance(data['email_draft'], str):
        return jsonify({'error': 'email_draft must be a string'}), 400

    try:
        lead = get_services().store.update_by_id(lead_id, {'email_draft': data['email_draft']})
    except StoreError as e:
        return jsonify({'error': str(e)}), 500
    if lead is None:
        return jsonify({'error': 'Lead not found'}), 404
    return jsonify(lead.to_dict())


@bp.route('/api/leads/<int:lead_id>', methods=['DELETE'])
def delete_lead(lead_id):
    try:
        deleted = get_services().store.delete_by_id(lead_id)
    except StoreError as e:
        return jsonify({'error': str(e)}), 500
    if not deleted:
        return jsonify({'error': 'Lead not found'}), 404
    return jsonify({'ok': True})


# ── Analyze trigger ──────────────────────────────────────────────────────────

@bp.route('/api/analyze', methods=['POST'])
def analyze():
    """Run the enrichment pipeline for {url, id?}."""
    try:
        data = json_body()
        if data is None:
            return jsonify({'error': NOT_AN_OBJECT}), 400
        url = data.get('url')
        if not isinstance(url, str) or not url.strip():
            return jsonify({'error': 'URL is required'}), 400

        try:
            lead_id = _parse_lead_id(data.get('id'))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        logger.info("Analyzing lead: %s", url)
        result = get_services().pipeline.run(url, lead_id=lead_id)

        if not result.success:
            status = _ERROR_STATUS.get(result.error_kind, 500)
            return jsonify({'error': result.error}), status

        lead = result.lead.to_dict()
        return jsonify({'success': True, 'lead': lead, 'data': lead, 'warnings': result.warnings})
    except Exception as e:
        logger.error("Analyze request failed", exc_info=True)
        return jsonify({'error': str(e)}), 500
