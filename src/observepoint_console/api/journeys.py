"""
Web Journey Blueprint - pass-through to the ObservePoint journey API.

Routes:
- GET/POST        /api/web-journeys
- GET/PUT/DELETE  /api/web-journeys/<id>
- GET/POST        /api/web-journeys/<id>/actions
- PUT             /api/web-journeys/<id>/actions/order
- PUT/DELETE      /api/web-journeys/<id>/actions/<action_id>
- POST            /api/web-journeys/<id>/run
- GET             /api/web-journeys/<id>/runs
- GET             /api/web-journeys/<id>/runs/<run_id>
- POST            /api/web-journeys/<id>/runs/<run_id>/stop
"""
import logging

from flask import Blueprint, jsonify

from ..models import ACTION_TYPES, JOURNEY_STATUSES, resequence_actions
from .common import (
    confirmation_required,
    confirmed,
    get_client,
    json_body,
    require_api_key,
)

logger = logging.getLogger(__name__)

journeys_bp = Blueprint('journeys', __name__, url_prefix='/api/web-journeys')


def _validation_error(message):
    return jsonify({'error': 'validation', 'message': message}), 400


# ============================================================================
# Journeys
# ============================================================================

@journeys_bp.route('', methods=['GET'])
@require_api_key
def list_journeys():
    return jsonify([j.to_dict() for j in get_client().get_web_journeys()])


@journeys_bp.route('', methods=['POST'])
@require_api_key
def create_journey():
    payload = json_body()
    if not (payload.get('name') or '').strip():
        return _validation_error('Name is required')
    if payload.get('status', 'active') not in JOURNEY_STATUSES:
        return _validation_error(f"Unknown status: {payload.get('status')}")
    journey = get_client().create_web_journey(payload)
    return jsonify(journey.to_dict()), 201


@journeys_bp.route('/<journey_id>', methods=['GET'])
@require_api_key
def get_journey(journey_id):
    return jsonify(get_client().get_web_journey(journey_id).to_dict())


@journeys_bp.route('/<journey_id>', methods=['PUT'])
@require_api_key
def update_journey(journey_id):
    return jsonify(get_client().update_web_journey(journey_id, json_body()).to_dict())


@journeys_bp.route('/<journey_id>', methods=['DELETE'])
@require_api_key
def delete_journey(journey_id):
    if not confirmed():
        return confirmation_required()
    get_client().delete_web_journey(journey_id)
    return '', 204


# ============================================================================
# Actions
# ============================================================================

@journeys_bp.route('/<journey_id>/actions', methods=['GET'])
@require_api_key
def list_actions(journey_id):
    return jsonify([a.to_dict() for a in get_client().get_journey_actions(journey_id)])


@journeys_bp.route('/<journey_id>/actions', methods=['POST'])
@require_api_key
def add_action(journey_id):
    payload = json_body()
    if payload.get('action') not in ACTION_TYPES:
        return _validation_error(f"Action must be one of: {', '.join(sorted(ACTION_TYPES))}")

    client = get_client()
    if 'sequence' not in payload:
        payload['sequence'] = len(client.get_journey_actions(journey_id))
    action = client.add_journey_action(journey_id, payload)
    return jsonify(action.to_dict()), 201


@journeys_bp.route('/<journey_id>/actions/order', methods=['PUT'])
@require_api_key
def reorder_actions(journey_id):
    action_ids = json_body().get('actionIds')
    if not isinstance(action_ids, list) or not action_ids:
        return _validation_error('actionIds must be a non-empty list')
    get_client().reorder_journey_actions(journey_id, action_ids)
    return '', 204


@journeys_bp.route('/<journey_id>/actions/<action_id>', methods=['PUT'])
@require_api_key
def update_action(journey_id, action_id):
    action = get_client().update_journey_action(journey_id, action_id, json_body())
    return jsonify(action.to_dict())


@journeys_bp.route('/<journey_id>/actions/<action_id>', methods=['DELETE'])
@require_api_key
def delete_action(journey_id, action_id):
    """Delete an action and close the gap in the sequence numbers."""
    if not confirmed():
        return confirmation_required()

    client = get_client()
    client.delete_journey_action(journey_id, action_id)

    remaining = client.get_journey_actions(journey_id)
    resequence_actions(remaining)
    ids = [str(a.action_id) for a in remaining if a.action_id is not None]
    if ids:
        client.reorder_journey_actions(journey_id, ids)
    return '', 204


# ============================================================================
# Runs
# ============================================================================

@journeys_bp.route('/<journey_id>/run', methods=['POST'])
@require_api_key
def run_journey(journey_id):
    return jsonify(get_client().run_web_journey(journey_id).to_dict()), 202


@journeys_bp.route('/<journey_id>/runs', methods=['GET'])
@require_api_key
def list_runs(journey_id):
    return jsonify([r.to_dict() for r in get_client().get_journey_runs(journey_id)])


@journeys_bp.route('/<journey_id>/runs/<run_id>', methods=['GET'])
@require_api_key
def get_run(journey_id, run_id):
    return jsonify(get_client().get_journey_run(journey_id, run_id).to_dict())


@journeys_bp.route('/<journey_id>/runs/<run_id>/stop', methods=['POST'])
@require_api_key
def stop_run(journey_id, run_id):
    get_client().stop_journey_run(journey_id, run_id)
    return '', 204
