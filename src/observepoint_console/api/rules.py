"""
Rules Blueprint.

Routes:
- GET/POST        /api/rules
- GET/PUT/DELETE  /api/rules/<id>
- POST/DELETE     /api/rules/<id>/journeys/<journey_id>
"""
import logging

from flask import Blueprint, jsonify

from ..models import RULE_OPERATORS, RULE_TYPES, describe_rule
from .common import (
    confirmation_required,
    confirmed,
    get_client,
    json_body,
    require_api_key,
)

logger = logging.getLogger(__name__)

rules_bp = Blueprint('rules', __name__, url_prefix='/api/rules')


def _rule_json(rule):
    data = rule.to_dict()
    data['summary'] = describe_rule(rule)
    return data


def _check_rule_payload(payload, partial=False):
    """Return an error message for an invalid rule payload, else None."""
    if not partial and not (payload.get('name') or '').strip():
        return 'Name is required'
    if 'type' in payload and payload['type'] not in RULE_TYPES:
        return f"Rule type must be one of: {', '.join(sorted(RULE_TYPES))}"
    operator = (payload.get('condition') or {}).get('operator')
    if operator is not None and operator not in RULE_OPERATORS:
        return f"Operator must be one of: {', '.join(sorted(RULE_OPERATORS))}"
    return None


@rules_bp.route('', methods=['GET'])
@require_api_key
def list_rules():
    return jsonify([_rule_json(r) for r in get_client().get_rules()])


@rules_bp.route('', methods=['POST'])
@require_api_key
def create_rule():
    payload = json_body()
    error = _check_rule_payload(payload)
    if error:
        return jsonify({'error': 'validation', 'message': error}), 400
    return jsonify(_rule_json(get_client().create_rule(payload))), 201


@rules_bp.route('/<rule_id>', methods=['GET'])
@require_api_key
def get_rule(rule_id):
    return jsonify(_rule_json(get_client().get_rule(rule_id)))


@rules_bp.route('/<rule_id>', methods=['PUT'])
@require_api_key
def update_rule(rule_id):
    payload = json_body()
    error = _check_rule_payload(payload, partial=True)
    if error:
        return jsonify({'error': 'validation', 'message': error}), 400
    return jsonify(_rule_json(get_client().update_rule(rule_id, payload)))


@rules_bp.route('/<rule_id>', methods=['DELETE'])
@require_api_key
def delete_rule(rule_id):
    if not confirmed():
        return confirmation_required()
    get_client().delete_rule(rule_id)
    return '', 204


@rules_bp.route('/<rule_id>/journeys/<journey_id>', methods=['POST'])
@require_api_key
def assign_rule(rule_id, journey_id):
    get_client().assign_rule_to_journey(rule_id, journey_id)
    return '', 204


@rules_bp.route('/<rule_id>/journeys/<journey_id>', methods=['DELETE'])
@require_api_key
def unassign_rule(rule_id, journey_id):
    get_client().remove_rule_from_journey(rule_id, journey_id)
    return '', 204
