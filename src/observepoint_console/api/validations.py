"""
Web Validation Blueprint.

Routes:
- GET/POST        /api/validations
- GET/PUT/DELETE  /api/validations/<id>
- POST            /api/validations/<id>/run
- GET             /api/validations/<id>/runs
- GET             /api/validations/<id>/runs/<run_id>
- GET/POST        /api/validation-templates
- GET/DELETE      /api/validation-templates/<id>

Create/update accept the validation form:
    {"name", "description", "url", "frequency", "validations": [...],
     "templateId": optional, "variables": {key: value}}
"""
import logging

from flask import Blueprint, jsonify

from ..validation_templates import TemplateValidationError, build_validation_from_form, parse_template
from .common import (
    confirmation_required,
    confirmed,
    get_validation_service,
    json_body,
    require_api_key,
)

logger = logging.getLogger(__name__)

validations_bp = Blueprint('validations', __name__, url_prefix='/api')


def _validation_from_request(service):
    payload = json_body()
    template = None
    template_id = payload.get('templateId')
    if template_id:
        template = service.get_validation_template(template_id)
        if template is None:
            raise TemplateValidationError({'templateId': f"Unknown template: {template_id}"})
    return build_validation_from_form(payload, template, payload.get('variables'))


# ============================================================================
# Validations
# ============================================================================

@validations_bp.route('/validations', methods=['GET'])
@require_api_key
def list_validations():
    service = get_validation_service()
    return jsonify([v.to_dict() for v in service.list_validations()])


@validations_bp.route('/validations', methods=['POST'])
@require_api_key
def create_validation():
    service = get_validation_service()
    validation = _validation_from_request(service)
    result = service.create_validation(validation)
    return jsonify(result.to_dict()), 201


@validations_bp.route('/validations/<validation_id>', methods=['GET'])
@require_api_key
def get_validation(validation_id):
    return jsonify(get_validation_service().get_validation(validation_id).to_dict())


@validations_bp.route('/validations/<validation_id>', methods=['PUT'])
@require_api_key
def update_validation(validation_id):
    service = get_validation_service()
    validation = _validation_from_request(service)
    result = service.update_validation(validation_id, validation)
    return jsonify(result.to_dict())


@validations_bp.route('/validations/<validation_id>', methods=['DELETE'])
@require_api_key
def delete_validation(validation_id):
    if not confirmed():
        return confirmation_required()
    get_validation_service().delete_validation(validation_id)
    return '', 204


@validations_bp.route('/validations/<validation_id>/run', methods=['POST'])
@require_api_key
def run_validation(validation_id):
    run = get_validation_service().run_validation(validation_id)
    return jsonify(run.to_dict()), 202


@validations_bp.route('/validations/<validation_id>/runs', methods=['GET'])
@require_api_key
def list_validation_runs(validation_id):
    runs = get_validation_service().get_validation_runs(validation_id)
    return jsonify([r.to_dict() for r in runs])


@validations_bp.route('/validations/<validation_id>/runs/<run_id>', methods=['GET'])
@require_api_key
def get_validation_run(validation_id, run_id):
    run = get_validation_service().get_validation_run(validation_id, run_id)
    return jsonify(run.to_dict())


# ============================================================================
# Templates (local only, no API key needed)
# ============================================================================

@validations_bp.route('/validation-templates', methods=['GET'])
def list_templates():
    templates = get_validation_service().get_validation_templates()
    return jsonify([t.to_dict() for t in templates])


@validations_bp.route('/validation-templates', methods=['POST'])
def save_template():
    template = parse_template(json_body())
    saved = get_validation_service().save_validation_template(template)
    return jsonify(saved.to_dict()), 201


@validations_bp.route('/validation-templates/<template_id>', methods=['GET'])
def get_template(template_id):
    template = get_validation_service().get_validation_template(template_id)
    if template is None:
        return jsonify({'error': 'not_found', 'message': f'Template {template_id} not found'}), 404
    return jsonify(template.to_dict())


@validations_bp.route('/validation-templates/<template_id>', methods=['DELETE'])
def delete_template(template_id):
    if not confirmed():
        return confirmation_required()
    if not get_validation_service().delete_validation_template(template_id):
        return jsonify({'error': 'not_found', 'message': f'Template {template_id} not found'}), 404
    return '', 204
