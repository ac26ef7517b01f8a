"""
Shared helpers for the console API blueprints.

- get_client(): per-request ObservePointClient bound to local storage
- require_api_key: refuses data endpoints until a key is configured
- register_error_handlers(): maps client/validation errors to JSON
"""
import logging
from functools import wraps

import httpx
from flask import current_app, g, jsonify, request

from ..client import InvalidApiKeyError, ObservePointAPIError, ObservePointClient
from ..storage import DatabaseStorage
from ..validation_templates import TemplateValidationError
from ..validations import WebValidationService

logger = logging.getLogger(__name__)


def get_client() -> ObservePointClient:
    """Client for the current request, built from the stored API key."""
    if 'observepoint_client' not in g:
        g.observepoint_client = ObservePointClient(
            storage=DatabaseStorage(),
            transport=current_app.config.get('OBSERVEPOINT_TRANSPORT'),
        )
    return g.observepoint_client


def get_validation_service() -> WebValidationService:
    return WebValidationService(get_client())


def close_client(exc=None):
    client = g.pop('observepoint_client', None)
    if client is not None:
        client.close()


def require_api_key(f):
    """
    Decorator for endpoints that talk to the ObservePoint API.

    Returns 401 until an API key is stored or configured, so no data view is
    reachable without credentials.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not get_client().has_api_key():
            return jsonify({
                'error': 'api_key_required',
                'message': 'Please configure your ObservePoint API key in Settings.'
            }), 401
        return f(*args, **kwargs)
    return decorated_function


def confirmed() -> bool:
    """True if the caller explicitly confirmed a destructive action."""
    if request.args.get('confirm', '').lower() in ('1', 'true', 'yes'):
        return True
    payload = request.get_json(silent=True) or {}
    return payload.get('confirm') is True


def confirmation_required():
    return jsonify({
        'error': 'confirmation_required',
        'message': 'Repeat the request with confirm=true to proceed.'
    }), 400


def json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def register_error_handlers(app):
    """Translate client and validation errors into JSON responses."""

    @app.errorhandler(InvalidApiKeyError)
    def invalid_api_key(e):
        return jsonify({'error': 'invalid_api_key', 'message': e.message}), 401

    @app.errorhandler(ObservePointAPIError)
    def api_error(e):
        status = e.status_code if e.status_code and 400 <= e.status_code < 600 else 502
        return jsonify({'error': 'api_error', 'message': e.message}), status

    @app.errorhandler(TemplateValidationError)
    def validation_error(e):
        return jsonify({'error': 'validation', 'message': str(e), 'fields': e.errors}), 400

    @app.errorhandler(httpx.HTTPError)
    def transport_error(e):
        logger.error(f"ObservePoint API unreachable: {e}")
        return jsonify({'error': 'upstream', 'message': f'ObservePoint API request failed: {e}'}), 502
