"""
Settings Blueprint - API key management.

Routes:
- GET    /api/settings/api-key - Masked key and whether one is configured
- POST   /api/settings/api-key - Save a key, test it, forget it if rejected
- DELETE /api/settings/api-key - Remove the stored key (requires confirm)
"""
import logging

from flask import Blueprint, jsonify

from ..storage import API_KEY_STORAGE_KEY
from ..utils import is_masked, mask_api_key
from .common import confirmation_required, confirmed, get_client, json_body

logger = logging.getLogger(__name__)

settings_bp = Blueprint('settings', __name__, url_prefix='/api/settings')


@settings_bp.route('/api-key', methods=['GET'])
def get_api_key():
    """Report the configured key, masked."""
    client = get_client()
    stored = client.storage.get_item(API_KEY_STORAGE_KEY)
    key = client.config.api_key
    return jsonify({
        'configured': client.has_api_key(),
        'source': 'stored' if stored else ('default' if key else None),
        'apiKey': mask_api_key(key) if key else None,
    })


@settings_bp.route('/api-key', methods=['POST'])
def save_api_key():
    """Store a new key and validate it against the API."""
    api_key = (json_body().get('apiKey') or '').strip()
    if not api_key or is_masked(api_key):
        return jsonify({'error': 'validation', 'message': 'Please enter a valid API key'}), 400

    client = get_client()
    client.set_api_key(api_key)

    if not client.test_api_key():
        client.clear_api_key()
        logger.warning(f"Rejected API key {mask_api_key(api_key)}")
        return jsonify({
            'valid': False,
            'message': 'API key is invalid. Please check and try again.'
        }), 400

    return jsonify({
        'valid': True,
        'apiKey': mask_api_key(api_key),
        'message': 'API key saved and validated successfully!'
    })


@settings_bp.route('/api-key', methods=['DELETE'])
def clear_api_key():
    if not confirmed():
        return confirmation_required()
    get_client().clear_api_key()
    return jsonify({'message': 'API key removed successfully'})
