"""
Flask Application Factory for the ObservePoint console.

The console is a JSON API over:
- the ObservePoint REST API (journeys, actions, runs, rules)
- the web validation layer built on top of journeys
- local storage for the API key and validation templates
"""
import logging
import os

from flask import Flask, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix

from .api import journeys_bp, rules_bp, settings_bp, validations_bp
from .api.common import close_client, register_error_handlers
from .config_defaults import get_default
from .database import init_db

logger = logging.getLogger(__name__)


def create_app(test_config: dict | None = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        test_config: Optional config overrides applied before initialization
            (e.g. OBSERVEPOINT_TRANSPORT to inject an httpx transport)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    # Trust proxy headers (for reverse proxy deployments)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY') or get_default('SECRET_KEY', 'dev')
    app.config['MAX_CONTENT_LENGTH'] = int(os.environ.get('MAX_CONTENT_LENGTH', 1024 * 1024))
    app.config['OBSERVEPOINT_TRANSPORT'] = None

    if test_config:
        app.config.update(test_config)

    init_db(app)

    app.register_blueprint(settings_bp)
    app.register_blueprint(journeys_bp)
    app.register_blueprint(rules_bp)
    app.register_blueprint(validations_bp)

    register_error_handlers(app)
    app.teardown_appcontext(close_client)

    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith('/api/'):
            return jsonify({'error': 'not_found', 'message': 'Endpoint not found'}), 404
        return "Not Found", 404

    @app.errorhandler(500)
    def internal_error(e):
        logger.exception("Internal server error")
        return jsonify({'error': 'internal', 'message': 'Internal server error'}), 500

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({'status': 'ok'})

    logger.info("Flask application created successfully")

    return app
