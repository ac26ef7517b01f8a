"""
WSGI Application Entry Point

Usage:
    gunicorn wsgi:application
"""
import os
import sys

# Add src root to Python path for the observepoint_console package
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from observepoint_console.app import create_app
from observepoint_console.utils import configure_logging

configure_logging()

application = create_app()

if __name__ == "__main__":
    application.run(
        host=os.environ.get('HOST', '127.0.0.1'),
        port=int(os.environ.get('PORT', '5000')),
    )
