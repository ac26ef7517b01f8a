"""
Local persistence for the console.

The console keeps exactly two pieces of local state: the operator's API key
and the list of validation templates. Both are stored as text items in a
SQLite file next to the deployment.
"""
import logging
import os
from datetime import datetime
from typing import Optional

from flask_sqlalchemy import SQLAlchemy

from .config_defaults import get_default

logger = logging.getLogger(__name__)

db = SQLAlchemy()


class StoredItem(db.Model):
    """One localStorage-style entry: a key and its raw string value."""
    __tablename__ = 'local_storage'

    key = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def read(cls, key: str) -> Optional[str]:
        item = db.session.get(cls, key)
        return item.value if item is not None else None

    @classmethod
    def write(cls, key: str, value: str):
        item = db.session.get(cls, key)
        if item is None:
            db.session.add(cls(key=key, value=value))
        else:
            item.value = value
        db.session.commit()

    @classmethod
    def remove(cls, key: str):
        item = db.session.get(cls, key)
        if item is not None:
            db.session.delete(item)
            db.session.commit()


def get_db_path() -> str:
    """
    Get database file path.
    Priority: environment variable > .env defaults > current directory
    """
    db_path = os.environ.get('OBSERVEPOINT_CONSOLE_DB_PATH') or get_default('OBSERVEPOINT_CONSOLE_DB_PATH')
    if db_path:
        return db_path
    return os.path.join(os.getcwd(), 'observepoint_console.db')


def init_db(app):
    """Bind the database to the app and create tables."""
    db_path = get_db_path()
    app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{db_path}'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    db.init_app(app)

    with app.app_context():
        db.create_all()
        logger.info(f"Local storage ready at {db_path}")
