import os
import time
from datetime import datetime

from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from rail_fence import Operation

DEFAULT_DATABASE_URL = "sqlite:///rail_fence_history.db"

db = SQLAlchemy()


# ==================== CONFIGURATION ====================

def database_url_from_env():
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        return DEFAULT_DATABASE_URL
    # Heroku-style URLs still use the old scheme name
    return database_url.replace("postgres://", "postgresql://", 1)


def init_history_store(app):
    app.config.setdefault("SQLALCHEMY_DATABASE_URI", database_url_from_env())
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    db.init_app(app)
    with app.app_context():
        db.create_all()
    return app


def create_app(database_url=None):
    """
    Flask app that only carries the history store configuration.
    No routes are registered here; callers own their presentation layer.
    """
    app = Flask(__name__)
    if database_url:
        app.config["SQLALCHEMY_DATABASE_URI"] = database_url
    return init_history_store(app)


def wait_for_store(max_retries=20, delay=2):
    """Checks the database connection repeatedly until it answers."""
    for i in range(max_retries):
        try:
            db.session.execute(text("SELECT 1"))
            return True
        except OperationalError:
            db.session.rollback()
            current_app.logger.warning(
                "History store not ready. Retrying in %s second(s)... (%s/%s)",
                delay, i + 1, max_retries,
            )
            time.sleep(delay)
    current_app.logger.error("History store unreachable after %s attempts.", max_retries)
    return False


# ==================== DATABASE MODEL ====================

class OperationHistory(db.Model):
    __tablename__ = "operation_history"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    operation_type = db.Column(db.String(16), nullable=False)
    original_text = db.Column(db.Text, nullable=False)
    processed_text = db.Column(db.Text, nullable=False)
    rails = db.Column(db.Integer, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "operation_type": self.operation_type,
            "original_text": self.original_text,
            "processed_text": self.processed_text,
            "rails": self.rails,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f"<OperationHistory {self.id} {self.operation_type}>"


# ==================== RECORDER ====================

def record_operation(operation, original, processed, rails):
    """
    Store one finished cipher operation. Must run inside an app context.
    A failing store is logged and rolled back; the caller still has its result.
    """
    entry = OperationHistory(
        operation_type=Operation.parse(operation).value,
        original_text=original,
        processed_text=processed,
        rails=int(rails),
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Error creating operation history: %s", e)
        return None
    return entry


def list_operations(limit=None):
    query = db.select(OperationHistory).order_by(OperationHistory.id)
    if limit is not None:
        query = query.limit(limit)
    try:
        return list(db.session.execute(query).scalars())
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Error retrieving operation history: %s", e)
        return []
