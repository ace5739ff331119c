"""
utils/db.py
-----------------
This module owns the MongoDB handle shared by the whole Flask application.

A single PyMongo instance lives for the process lifetime. The client is
created with connect=False, so the driver only opens sockets on first use,
and get_db() prepares the indexes exactly once per application.
"""

import threading

from flask import current_app
from flask_pymongo import PyMongo
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

# Create a global MongoDB instance
mongo = PyMongo()

_init_lock = threading.Lock()
_READY_KEY = "als_db_ready"


def init_db_connection(app):
    """
    Bind the MongoDB client to the Flask app.
    Loads settings from config.py (like MONGO_URI).
    """
    mongo.init_app(app, connect=False)
    app.extensions[_READY_KEY] = False
    app.logger.info("MongoDB client configured for %s", uri_preview(app.config.get("MONGO_URI")))
    return mongo


def get_db():
    """Return the application database, creating indexes on first access."""
    app = current_app._get_current_object()
    if not app.extensions.get(_READY_KEY):
        with _init_lock:
            if not app.extensions.get(_READY_KEY):
                ensure_indexes(mongo.db)
                app.extensions[_READY_KEY] = True
    return mongo.db


def ensure_indexes(db):
    _create_index(db.users, [("email", ASCENDING)], name="unique_email", unique=True)

    # At most one pending reset request per user
    _create_index(
        db.password_reset_requests,
        [("userId", ASCENDING)],
        name="unique_pending_reset",
        unique=True,
        partialFilterExpression={"status": "pending"},
    )
    _create_index(
        db.password_reset_requests,
        [("userId", ASCENDING), ("createdAt", DESCENDING)],
        name="reset_by_user_created",
    )
    _create_index(
        db.login_logs,
        [("userId", ASCENDING), ("loginAt", DESCENDING)],
        name="login_by_user_time",
    )


def _create_index(collection, keys, **kwargs):
    try:
        collection.create_index(keys, **kwargs)
    except OperationFailure as e:
        # Existing data can violate a new unique index; keep serving.
        current_app.logger.warning("Could not create index %s on %s: %s",
                                   kwargs.get("name"), collection.name, e)


def ping_database():
    """Run the server ping command; raises PyMongoError when unreachable."""
    return mongo.db.command("ping")


def uri_preview(uri):
    if not uri:
        return "NOT SET"
    return f"{uri[:20]}..."
