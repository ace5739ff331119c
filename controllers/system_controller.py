from flask import Blueprint, jsonify, current_app
from pymongo.errors import PyMongoError

from utils.db import ping_database, uri_preview
from utils.serializers import utcnow, isoformat

system_bp = Blueprint("system", __name__, url_prefix="/api")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


# Polled by the client to detect when it is offline
@system_bp.route("/ping", methods=["GET", "HEAD"])
def ping():
    response = jsonify({"status": "ok", "timestamp": isoformat(utcnow())})
    response.headers.update(NO_CACHE_HEADERS)
    return response


@system_bp.route("/health/db")
def db_health():
    uri = current_app.config.get("MONGO_URI")
    connection_status = "connected"
    error = None

    try:
        ping_database()
    except PyMongoError as e:
        current_app.logger.warning("MongoDB ping failed: %s", e)
        connection_status = "failed"
        error = str(e)

    response = jsonify({
        "mongodb_uri_set": bool(uri),
        "uri_preview": uri_preview(uri),
        "connection_status": connection_status,
        "error": error,
    })
    response.headers["Cache-Control"] = NO_CACHE_HEADERS["Cache-Control"]
    return response
