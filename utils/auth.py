from functools import wraps

from flask import session, request, current_app
from werkzeug.security import check_password_hash

from utils.errors import UnauthorizedError


# This decorator makes sure that only logged-in admins reach the endpoint
def login_required(view_function):
    @wraps(view_function)
    def decorated_function(*args, **kwargs):
        if "user_id" not in session:
            raise UnauthorizedError("Please log in to access this resource.")
        return view_function(*args, **kwargs)
    return decorated_function


def verify_master_key(auth_key):
    key_hash = current_app.config.get("MASTER_AUTH_KEY_HASH")
    if not auth_key or not key_hash:
        return False
    try:
        return check_password_hash(key_hash, auth_key)
    except ValueError:
        current_app.logger.error("MASTER_AUTH_KEY_HASH is not a werkzeug password hash")
        return False


# Master admin endpoints carry the auth key in the JSON body
def master_key_required(view_function):
    @wraps(view_function)
    def decorated_function(*args, **kwargs):
        body = request.get_json(silent=True)
        auth_key = body.get("authKey") if isinstance(body, dict) else None
        if not verify_master_key(auth_key):
            current_app.logger.warning("Rejected master key on %s %s", request.method, request.path)
            raise UnauthorizedError()
        return view_function(*args, **kwargs)
    return decorated_function


def login_user(user):
    session.clear()
    session["user_id"] = str(user["_id"])
    session["role"] = user.get("role")


def logout_user():
    session.clear()
