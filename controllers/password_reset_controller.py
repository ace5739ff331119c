from flask import Blueprint, request, jsonify, current_app

from models.password_reset import PasswordResetRequest
from utils.auth import master_key_required

password_reset_bp = Blueprint("password_reset", __name__, url_prefix="/api/auth/password-reset")


def _json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


# -----------------------------
# REQUEST A RESET (regular admin)
# -----------------------------
@password_reset_bp.route("/request", methods=["POST"])
def request_reset():
    message = PasswordResetRequest.submit(_json_body().get("email"))
    return jsonify({"success": True, "message": message})


# -----------------------------
# CHECK REQUEST / BYPASS STATUS
# -----------------------------
@password_reset_bp.route("/status", methods=["POST"])
def reset_status():
    data = PasswordResetRequest.status_for(_json_body().get("email"))
    return jsonify({"success": True, "data": data})


# -----------------------------
# VIEW REQUESTS (master admin)
# -----------------------------
@password_reset_bp.route("/requests", methods=["POST"])
@master_key_required
def view_requests():
    return jsonify({"success": True, "data": PasswordResetRequest.list_with_users()})


# -----------------------------
# ACCEPT / REJECT (master admin)
# -----------------------------
@password_reset_bp.route("/requests", methods=["PATCH"])
@master_key_required
def resolve_request():
    body = _json_body()
    resolved = PasswordResetRequest.resolve(
        body.get("requestId"),
        body.get("action"),
        resolved_by=body.get("resolvedBy"),
        bypass_minutes=current_app.config["PASSWORD_BYPASS_MINUTES"],
    )
    current_app.logger.info("Password reset request %s %s by %s",
                            resolved["_id"], resolved["status"], resolved["resolvedBy"])
    return jsonify({"success": True, "data": resolved})
