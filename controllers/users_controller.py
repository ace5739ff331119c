from flask import Blueprint, request, jsonify, current_app
from pymongo.errors import DuplicateKeyError
from werkzeug.security import generate_password_hash

from models.roles import Role
from models.users import User, full_name, normalize_email
from utils.auth import master_key_required
from utils.errors import ValidationError, NotFoundError, ConflictError

users_bp = Blueprint("users", __name__, url_prefix="/api/auth/users")

# Fields the client may not overwrite directly
PROTECTED_FIELDS = ("_id", "createdAt", "updatedAt", "initialPassword")
NAME_FIELDS = ("firstName", "middleName", "lastName")


def _user_payload():
    body = request.get_json(silent=True) or {}
    user = body.get("user")
    if not isinstance(user, dict) or not user.get("_id"):
        raise ValidationError("User ID is required")
    return user


# -----------------------------
# VIEW USERS
# -----------------------------
@users_bp.route("", methods=["POST"])
@master_key_required
def view_users():
    users = [User.public_view(u) for u in User.find_all()]
    return jsonify({"success": True, "data": users})


# -----------------------------
# EDIT USER
# -----------------------------
@users_bp.route("", methods=["PATCH"])
@master_key_required
def edit_user():
    payload = _user_payload()
    user_id = payload["_id"]

    update_data = {k: v for k, v in payload.items() if k not in PROTECTED_FIELDS}

    # Keys become document paths; operators and dotted paths stay out
    bad_keys = [k for k in update_data if k.startswith("$") or "." in k]
    if bad_keys:
        raise ValidationError(f"Invalid field name: {bad_keys[0]}")

    current = User.find_by_id(user_id)
    if not current:
        raise NotFoundError("User not found")

    if "role" in update_data:
        role = Role.parse(update_data["role"])
        if role is None:
            raise ValidationError("Invalid role")
        update_data["role"] = role.value

    if "email" in update_data:
        update_data["email"] = normalize_email(update_data["email"])
        if not update_data["email"]:
            raise ValidationError("Email is required")

    # Same barangay rule as registration
    merged = {**current, **update_data}
    merged_role = Role.parse(merged.get("role"))
    if merged_role == Role.ADMIN and not merged.get("assignedBarangayId"):
        raise ValidationError("Barangay assignment is required for regular admins")
    if merged_role == Role.MASTER_ADMIN:
        update_data["assignedBarangayId"] = None

    if any(k in update_data for k in NAME_FIELDS):
        update_data["name"] = full_name(*(merged.get(k) for k in NAME_FIELDS))

    # Update password only if provided
    if update_data.get("password"):
        update_data["password"] = generate_password_hash(update_data["password"])
    else:
        update_data.pop("password", None)

    try:
        result = User.update(user_id, update_data)
    except DuplicateKeyError:
        raise ConflictError("User with this email already exists.")

    if result.matched_count == 0:
        raise NotFoundError("User not found")

    current_app.logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(update_data)) or "no fields")
    return jsonify({
        "success": True,
        "data": {"matchedCount": result.matched_count, "modifiedCount": result.modified_count},
    })


# -----------------------------
# DELETE USER
# -----------------------------
@users_bp.route("", methods=["DELETE"])
@master_key_required
def delete_user():
    user_id = _user_payload()["_id"]

    result = User.delete(user_id)
    if result.deleted_count == 0:
        raise NotFoundError("User not found")

    current_app.logger.info("Deleted user %s", user_id)
    return jsonify({"success": True, "data": {"deletedCount": result.deleted_count}})
