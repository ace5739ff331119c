import re

from flask import Blueprint, request, jsonify, session, current_app
from pymongo.errors import DuplicateKeyError

from models.login_log import LoginLog
from models.roles import Role
from models.users import User, normalize_email
from utils.auth import login_required, master_key_required, login_user, logout_user
from utils.device_parser import get_client_ip
from utils.errors import ValidationError, UnauthorizedError, NotFoundError, ConflictError

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8
NAME_MAX_LENGTH = 50


# -----------------------------
# LOGIN
# -----------------------------
@auth_bp.route("/login", methods=["POST"])
def login():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Invalid request body")

    email = normalize_email(body.get("email"))
    if not email:
        raise ValidationError("Email is required")

    password = body.get("password") or ""
    allow_bypass = body.get("allowPasswordBypass") is True

    user = User.find_by_email(email)
    if not user:
        raise NotFoundError("User not found")

    if not password:
        if not (allow_bypass and User.bypass_active(user)):
            raise ValidationError("Password is required")
        # Another login may have claimed it since the read above
        if not User.consume_bypass(user):
            raise UnauthorizedError("Password bypass has already been used")
        user["passwordBypassApproved"] = False
        user["passwordBypassExpiresAt"] = None
        current_app.logger.info("Password bypass used by %s", user["email"])
    elif not User.check_password(user, password):
        raise UnauthorizedError("Invalid Password")

    # A failed history write must not block the login
    try:
        LoginLog(
            user["_id"],
            user["email"],
            user_agent=request.headers.get("User-Agent", ""),
            ip_address=get_client_ip(request.headers),
        ).save()
    except Exception:
        current_app.logger.exception("Error logging login event for %s", user["email"])

    login_user(user)
    return jsonify({"success": True, "data": User.public_view(user)})


# Logout
@auth_bp.route("/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"success": True, "message": "Logged out successfully"})


# View current profile
@auth_bp.route("/me")
@login_required
def me():
    user = User.find_by_id(session["user_id"])
    if not user:
        logout_user()
        raise NotFoundError("User not found")
    return jsonify({"success": True, "data": User.public_view(user)})


# -----------------------------
# REGISTER ADMIN ACCOUNT
# -----------------------------
@auth_bp.route("/register", methods=["POST"])
@master_key_required
def register():
    body = request.get_json(silent=True) or {}

    first_name = (body.get("firstName") or "").strip()
    middle_name = (body.get("middleName") or "").strip() or None
    last_name = (body.get("lastName") or "").strip()
    email = normalize_email(body.get("email"))
    password = body.get("password") or ""
    confirm_password = body.get("confirmPassword")
    role = Role.parse(body.get("role") or Role.ADMIN.value)
    barangay_id = body.get("assignedBarangayId") or None

    if not first_name or not last_name:
        raise ValidationError("First name and last name are required")
    if any(len(n) > NAME_MAX_LENGTH for n in (first_name, last_name, middle_name or "")):
        raise ValidationError(f"Names must be less than {NAME_MAX_LENGTH} characters")
    if not email or not EMAIL_RE.match(email):
        raise ValidationError("Invalid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if confirm_password is not None and confirm_password != password:
        raise ValidationError("Passwords do not match")
    if role is None:
        raise ValidationError("Invalid role")
    if role == Role.ADMIN and not barangay_id:
        raise ValidationError("Barangay assignment is required for regular admins")

    # Prevent duplicate users
    if User.find_by_email(email):
        raise ConflictError("User with this email already exists.")

    user = User(
        email=email,
        password=password,
        first_name=first_name,
        middle_name=middle_name,
        last_name=last_name,
        gender=body.get("gender"),
        birthday=body.get("birthday"),
        role=role,
        assigned_barangay_id=barangay_id,
    )
    try:
        result = user.save()
    except DuplicateKeyError:
        raise ConflictError("User with this email already exists.")

    current_app.logger.info("Registered %s account %s", role.value, email)
    return jsonify({"success": True, "data": {"_id": str(result.inserted_id)}}), 201


# -----------------------------
# LOGIN HISTORY
# -----------------------------
@auth_bp.route("/login-history")
def login_history():
    user_id = request.args.get("userId")
    if not user_id:
        raise ValidationError("User ID is required")

    logs = LoginLog.recent_for_user(user_id, limit=current_app.config["LOGIN_HISTORY_LIMIT"])
    return jsonify({"success": True, "data": logs})


# -----------------------------
# PROFILE PICTURE
# -----------------------------
@auth_bp.route("/profile-picture", methods=["POST"])
def update_profile_picture():
    body = request.get_json(silent=True) or {}
    user_id = body.get("userId")
    picture = body.get("profilePicture")

    if not user_id:
        raise ValidationError("User ID is required")
    if not picture:
        raise ValidationError("Profile picture is required")
    if not isinstance(picture, str) or not picture.startswith("data:image/"):
        raise ValidationError("Invalid image format. Please upload a valid image.")

    result = User.update(user_id, {"profilePicture": picture})
    if result.matched_count == 0:
        raise NotFoundError("User not found")

    return jsonify({"success": True, "data": User.public_view(User.find_by_id(user_id))})


@auth_bp.route("/profile-picture", methods=["DELETE"])
def remove_profile_picture():
    user_id = request.args.get("userId")
    if not user_id:
        raise ValidationError("User ID is required")

    result = User.remove_field(user_id, "profilePicture")
    if result.matched_count == 0:
        raise NotFoundError("User not found")

    return jsonify({"success": True, "message": "Profile picture removed successfully"})
