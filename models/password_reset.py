"""
models/password_reset.py
---------------------------------
Password reset requests raised by regular admins and resolved by the
master admin.

A request is created "pending" and moves once to "accepted" or
"rejected". Accepting grants the user a short-lived password bypass on the
user record itself; the bypass is checked separately from request status.
"""

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from models.roles import Permission, has_permission
from models.users import User, normalize_email
from utils.db import get_db
from utils.errors import ValidationError, NotFoundError, ForbiddenError
from utils.serializers import utcnow, isoformat, parse_timestamp, to_object_id, serialize_doc

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
STATUS_NONE = "none"

ACTIONS = {
    "accept": STATUS_ACCEPTED,
    "reject": STATUS_REJECTED,
}

MSG_CREATED = "Your request has been sent to the master admin for approval."
MSG_ALREADY_PENDING = "A password reset request is already pending approval."


class PasswordResetRequest:

    @staticmethod
    def collection():
        return get_db().password_reset_requests

    def __init__(self, user_id, email, role, created_at=None):
        self.user_id = str(user_id)
        self.email = email
        self.role = role
        self.status = STATUS_PENDING
        self.created_at = created_at or utcnow()
        self.updated_at = self.created_at
        self.resolved_at = None
        self.resolved_by = None

    def to_dict(self):
        return {
            "userId": self.user_id,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "resolvedAt": self.resolved_at,
            "resolvedBy": self.resolved_by,
        }

    def save_pending(self):
        """
        Insert this request unless the user already has a pending one.
        Returns True when a new record was written.
        """
        key = {"userId": self.user_id, "status": STATUS_PENDING}
        on_insert = {k: v for k, v in self.to_dict().items() if k not in key}
        try:
            result = self.collection().update_one(key, {"$setOnInsert": on_insert}, upsert=True)
        except DuplicateKeyError:
            # Lost a race with a concurrent submission for the same user
            return False
        return result.upserted_id is not None

    # -----------------------------
    # Regular admin side
    # -----------------------------
    @staticmethod
    def submit(email):
        """Raise a reset request for the account behind `email`; returns a message."""
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")

        user = User.find_by_email(email)
        if not user:
            raise NotFoundError("No account found for this email")

        if not has_permission(user.get("role"), Permission.REQUEST_PASSWORD_RESET):
            raise ForbiddenError("Forgot password requests are only available for regular admins")

        request = PasswordResetRequest(user["_id"], user["email"], user.get("role"))
        if request.save_pending():
            return MSG_CREATED
        return MSG_ALREADY_PENDING

    @staticmethod
    def latest_for_user(user_id):
        cursor = (PasswordResetRequest.collection()
                  .find({"userId": str(user_id)})
                  .sort("createdAt", -1)
                  .limit(1))
        for doc in cursor:
            return doc
        return None

    @staticmethod
    def status_for(email, now=None):
        """
        Latest request status plus the bypass state for `email`.
        Unknown accounts read the same as accounts without requests.
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")

        user = User.find_by_email(email)
        if not user:
            return {"status": STATUS_NONE, "bypassApproved": False, "bypassExpiresAt": None}

        latest = PasswordResetRequest.latest_for_user(user["_id"])
        return {
            "status": latest["status"] if latest else STATUS_NONE,
            "bypassApproved": User.bypass_active(user, now),
            "bypassExpiresAt": isoformat(parse_timestamp(user.get("passwordBypassExpiresAt"))),
        }

    # -----------------------------
    # Master admin side
    # -----------------------------
    @staticmethod
    def list_with_users():
        requests = list(PasswordResetRequest.collection().find().sort("createdAt", -1))

        user_ids = []
        for r in requests:
            try:
                user_ids.append(to_object_id(r.get("userId")))
            except ValidationError:
                continue
        users = User.collection().find({"_id": {"$in": user_ids}}) if user_ids else []
        users_by_id = {str(u["_id"]): u for u in users}

        data = []
        for r in requests:
            owner = users_by_id.get(r.get("userId"), {})
            item = serialize_doc(r)
            item["userName"] = owner.get("name") or r.get("email")
            item["assignedBarangayId"] = owner.get("assignedBarangayId")
            data.append(item)
        return data

    @staticmethod
    def resolve(request_id, action, resolved_by=None, bypass_minutes=15, now=None):
        if not request_id or action not in ACTIONS:
            raise ValidationError("Invalid request parameters")

        oid = to_object_id(request_id, "request id")
        current = PasswordResetRequest.collection().find_one({"_id": oid})
        if current is None:
            raise NotFoundError("Request not found")
        if current.get("status") != STATUS_PENDING:
            raise ValidationError("Request already processed")

        # The owner must be addressable before the status moves
        owner_id = to_object_id(current.get("userId"), "user id")

        now = now or utcnow()
        updates = {
            "status": ACTIONS[action],
            "resolvedAt": now,
            "resolvedBy": resolved_by or "Master Admin",
            "updatedAt": now,
        }

        resolved = PasswordResetRequest.collection().find_one_and_update(
            {"_id": oid, "status": STATUS_PENDING},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if resolved is None:
            # Resolved by someone else between the read and the update
            raise ValidationError("Request already processed")

        if updates["status"] == STATUS_ACCEPTED:
            User.grant_bypass(owner_id, bypass_minutes, now)
        else:
            User.revoke_bypass(owner_id)

        return serialize_doc(resolved)
