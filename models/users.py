from datetime import timedelta

from werkzeug.security import generate_password_hash, check_password_hash

from models.roles import Role
from utils.db import get_db
from utils.serializers import utcnow, parse_timestamp, to_object_id, serialize_doc

# Never leave the server
PRIVATE_FIELDS = ("password", "initialPassword")


class User:

    @staticmethod
    def collection():
        return get_db().users

    def __init__(self, email, password, first_name, last_name, role=Role.ADMIN,
                 middle_name=None, gender=None, birthday=None, assigned_barangay_id=None,
                 created_at=None, updated_at=None):
        self.email = normalize_email(email)
        self.password = generate_password_hash(password)
        self.first_name = first_name
        self.middle_name = middle_name
        self.last_name = last_name
        self.gender = gender
        self.birthday = birthday
        self.role = Role(role)
        # Only regular admins are tied to a barangay
        self.assigned_barangay_id = assigned_barangay_id if self.role == Role.ADMIN else None
        self.created_at = created_at or utcnow()
        self.updated_at = updated_at or self.created_at

    @property
    def name(self):
        return full_name(self.first_name, self.middle_name, self.last_name)

    # Convert to dictionary for MongoDB
    def to_dict(self):
        return {
            "email": self.email,
            "password": self.password,
            "name": self.name,
            "firstName": self.first_name,
            "middleName": self.middle_name,
            "lastName": self.last_name,
            "gender": self.gender,
            "birthday": self.birthday,
            "role": self.role.value,
            "assignedBarangayId": self.assigned_barangay_id,
            "passwordBypassApproved": False,
            "passwordBypassExpiresAt": None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    # Save new user
    def save(self):
        return self.collection().insert_one(self.to_dict())

    # Find user by ID
    @staticmethod
    def find_by_id(user_id):
        return User.collection().find_one({"_id": to_object_id(user_id, "user id")})

    # Find user by email
    @staticmethod
    def find_by_email(email):
        email = normalize_email(email)
        if not email:
            return None
        return User.collection().find_one({"email": email})

    @staticmethod
    def find_all():
        return list(User.collection().find().sort("createdAt", -1))

    @staticmethod
    def check_password(user, password):
        if not user or not password or not user.get("password"):
            return False
        try:
            return check_password_hash(user["password"], password)
        except ValueError:
            # Hash written by another scheme; it can never match here
            return False

    @staticmethod
    def update(user_id, fields):
        """Apply a partial update; returns the pymongo UpdateResult."""
        fields = dict(fields)
        fields["updatedAt"] = utcnow()
        return User.collection().update_one(
            {"_id": to_object_id(user_id, "user id")},
            {"$set": fields}
        )

    @staticmethod
    def remove_field(user_id, field):
        return User.collection().update_one(
            {"_id": to_object_id(user_id, "user id")},
            {"$unset": {field: ""}, "$set": {"updatedAt": utcnow()}}
        )

    @staticmethod
    def delete(user_id):
        return User.collection().delete_one({"_id": to_object_id(user_id, "user id")})

    # -----------------------------
    # Password bypass grant
    # -----------------------------
    @staticmethod
    def bypass_active(user, now=None):
        """True only while the approval flag is set and the expiry is still ahead."""
        if not user or user.get("passwordBypassApproved") is not True:
            return False
        expires_at = parse_timestamp(user.get("passwordBypassExpiresAt"))
        if expires_at is None:
            return False
        return expires_at > (now or utcnow())

    @staticmethod
    def grant_bypass(user_id, minutes, now=None):
        expires_at = (now or utcnow()) + timedelta(minutes=minutes)
        User.collection().update_one(
            {"_id": to_object_id(user_id, "user id")},
            {"$set": {
                "passwordBypassApproved": True,
                "passwordBypassExpiresAt": expires_at,
            }}
        )
        return expires_at

    @staticmethod
    def consume_bypass(user):
        """
        Claim the bypass `user` was read with. The match on the stored
        expiry makes this a compare-and-swap, so of several logins holding
        the same snapshot only one gets True.
        """
        claimed = User.collection().find_one_and_update(
            {
                "_id": user["_id"],
                "passwordBypassApproved": True,
                "passwordBypassExpiresAt": user.get("passwordBypassExpiresAt"),
            },
            {"$set": {
                "passwordBypassApproved": False,
                "passwordBypassExpiresAt": None,
            }},
        )
        return claimed is not None

    @staticmethod
    def revoke_bypass(user_id):
        return User.collection().update_one(
            {"_id": to_object_id(user_id, "user id")},
            {"$set": {
                "passwordBypassApproved": False,
                "passwordBypassExpiresAt": None,
            }}
        )

    @staticmethod
    def public_view(user):
        """Serialized user without password material."""
        if user is None:
            return None
        clean = {k: v for k, v in user.items() if k not in PRIVATE_FIELDS}
        return serialize_doc(clean)


def full_name(first_name, middle_name, last_name):
    parts = [first_name, middle_name, last_name]
    return " ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())


def normalize_email(email):
    if not isinstance(email, str):
        return ""
    return email.strip().lower()
