from enum import Enum


class Role(str, Enum):
    MASTER_ADMIN = "master_admin"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value):
        """Return the Role for a stored value, or None when it is not a known role."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class Permission(str, Enum):
    REQUEST_PASSWORD_RESET = "request_password_reset"


# Master admin actions are authorized by the master key, not by this table
PERMISSIONS = {
    Role.MASTER_ADMIN: frozenset(),
    Role.ADMIN: frozenset({
        Permission.REQUEST_PASSWORD_RESET,
    }),
}


def has_permission(role, permission):
    role = Role.parse(role)
    if role is None:
        return False
    return permission in PERMISSIONS[role]
