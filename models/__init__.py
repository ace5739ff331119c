# models/__init__.py

from .roles import Role, Permission, has_permission
from .users import User
from .password_reset import PasswordResetRequest
from .login_log import LoginLog

__all__ = [
    "Role",
    "Permission",
    "has_permission",
    "User",
    "PasswordResetRequest",
    "LoginLog"
]
