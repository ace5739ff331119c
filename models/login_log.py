from utils.db import get_db
from utils.device_parser import parse_user_agent
from utils.serializers import utcnow, serialize_doc

PUBLIC_FIELDS = ("_id", "userId", "email", "device", "browser", "os", "ipAddress", "loginAt", "createdAt")


class LoginLog:

    @staticmethod
    def collection():
        return get_db().login_logs

    def __init__(self, user_id, email, user_agent=None, ip_address=None, login_at=None):
        device_info = parse_user_agent(user_agent)
        self.user_id = str(user_id)
        self.email = email
        self.device = device_info["device"]
        self.browser = device_info["browser"]
        self.os = device_info["os"]
        self.ip_address = ip_address
        self.login_at = login_at or utcnow()
        self.created_at = self.login_at

    def to_dict(self):
        return {
            "userId": self.user_id,
            "email": self.email,
            "device": self.device,
            "browser": self.browser,
            "os": self.os,
            "ipAddress": self.ip_address,
            "loginAt": self.login_at,
            "createdAt": self.created_at,
        }

    def save(self):
        return self.collection().insert_one(self.to_dict())

    @staticmethod
    def recent_for_user(user_id, limit=50):
        logs = (LoginLog.collection()
                .find({"userId": str(user_id)})
                .sort("loginAt", -1)
                .limit(limit))
        return [serialize_doc({k: log.get(k) for k in PUBLIC_FIELDS}) for log in logs]
