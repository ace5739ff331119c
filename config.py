import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    # Flask session signing
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    # MongoDB (database name comes from the URI path)
    MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017/main")

    # werkzeug hash of the master admin key used by the admin endpoints
    MASTER_AUTH_KEY_HASH = os.environ.get("MASTER_AUTH_KEY_HASH", "")

    PASSWORD_BYPASS_MINUTES = int(os.environ.get("PASSWORD_BYPASS_MINUTES", 15))
    LOGIN_HISTORY_LIMIT = int(os.environ.get("LOGIN_HISTORY_LIMIT", 50))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    CORS_ALLOWED_ORIGINS = [
        o.strip()
        for o in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
        if o.strip()
    ]

    TESTING = False


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    MONGO_URI = "mongodb://localhost:27017/als_tracker_test"
    LOG_LEVEL = "WARNING"
