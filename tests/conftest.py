import mongomock
import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from config import TestConfig
from utils.db import mongo, get_db
from utils.serializers import utcnow

MASTER_KEY = "test-master-key"
DEFAULT_PASSWORD = "password123"


class MasterKeyTestConfig(TestConfig):
    MASTER_AUTH_KEY_HASH = generate_password_hash(MASTER_KEY)


@pytest.fixture
def app():
    app = create_app(MasterKeyTestConfig)
    # Swap the real client for an in-memory one
    mongo.cx = mongomock.MongoClient()
    mongo.db = mongo.cx["als_tracker_test"]
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    with app.app_context():
        yield get_db()


@pytest.fixture
def make_user(db):
    def _make(email="admin@example.com", password=DEFAULT_PASSWORD, role="admin", **extra):
        now = utcnow()
        doc = {
            "email": email,
            "password": generate_password_hash(password),
            "name": "Juan Dela Cruz",
            "firstName": "Juan",
            "lastName": "Dela Cruz",
            "role": role,
            "assignedBarangayId": "brgy-poblacion" if role == "admin" else None,
            "passwordBypassApproved": False,
            "passwordBypassExpiresAt": None,
            "createdAt": now,
            "updatedAt": now,
        }
        doc.update(extra)
        doc["_id"] = db.users.insert_one(doc).inserted_id
        return doc
    return _make
