from werkzeug.security import check_password_hash

from tests.conftest import MASTER_KEY

MISSING_ID = "65f000000000000000000000"


def test_user_admin_endpoints_require_master_key(client, make_user):
    user = make_user()
    payload = {"authKey": "wrong", "user": {"_id": str(user["_id"])}}
    assert client.post("/api/auth/users", json=payload).status_code == 401
    assert client.patch("/api/auth/users", json=payload).status_code == 401
    assert client.delete("/api/auth/users", json=payload).status_code == 401


def test_list_users_hides_passwords(client, make_user):
    make_user(email="a@example.com")
    make_user(email="b@example.com", role="master_admin")

    res = client.post("/api/auth/users", json={"authKey": MASTER_KEY})
    assert res.status_code == 200
    users = res.get_json()["data"]
    assert {u["email"] for u in users} == {"a@example.com", "b@example.com"}
    assert all("password" not in u for u in users)


def test_edit_user_updates_fields(client, db, make_user):
    user = make_user()
    res = client.patch("/api/auth/users", json={
        "authKey": MASTER_KEY,
        "user": {
            "_id": str(user["_id"]),
            "name": "Juan P. Dela Cruz",
            "assignedBarangayId": "brgy-bagong-silang",
            "password": "new-password-1",
            "createdAt": "1999-01-01T00:00:00Z",
        },
    })
    assert res.status_code == 200
    assert res.get_json()["data"]["matchedCount"] == 1

    stored = db.users.find_one({"_id": user["_id"]})
    assert stored["name"] == "Juan P. Dela Cruz"
    assert stored["assignedBarangayId"] == "brgy-bagong-silang"
    assert check_password_hash(stored["password"], "new-password-1")
    assert stored["createdAt"] != "1999-01-01T00:00:00Z"


def test_edit_user_keeps_password_when_blank(client, db, make_user):
    user = make_user()
    client.patch("/api/auth/users", json={
        "authKey": MASTER_KEY,
        "user": {"_id": str(user["_id"]), "password": "", "gender": "female"},
    })
    stored = db.users.find_one({"_id": user["_id"]})
    assert stored["password"] == user["password"]
    assert stored["gender"] == "female"


def test_edit_user_rejects_unknown_role(client, make_user):
    user = make_user()
    res = client.patch("/api/auth/users", json={
        "authKey": MASTER_KEY,
        "user": {"_id": str(user["_id"]), "role": "facilitator"},
    })
    assert res.status_code == 400


def test_edit_user_id_errors(client, db):
    missing = client.patch("/api/auth/users", json={"authKey": MASTER_KEY, "user": {"_id": MISSING_ID, "name": "x"}})
    assert missing.status_code == 404

    malformed = client.patch("/api/auth/users", json={"authKey": MASTER_KEY, "user": {"_id": "abc"}})
    assert malformed.status_code == 400

    no_user = client.patch("/api/auth/users", json={"authKey": MASTER_KEY})
    assert no_user.status_code == 400


def test_delete_user(client, db, make_user):
    user = make_user()
    res = client.delete("/api/auth/users", json={"authKey": MASTER_KEY, "user": {"_id": str(user["_id"])}})
    assert res.status_code == 200
    assert res.get_json()["data"]["deletedCount"] == 1
    assert db.users.count_documents({}) == 0

    again = client.delete("/api/auth/users", json={"authKey": MASTER_KEY, "user": {"_id": str(user["_id"])}})
    assert again.status_code == 404


def test_edit_user_rejects_operator_keys(client, db, make_user):
    user = make_user()
    for key in ("$where", "profile.picture"):
        res = client.patch("/api/auth/users", json={
            "authKey": MASTER_KEY,
            "user": {"_id": str(user["_id"]), key: "x"},
        })
        assert res.status_code == 400
        assert res.get_json()["error"] == f"Invalid field name: {key}"


def test_edit_user_rebuilds_display_name(client, db, make_user):
    user = make_user()
    client.patch("/api/auth/users", json={
        "authKey": MASTER_KEY,
        "user": {"_id": str(user["_id"]), "firstName": "Maria", "middleName": "Luz"},
    })
    stored = db.users.find_one({"_id": user["_id"]})
    assert stored["name"] == "Maria Luz Dela Cruz"

    submit = client.post("/api/auth/password-reset/request", json={"email": "admin@example.com"})
    assert submit.status_code == 200
    listed = client.post("/api/auth/password-reset/requests", json={"authKey": MASTER_KEY}).get_json()["data"]
    assert listed[0]["userName"] == "Maria Luz Dela Cruz"


def test_edit_user_keeps_barangay_rule(client, db, make_user):
    admin = make_user()
    res = client.patch("/api/auth/users", json={
        "authKey": MASTER_KEY,
        "user": {"_id": str(admin["_id"]), "assignedBarangayId": None},
    })
    assert res.status_code == 400
    assert db.users.find_one({"_id": admin["_id"]})["assignedBarangayId"] == "brgy-poblacion"

    master = make_user(email="master@example.com", role="master_admin")
    demoted = client.patch("/api/auth/users", json={
        "authKey": MASTER_KEY,
        "user": {"_id": str(master["_id"]), "role": "admin"},
    })
    assert demoted.status_code == 400

    promoted = client.patch("/api/auth/users", json={
        "authKey": MASTER_KEY,
        "user": {"_id": str(admin["_id"]), "role": "master_admin"},
    })
    assert promoted.status_code == 200
    assert db.users.find_one({"_id": admin["_id"]})["assignedBarangayId"] is None
