PICTURE = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/x8AAwMCAO+ip1sAAAAASUVORK5CYII="
MISSING_ID = "65f000000000000000000000"


def test_set_profile_picture(client, db, make_user):
    user = make_user()
    res = client.post("/api/auth/profile-picture", json={"userId": str(user["_id"]), "profilePicture": PICTURE})
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["profilePicture"] == PICTURE
    assert "password" not in data
    assert db.users.find_one({"_id": user["_id"]})["profilePicture"] == PICTURE


def test_set_profile_picture_validation(client, make_user):
    user = make_user()
    uid = str(user["_id"])
    assert client.post("/api/auth/profile-picture", json={"profilePicture": PICTURE}).status_code == 400
    assert client.post("/api/auth/profile-picture", json={"userId": uid}).status_code == 400

    res = client.post("/api/auth/profile-picture", json={"userId": uid, "profilePicture": "https://example.com/me.png"})
    assert res.status_code == 400
    assert res.get_json()["error"].startswith("Invalid image format")


def test_set_profile_picture_unknown_user(client, db):
    res = client.post("/api/auth/profile-picture", json={"userId": MISSING_ID, "profilePicture": PICTURE})
    assert res.status_code == 404


def test_remove_profile_picture(client, db, make_user):
    user = make_user(profilePicture=PICTURE)
    res = client.delete(f"/api/auth/profile-picture?userId={user['_id']}")
    assert res.status_code == 200
    assert "profilePicture" not in db.users.find_one({"_id": user["_id"]})


def test_remove_profile_picture_errors(client, db):
    assert client.delete("/api/auth/profile-picture").status_code == 400
    assert client.delete(f"/api/auth/profile-picture?userId={MISSING_ID}").status_code == 404
