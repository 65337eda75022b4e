from bson import ObjectId


def test_create_profile(client, profile_payload):
    response = client.post("/profiles", json=profile_payload(email=" Ana@Example.com ", occupation=""))

    assert response.status_code == 201, response.text
    profile = response.json()["data"]
    assert profile["email"] == "ana@example.com"
    assert profile["occupation"] is None
    assert profile["identifications"] == [{"cardType": "Visa", "cardCode": "V-123"}]
    assert "deleted" not in profile


def test_create_profile_validation(client, profile_payload):
    cases = [
        profile_payload(firstName="J4ne"),
        profile_payload(dateOfBirth="17/05/1990"),
        profile_payload(phoneNumber="12"),
        profile_payload(gender="X"),
        {"firstName": "Jane"},
    ]
    for body in cases:
        response = client.post("/profiles", json=body)
        assert response.status_code == 400, body


def test_list_profiles(client, profile_payload):
    for name in ("Ann", "Ben", "Cid"):
        client.post("/profiles", json=profile_payload(firstName=name))

    response = client.get("/profiles", params={"limit": 2, "page": 1, "sort": "firstName:asc"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert [doc["firstName"] for doc in data["docs"]] == ["Ann", "Ben"]
    assert data["totalDocs"] == 3
    assert data["totalPages"] == 2
    assert data["hasNextPage"] is True
    assert data["hasPrevPage"] is False


def test_get_profile_with_linked_user(client, create_user):
    user = create_user(username="linked", fullName="Linked User")["user"]

    response = client.get(f"/profiles/{user['userInfoId']['id']}")

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["username"] == "linked"
    assert data["fullName"] == "Linked User"
    assert [role["name"] for role in data["roleId"]] == ["user"]
    assert data["branchId"] is None
    assert data["userInfoId"]["firstName"] == "Jane"


def test_get_unlinked_profile(client, profile_payload):
    created = client.post("/profiles", json=profile_payload()).json()["data"]

    data = client.get(f"/profiles/{created['id']}").json()["data"]

    assert data == {"userInfoId": created}


def test_get_profile_errors(client):
    missing = client.get(f"/profiles/{ObjectId()}")
    assert missing.status_code == 404

    malformed = client.get("/profiles/123")
    assert malformed.status_code == 400
    assert malformed.json()["message"] == "Invalid user info ID"


def test_update_profile(client, profile_payload):
    created = client.post("/profiles", json=profile_payload()).json()["data"]

    response = client.patch(f"/profiles/{created['id']}", json={"maritalStatus": "Married", "address": " 1 Main St "})

    assert response.status_code == 200, response.text
    updated = response.json()["data"]
    assert updated["maritalStatus"] == "Married"
    assert updated["address"] == "1 Main St"
    assert updated["firstName"] == "Jane"
    assert updated["updatedAt"] >= created["updatedAt"]


def test_update_profile_email_conflict(client, profile_payload):
    client.post("/profiles", json=profile_payload(email="first@example.com"))
    second = client.post("/profiles", json=profile_payload(email="second@example.com")).json()["data"]

    conflict = client.patch(f"/profiles/{second['id']}", json={"email": "FIRST@example.com"})
    assert conflict.status_code == 400
    assert conflict.json()["message"] == "Email already exists"

    same = client.patch(f"/profiles/{second['id']}", json={"email": "second@example.com"})
    assert same.status_code == 200
