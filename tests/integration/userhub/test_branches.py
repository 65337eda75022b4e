from bson import ObjectId


def test_non_admin_cannot_manage_branches(client, create_user, auth_headers):
    headers = auth_headers(create_user()["token"])

    response = client.post("/branches", headers=headers, json={"name": "North", "code": "N"})

    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient permissions"


def test_branch_lifecycle(client, admin_headers):
    created = client.post("/branches", headers=admin_headers, json={"name": "North", "code": "N", "phoneNumber": "555"})
    assert created.status_code == 201, created.text
    branch = created.json()["data"]
    assert branch["isActive"] is True

    fetched = client.get(f"/branches/{branch['id']}", headers=admin_headers)
    assert fetched.json()["data"]["code"] == "N"

    updated = client.patch(f"/branches/{branch['id']}", headers=admin_headers, json={"isActive": False})
    assert updated.status_code == 200
    assert updated.json()["data"]["isActive"] is False

    listed = client.get("/branches", headers=admin_headers).json()["data"]
    assert [b["id"] for b in listed] == [branch["id"]]

    deleted = client.delete(f"/branches/{branch['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get(f"/branches/{branch['id']}", headers=admin_headers).status_code == 404


def test_duplicate_branch_code(client, admin_headers):
    client.post("/branches", headers=admin_headers, json={"name": "North", "code": "N"})

    response = client.post("/branches", headers=admin_headers, json={"name": "Other", "code": "N"})

    assert response.status_code == 400
    assert response.json()["message"] == "Branch code already exists"


def test_any_user_can_list_branches(client, create_user, auth_headers):
    headers = auth_headers(create_user()["token"])

    assert client.get("/branches", headers=headers).status_code == 200
    assert client.get("/branches").status_code == 401


def test_branch_expansion_and_filter(client, create_user, admin_headers):
    branch = client.post("/branches", headers=admin_headers, json={"name": "South", "code": "S"}).json()["data"]
    member = create_user(branchId=branch["id"])["user"]["id"]
    create_user()

    response = client.get("/users", params={"branchId": branch["id"], "populate": "branchId"})

    data = response.json()["data"]
    assert [user["id"] for user in data["users"]] == [member]
    assert data["users"][0]["branchId"]["code"] == "S"


def test_unknown_branch_ids(client, admin_headers):
    assert client.get(f"/branches/{ObjectId()}", headers=admin_headers).status_code == 404
    assert client.get("/branches/nope", headers=admin_headers).status_code == 400


def test_roles_listing(client):
    response = client.get("/roles")

    assert response.status_code == 200
    assert sorted(role["name"] for role in response.json()["data"]) == ["Admin", "user"]
