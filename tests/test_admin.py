def test_user_management_requires_admin(client, user):
    resp = client.get("/admin/users", headers=user["headers"])
    assert resp.status_code == 403
    assert resp.json()["toast"]["title"] == "Forbidden"


def test_user_management_requires_sign_in(client):
    resp = client.get("/admin/users")
    assert resp.status_code == 303


def test_list_users(client, admin, user):
    body = client.get("/admin/users", headers=admin["headers"]).json()
    assert {u["email"] for u in body["users"]} == {"admin@example.com", "alice@example.com"}
    assert "pending" in body["roles"]


def test_approval_notifies_user(client, backend, admin):
    client.post("/signup", json={"name": "Gus", "email": "gus@example.com", "password": "hunter22"})
    gus = backend.select(None, "users", filters={"email": "gus@example.com"}, single=True)

    resp = client.post(f"/admin/users/{gus['id']}/approval", json={"approved": True}, headers=admin["headers"])
    assert resp.status_code == 200
    assert resp.json()["user"]["approved"] is True

    notes = backend.select(None, "notifications", filters={"user_id": gus["id"]})
    assert len(notes) == 1
    assert "approved" in notes[0]["message"]


def test_revoking_approval_sends_nothing(client, backend, admin, user):
    resp = client.post(f"/admin/users/{user['id']}/approval", json={"approved": False}, headers=admin["headers"])
    assert resp.json()["user"]["approved"] is False
    assert backend.select(None, "notifications") == []


def test_role_change(client, backend, admin, user):
    resp = client.put(f"/admin/users/{user['id']}/role", json={"role": "manager"}, headers=admin["headers"])
    assert resp.status_code == 200
    assert backend.select(None, "users", filters={"id": user["id"]}, single=True)["role"] == "manager"


def test_unknown_role_is_rejected(client, admin, user):
    resp = client.put(f"/admin/users/{user['id']}/role", json={"role": "owner"}, headers=admin["headers"])
    assert resp.status_code == 422
    assert resp.json()["errors"][0]["field"] == "role"


def test_role_change_for_missing_user(client, admin):
    resp = client.put("/admin/users/missing/role", json={"role": "manager"}, headers=admin["headers"])
    assert resp.status_code == 404


def test_settings_defaults_when_row_missing(client, admin):
    body = client.get("/admin/settings", headers=admin["headers"]).json()
    assert body["allowed_file_types"] == ".pdf,.doc,.docx,.xls,.xlsx,.csv,.jpg,.png"
    assert body["project_types"] == []
    assert body["vendor_list"] == []


def test_settings_save_inserts_then_updates(client, backend, admin):
    payload = {
        "allowed_file_types": "pdf, .DOCX, ,",
        "project_types": ["Road", " ", "Bridge"],
        "vendor_list": ["Acme", ""],
    }
    resp = client.put("/admin/settings", json=payload, headers=admin["headers"])
    assert resp.status_code == 200
    saved = resp.json()["settings"]
    assert saved["allowed_file_types"] == ".pdf,.docx"
    assert saved["project_types"] == ["Road", "Bridge"]
    assert saved["vendor_list"] == ["Acme"]

    client.put("/admin/settings", json={**payload, "vendor_list": ["Zenith"]}, headers=admin["headers"])
    rows = backend.select(None, "settings")
    assert len(rows) == 1
    assert rows[0]["vendor_list"] == ["Zenith"]


def test_settings_require_admin(client, user):
    assert client.get("/admin/settings", headers=user["headers"]).status_code == 403
    assert client.put("/admin/settings", json={}, headers=user["headers"]).status_code == 403


def test_profile_edits_only_the_name(client, backend, user):
    resp = client.put(
        "/profile",
        json={"name": "Alice Cooper", "email": "x@example.com", "role": "admin"},
        headers=user["headers"],
    )
    assert resp.status_code == 200
    row = backend.select(None, "users", filters={"id": user["id"]}, single=True)
    assert row["name"] == "Alice Cooper"
    assert row["email"] == "alice@example.com"
    assert row["role"] == "employee"

    body = client.get("/profile", headers=user["headers"]).json()
    assert body["profile"]["name"] == "Alice Cooper"
    assert body["email"] == "alice@example.com"
