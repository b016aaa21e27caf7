import pytest

from conftest import project_payload


@pytest.fixture
def project_id(client, user):
    return client.post("/projects", json=project_payload(), headers=user["headers"]).json()["project"]["id"]


def _comment(client, headers, project_id, content, **kw):
    return client.post(f"/projects/{project_id}/comments", json={"content": content, **kw}, headers=headers)


def test_replies_are_threaded(client, user, other_user, project_id):
    root = _comment(client, user["headers"], project_id, "Kickoff on Monday").json()["comment"]
    reply = _comment(client, other_user["headers"], project_id, "Noted", parent_comment_id=root["id"])
    assert reply.status_code == 201

    body = client.get(f"/projects/{project_id}/comments", headers=user["headers"]).json()
    assert len(body["comments"]) == 1
    thread = body["comments"][0]
    assert thread["author_name"] == "Alice"
    assert [r["content"] for r in thread["replies"]] == ["Noted"]
    assert thread["replies"][0]["author_name"] == "Bob"


def test_parent_must_belong_to_same_project(client, user, project_id):
    other = client.post("/projects", json=project_payload(name="Other"), headers=user["headers"]).json()
    foreign = _comment(client, user["headers"], other["project"]["id"], "elsewhere").json()["comment"]

    resp = _comment(client, user["headers"], project_id, "reply", parent_comment_id=foreign["id"])
    assert resp.status_code == 422
    assert resp.json()["errors"][0]["field"] == "parent_comment_id"


def test_empty_comment_is_rejected(client, user, project_id):
    resp = _comment(client, user["headers"], project_id, "   ")
    assert resp.status_code == 422


def test_only_author_can_delete(client, backend, user, other_user, project_id):
    c = _comment(client, user["headers"], project_id, "mine").json()["comment"]

    resp = client.delete(f"/projects/{project_id}/comments/{c['id']}", headers=other_user["headers"])
    assert resp.status_code == 403
    assert resp.json()["toast"]["variant"] == "destructive"

    resp = client.delete(f"/projects/{project_id}/comments/{c['id']}", headers=user["headers"])
    assert resp.status_code == 200
    assert backend.select(None, "comments") == []


def test_deleting_a_comment_drops_its_replies(client, backend, user, other_user, project_id):
    root = _comment(client, user["headers"], project_id, "root").json()["comment"]
    _comment(client, other_user["headers"], project_id, "reply", parent_comment_id=root["id"])
    client.delete(f"/projects/{project_id}/comments/{root['id']}", headers=user["headers"])
    assert backend.select(None, "comments") == []


def test_comment_by_someone_else_notifies_owner(client, backend, user, other_user, project_id):
    _comment(client, user["headers"], project_id, "own comment")
    assert backend.select(None, "notifications") == []

    _comment(client, other_user["headers"], project_id, "question")
    notes = backend.select(None, "notifications", filters={"user_id": user["id"]})
    assert len(notes) == 1
    assert notes[0]["link"] == f"/projects/{project_id}"


def test_notification_failure_does_not_fail_comment(client, backend, user, other_user, project_id):
    backend.fail("insert", "notifications")
    resp = _comment(client, other_user["headers"], project_id, "question")
    assert resp.status_code == 201


def _seed_notifications(backend, user_id, n):
    return [
        backend.insert(None, "notifications", [{"user_id": user_id, "message": f"m{i}"}])[0]["id"]
        for i in range(n)
    ]


def test_mark_read_is_idempotent(client, backend, user):
    (nid,) = _seed_notifications(backend, user["id"], 1)
    for _ in range(2):
        resp = client.post(f"/notifications/{nid}/read", headers=user["headers"])
        assert resp.status_code == 200
        assert resp.json()["notification"]["read"] is True
    assert backend.select(None, "notifications", filters={"id": nid}, single=True)["read"] is True


def test_cannot_mark_someone_elses_notification(client, backend, user, other_user):
    (nid,) = _seed_notifications(backend, user["id"], 1)
    resp = client.post(f"/notifications/{nid}/read", headers=other_user["headers"])
    assert resp.status_code == 404
    assert backend.select(None, "notifications", filters={"id": nid}, single=True)["read"] is False


def test_list_unread_and_read_all(client, backend, user, other_user):
    ids = _seed_notifications(backend, user["id"], 3)
    _seed_notifications(backend, other_user["id"], 1)
    client.post(f"/notifications/{ids[0]}/read", headers=user["headers"])

    body = client.get("/notifications", headers=user["headers"]).json()
    assert len(body["notifications"]) == 3
    assert body["unread"] == 2
    assert client.get("/notifications/unread-count", headers=user["headers"]).json() == {"unread": 2}

    resp = client.post("/notifications/read-all", headers=user["headers"])
    assert resp.json()["updated"] == 2
    assert client.get("/notifications/unread-count", headers=user["headers"]).json() == {"unread": 0}
    assert client.get("/notifications/unread-count", headers=other_user["headers"]).json() == {"unread": 1}
