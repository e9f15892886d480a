def test_create_and_list_sessions(client, registered):
    resp = client.post("/api/chat/session", json={"userId": registered["id"], "sessionId": "1700000000000"})
    assert resp.status_code == 200
    session = resp.json()["session"]
    assert session["userId"] == registered["id"]
    assert session["sessionId"] == "1700000000000"
    assert {"id", "createdAt"} <= set(session)

    listed = client.get(f"/api/chat/sessions/{registered['id']}").json()
    assert listed == {"success": True, "sessions": [session]}


def test_session_validation(client):
    assert client.post("/api/chat/session", json={"userId": "u1"}).status_code == 400
    resp = client.post("/api/chat/session", json={"sessionId": "s"})
    assert resp.json() == {"success": False, "error": "Invalid session data"}


def test_unknown_ids_give_empty_lists(client):
    assert client.get("/api/chat/sessions/nobody").json() == {"success": True, "sessions": []}
    assert client.get("/api/chat/messages/nothing").json() == {"success": True, "messages": []}


def test_messages_round_trip_in_order(client):
    sent = [
        {"sessionId": "s1", "role": "user", "content": "what is this?", "imageData": "data:image/png;base64,AAA"},
        {"sessionId": "s1", "role": "ai", "content": "a square"},
        {"sessionId": "s1", "role": "user", "content": "thanks"},
    ]
    for body in sent:
        assert client.post("/api/chat/message", json=body).status_code == 200

    messages = client.get("/api/chat/messages/s1").json()["messages"]

    assert [m["content"] for m in messages] == ["what is this?", "a square", "thanks"]
    assert [m["role"] for m in messages] == ["user", "ai", "user"]
    assert messages[0]["imageData"] == "data:image/png;base64,AAA"
    assert messages[1]["imageData"] is None


def test_message_validation(client):
    bad = [
        {"sessionId": "s1", "role": "assistant", "content": "x"},
        {"sessionId": "s1", "role": "user"},
        {"role": "user", "content": "x"},
    ]
    for body in bad:
        resp = client.post("/api/chat/message", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid message data"


def test_stats_route(client, registered):
    uid = registered["id"]
    assert client.get(f"/api/user/stats/{uid}").json()["stats"] == {
        "totalChats": 0,
        "totalMessages": 0,
        "imagesAnalyzed": 0,
    }

    client.post("/api/chat/session", json={"userId": uid, "sessionId": "s1"})
    client.post("/api/chat/message", json={"sessionId": "s1", "role": "user", "content": "look", "imageData": "AAA"})
    client.post("/api/chat/message", json={"sessionId": "s1", "role": "ai", "content": "a dog"})
    client.post("/api/chat/message", json={"sessionId": "s1", "role": "user", "content": "nice"})

    assert client.get(f"/api/user/stats/{uid}").json()["stats"] == {
        "totalChats": 1,
        "totalMessages": 2,
        "imagesAnalyzed": 1,
    }


def test_storage_failure_is_500(client, storage, monkeypatch):
    def boom(user_id):
        raise OSError("disk gone")

    monkeypatch.setattr(storage, "get_user_stats", boom)
    resp = client.get("/api/user/stats/u1")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Failed to get user stats"}


def test_root(client):
    assert client.get("/").status_code == 200


def test_routes_survive_invalid_rows(client, store):
    store.append("users", {"id": "1", "username": "x"})
    store.append("sessions", {"id": "2", "userId": "u1"})
    store.append("messages", {"id": "3", "sessionId": "s1", "role": "assistant", "content": "old"})

    assert client.get("/api/chat/messages/s1").json() == {"success": True, "messages": []}
    assert client.get("/api/chat/sessions/u1").json() == {"success": True, "sessions": []}
    assert client.get("/api/user/stats/u1").status_code == 200

    assert client.post("/api/register", json={"username": "ada", "password": "pw"}).status_code == 200
    assert client.post("/api/login", json={"username": "ada", "password": "pw"}).status_code == 200
    assert client.post("/api/login", json={"username": "x", "password": "pw"}).status_code == 401


def test_non_object_bodies_get_route_messages(client):
    resp = client.post("/api/chat/session", json=["u1", "s1"])
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Invalid session data"}

    resp = client.post("/api/chat/message", content=b"{", headers={"content-type": "application/json"})
    assert resp.json() == {"success": False, "error": "Invalid message data"}
