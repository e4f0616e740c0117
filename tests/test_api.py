import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest
from fastapi.testclient import TestClient

import feedgate.config as config
from app.main import app


@pytest.fixture
def client(server_db):
    # No lifespan: server_db already points DB at a scratch database
    return TestClient(app)


def _as(user_id: str) -> dict:
    return {config.IDENTITY_HEADER: user_id}


def test_root_lists_endpoints(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "FeedGate"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"]["ok"] is True


def test_status_mapping(client):
    assert client.post("/profiles", json={"username": "alice"}, headers=_as("u1")).status_code == 201
    assert client.post("/profiles", json={"username": "bob"}, headers=_as("u2")).status_code == 201

    anonymous = client.post("/posts", json={"image_url": "https://cdn.example.com/a.jpg"})
    assert anonymous.status_code == 403
    assert anonymous.json()["detail"]["status"] == "denied"

    created = client.post("/posts", json={"image_url": "https://cdn.example.com/a.jpg"}, headers=_as("u1"))
    assert created.status_code == 201
    post_id = created.json()["post"]["id"]

    liked = client.post(f"/posts/{post_id}/likes", headers=_as("u2"))
    assert liked.status_code == 201
    assert liked.json()["post"]["likes_count"] == 1

    duplicate = client.post(f"/posts/{post_id}/likes", headers=_as("u2"))
    assert duplicate.status_code == 409

    missing = client.get("/posts/does-not-exist")
    assert missing.status_code == 404

    invalid = client.post("/posts", json={"image_url": "not-a-url"}, headers=_as("u1"))
    assert invalid.status_code == 422

    counters = client.get(f"/posts/{post_id}/counters")
    assert counters.status_code == 200
    assert counters.json()["post"]["likes_actual"] == 1

    not_owner = client.delete(f"/posts/{post_id}", headers=_as("u2"))
    assert not_owner.status_code == 403
    assert client.delete(f"/posts/{post_id}", headers=_as("u1")).status_code == 200


def test_messages_over_http(client):
    client.post("/profiles", json={"username": "alice"}, headers=_as("u1"))
    client.post("/profiles", json={"username": "bob"}, headers=_as("u2"))
    client.post("/profiles", json={"username": "carol"}, headers=_as("u3"))

    sent = client.post("/messages", json={"receiver_id": "u2", "content": "hi"}, headers=_as("u1"))
    assert sent.status_code == 201
    message_id = sent.json()["message"]["id"]

    assert client.get(f"/messages/{message_id}", headers=_as("u2")).status_code == 200
    assert client.get(f"/messages/{message_id}", headers=_as("u3")).status_code == 403
    assert client.get("/messages").json()["count"] == 0


def test_storage_authorize(client):
    read = client.get("/storage/authorize", params={"bucket": "posts", "key": "u9/a.jpg"})
    assert read.status_code == 200
    assert read.json()["decision"] == "allow"

    own = client.get(
        "/storage/authorize",
        params={"bucket": "avatars", "key": "u1/me.png", "operation": "create"},
        headers=_as("u1"),
    )
    assert own.status_code == 200

    other = client.get(
        "/storage/authorize",
        params={"bucket": "avatars", "key": "u2/me.png", "operation": "create"},
        headers=_as("u1"),
    )
    assert other.status_code == 403

    bogus = client.get(
        "/storage/authorize",
        params={"bucket": "avatars", "key": "u1/me.png", "operation": "publish"},
    )
    assert bogus.status_code == 400


def test_request_id_is_echoed(client):
    echoed = client.get("/", headers={config.REQUEST_ID_HEADER: "req-abc"})
    assert echoed.headers[config.REQUEST_ID_HEADER] == "req-abc"

    generated = client.get("/")
    assert generated.headers[config.REQUEST_ID_HEADER]
