import pytest


@pytest.fixture
def restaurant(register):
    return register("restaurant", name="Trattoria")


@pytest.fixture
def ngo(register):
    return register("ngo", name="Hope")


def test_send_message(restaurant, ngo):
    client, me = restaurant
    _, them = ngo

    resp = client.post("/chat", json={"recipientId": them["id"], "content": "Pickup at 5?"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["senderId"] == me["id"]
    assert body["recipientId"] == them["id"]
    assert body["read"] is False
    assert body["sender"] == {"id": me["id"], "name": "Trattoria", "role": "restaurant"}
    assert body["recipient"]["role"] == "ngo"
    assert body["foodItem"] is None


def test_send_message_about_food(restaurant, ngo):
    client, _ = restaurant
    _, them = ngo
    food = client.post(
        "/food", json={"title": "Bread", "description": "Loaves", "photo": "b.jpg", "guidelinesAccepted": True}
    ).json()

    resp = client.post("/chat", json={"recipientId": them["id"], "content": "Still fresh", "foodItemId": food["id"]})
    assert resp.status_code == 201
    assert resp.json()["foodItem"] == {"id": food["id"], "title": "Bread"}


def test_send_message_validation(restaurant, ngo):
    client, _ = restaurant
    _, them = ngo

    assert client.post("/chat", json={"recipientId": 999, "content": "hi"}).status_code == 404
    assert client.post("/chat", json={"recipientId": them["id"], "content": ""}).status_code == 400
    assert client.post(
        "/chat", json={"recipientId": them["id"], "content": "hi", "foodItemId": 999}
    ).status_code == 404


def test_chat_requires_login(anonymous):
    assert anonymous.get("/chat").status_code == 401
    assert anonymous.post("/chat", json={"recipientId": 1, "content": "hi"}).status_code == 401


def test_thread_and_inbox_ordering(register, restaurant, ngo):
    r_client, r_user = restaurant
    n_client, n_user = ngo
    other_client, other_user = register("ngo")

    r_client.post("/chat", json={"recipientId": n_user["id"], "content": "one"})
    n_client.post("/chat", json={"recipientId": r_user["id"], "content": "two"})
    other_client.post("/chat", json={"recipientId": r_user["id"], "content": "elsewhere"})
    r_client.post("/chat", json={"recipientId": n_user["id"], "content": "three"})

    thread = r_client.get(f"/chat/{n_user['id']}").json()
    assert [m["content"] for m in thread] == ["one", "two", "three"]
    assert n_client.get(f"/chat/{r_user['id']}").json() == thread

    inbox = r_client.get("/chat").json()
    assert [m["content"] for m in inbox] == ["three", "elsewhere", "two", "one"]

    ngo_inbox = n_client.get("/chat").json()
    assert [m["content"] for m in ngo_inbox] == ["three", "two", "one"]

    assert [m["content"] for m in other_client.get(f"/chat/{n_user['id']}").json()] == []
